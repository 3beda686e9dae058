"""
ShutterDesk Backend - Google OAuth Client
===========================================

What:  Authorization-code flow against Google's OpenID Connect endpoints.
How:   authorization_url() builds the consent redirect; fetch_profile()
       exchanges the code for an access token and reads the userinfo
       document, both over an httpx AsyncClient.
When:  Only used when GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET are set;
       otherwise the OAuth router is never mounted.

Errors:
    Transport failures and non-2xx answers become ExternalServiceError
    (service="google"). The callback route turns any failure into a
    redirect to /login?error=oauth_failed.
"""

import logging
from typing import Any, Dict
from urllib.parse import urlencode

import httpx

from shutterdesk.config import settings
from shutterdesk.exceptions import ExternalServiceError
from shutterdesk.models.enums import AuthProvider
from shutterdesk.services.auth_service import OAuthProfile

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = "openid email profile"


class GoogleOAuthClient:

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": settings.google_client_id,
            "redirect_uri": settings.google_redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> OAuthProfile:
        """
        Exchange an authorization code and return the caller's profile.

        Raises:
            ExternalServiceError: token exchange or userinfo request failed
        """
        async with httpx.AsyncClient(timeout=settings.oauth_timeout_seconds) as client:
            token = await self._exchange_code(client, code)
            claims = await self._userinfo(client, token)

        sub = claims.get("sub")
        if not sub:
            raise ExternalServiceError(
                message="Google profile did not include a subject identifier",
                service="google",
            )

        # Unverified addresses are not trusted for account linking
        email = claims.get("email") if claims.get("email_verified", True) else None

        return OAuthProfile(
            provider=AuthProvider.GOOGLE,
            provider_id=str(sub),
            email=email,
            name=claims.get("name"),
            picture=claims.get("picture"),
            claims=claims,
        )

    async def _exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        try:
            response = await client.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Google token exchange failed: %s", str(e))
            raise ExternalServiceError(message="Google sign-in failed", service="google")

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise ExternalServiceError(message="Google sign-in failed", service="google")
        return access_token

    async def _userinfo(self, client: httpx.AsyncClient, access_token: str) -> Dict[str, Any]:
        try:
            response = await client.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            response.raise_for_status()
            claims = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Google userinfo request failed: %s", str(e))
            raise ExternalServiceError(message="Google sign-in failed", service="google")
        if not isinstance(claims, dict):
            raise ExternalServiceError(message="Google sign-in failed", service="google")
        return claims


google_oauth = GoogleOAuthClient()
