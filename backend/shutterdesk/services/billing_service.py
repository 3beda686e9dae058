"""
ShutterDesk Backend - Stripe Billing Adapter
==============================================

What:  The only module that talks to Stripe.
How:   Thin async wrappers around the (blocking) stripe SDK. Each call runs
       in Starlette's threadpool so a slow Stripe round trip suspends only
       the request that made it.
Who:   InvoiceService (the saga) and the webhook route.

Retry policy:
    Only the customer lookup is retried, and only on connection errors
    (tenacity, exponential backoff with jitter). Creation calls are never
    retried here. They carry idempotency keys chosen by the caller, so a
    resend inside the SDK cannot create a second object.

Errors:
    Every stripe.StripeError is re-raised as ExternalServiceError carrying
    Stripe's user-facing message. Signature failures on webhook payloads
    are ValidationError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import stripe
from starlette.concurrency import run_in_threadpool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from shutterdesk.config import settings
from shutterdesk.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

stripe.api_key = settings.stripe_secret_key or None


@dataclass(frozen=True)
class SentInvoice:
    id: str
    hosted_url: Optional[str]
    # Unix timestamp as returned by Stripe
    due_date: Optional[int] = None


def _stripe_message(exc: stripe.StripeError) -> str:
    return exc.user_message or str(exc) or "Stripe request failed"


class BillingService:

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(fn, *args, **kwargs)
        except stripe.StripeError as e:
            logger.warning("Stripe call %s failed: %s", getattr(fn, "__name__", fn), str(e))
            raise ExternalServiceError(
                message=_stripe_message(e),
                service="stripe",
                context={"stripe_error": type(e).__name__},
            )

    # ── Customers ─────────────────────────────────────────────────────────

    async def find_customer_by_email(self, email: str) -> Optional[str]:
        """Id of the first Stripe customer with this email, or None."""
        try:
            result = await self._list_customers_with_retry(email)
        except stripe.StripeError as e:
            raise ExternalServiceError(
                message=_stripe_message(e),
                service="stripe",
                context={"stripe_error": type(e).__name__},
            )
        if result.data:
            return result.data[0].id
        return None

    @retry(
        retry=retry_if_exception_type(stripe.APIConnectionError),
        stop=stop_after_attempt(settings.billing_lookup_retry_attempts),
        wait=wait_exponential_jitter(
            initial=settings.billing_retry_min_wait,
            max=settings.billing_retry_max_wait,
            jitter=settings.billing_retry_jitter,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _list_customers_with_retry(self, email: str) -> Any:
        return await run_in_threadpool(stripe.Customer.list, email=email, limit=1)

    async def create_customer(self, name: str, email: str, idempotency_key: str) -> str:
        customer = await self._call(
            stripe.Customer.create,
            name=name,
            email=email,
            idempotency_key=idempotency_key,
        )
        return customer.id

    # ── Invoices ──────────────────────────────────────────────────────────

    async def create_invoice(self, customer_id: str, idempotency_key: str) -> str:
        """Draft invoice that Stripe will email once finalized and sent."""
        invoice = await self._call(
            stripe.Invoice.create,
            customer=customer_id,
            collection_method="send_invoice",
            days_until_due=settings.invoice_days_until_due,
            idempotency_key=idempotency_key,
        )
        return invoice.id

    async def attach_line_item(
        self,
        customer_id: str,
        invoice_id: str,
        amount_minor: int,
        description: str,
        idempotency_key: str,
    ) -> None:
        await self._call(
            stripe.InvoiceItem.create,
            customer=customer_id,
            invoice=invoice_id,
            amount=amount_minor,
            currency=settings.stripe_currency,
            description=description,
            idempotency_key=idempotency_key,
        )

    async def finalize_invoice(self, invoice_id: str, idempotency_key: str) -> None:
        await self._call(
            stripe.Invoice.finalize_invoice,
            invoice_id,
            idempotency_key=idempotency_key,
        )

    async def send_invoice(self, invoice_id: str, idempotency_key: str) -> SentInvoice:
        invoice = await self._call(
            stripe.Invoice.send_invoice,
            invoice_id,
            idempotency_key=idempotency_key,
        )
        return SentInvoice(
            id=invoice.id,
            hosted_url=getattr(invoice, "hosted_invoice_url", None),
            due_date=getattr(invoice, "due_date", None),
        )

    # ── Compensation ──────────────────────────────────────────────────────

    async def delete_draft(self, invoice_id: str) -> None:
        await self._call(stripe.Invoice.delete, invoice_id)

    async def void_invoice(self, invoice_id: str) -> None:
        await self._call(stripe.Invoice.void_invoice, invoice_id)

    # ── Webhooks ──────────────────────────────────────────────────────────

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Any:
        """
        Verify and parse a webhook delivery.

        Raises:
            ValidationError: missing or invalid Stripe-Signature, or a body
                that is not a Stripe event
        """
        if not signature:
            raise ValidationError(message="Missing Stripe-Signature header")
        try:
            return stripe.Webhook.construct_event(
                payload, signature, settings.stripe_webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Rejected webhook delivery: %s", type(e).__name__)
            raise ValidationError(message="Invalid webhook signature")


billing_service = BillingService()
