"""
ShutterDesk Backend - Stripe Webhook Route
============================================

What:  POST /api/stripe/webhook - keeps local invoice statuses in step with
       Stripe (invoice.sent / invoice.paid / invoice.voided).
When:  Mounted only when STRIPE_WEBHOOK_SECRET is set.
How:   The raw body is verified against the Stripe-Signature header before
       anything is parsed. Verified events for unknown invoices, and event
       types we do not track, are acknowledged with 200 so Stripe stops
       retrying them.
"""

import logging

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.database import get_db_session
from shutterdesk.schemas.common import ErrorResponse
from shutterdesk.services.billing_service import billing_service
from shutterdesk.services.invoice_service import invoice_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["Webhooks"])


@router.post(
    "/webhook",
    responses={400: {"description": "Bad signature", "model": ErrorResponse}},
    summary="Stripe event receiver",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(default="", alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    payload = await request.body()
    event = billing_service.construct_event(payload, stripe_signature)

    event_type = getattr(event, "type", "")
    data_object = getattr(getattr(event, "data", None), "object", None)
    invoice_id = getattr(data_object, "id", None)

    logger.info("Stripe event %s received for %s", event_type, invoice_id)
    await invoice_service.apply_provider_event(db, event_type, invoice_id)
    return {"received": True}
