"""
ShutterDesk Backend - Invoice Service (Saga Orchestrator)
===========================================================

What:  Creates and sends a Stripe invoice for a client and mirrors it locally.
Why:   The work spans two systems with no shared transaction. Each step is
       named, logged on completion, and paired with the compensation that
       undoes it, so a failure leaves a known state instead of a mystery.
Who:   POST /api/create-invoice (owner), the Stripe webhook, the dashboards.

Saga (strict order):
    ┌───┬────────────────────┬──────────────────────────────────────────────┐
    │ # │ step               │ on failure                                   │
    ├───┼────────────────────┼──────────────────────────────────────────────┤
    │ 1 │ client_lookup      │ abort                                        │
    │ 2 │ customer_resolved  │ abort (lookup retried on connection errors)  │
    │ 3 │ client_synced      │ abort                                        │
    │ 4 │ invoice_created    │ abort                                        │
    │ 5 │ item_attached      │ delete the draft                             │
    │ 6 │ finalized          │ delete the draft (still unfinalized)         │
    │ 7 │ sent               │ void the finalized invoice                   │
    │ 8 │ persisted          │ nothing: the customer already has the email; │
    │   │                    │ logged with the Stripe id for manual repair  │
    └───┴────────────────────┴──────────────────────────────────────────────┘

    Compensation is chosen from the last *completed* step, not the failing
    one. A compensation failure is logged and never replaces the original
    error. Whatever happened, the caller gets one InvoiceCreationFailed
    naming the failed step.

Idempotency:
    Each saga run draws a fresh key prefix; every Stripe create call uses
    "<prefix>-<step>". SDK-level resends are deduplicated by Stripe. Two
    separate requests are two invoices (only the Client is shared).
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.config import settings
from shutterdesk.exceptions import InvoiceCreationFailed, ShutterDeskError
from shutterdesk.middleware.request_id import request_id_var
from shutterdesk.models.client import Client
from shutterdesk.models.enums import InvoiceStatus
from shutterdesk.schemas.invoice import CreateInvoiceResponse, InvoiceRead, InvoiceRequest
from shutterdesk.services.billing_service import billing_service
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)


class SagaStep(str, enum.Enum):
    CLIENT_LOOKUP = "client_lookup"
    CUSTOMER_RESOLVED = "customer_resolved"
    CLIENT_SYNCED = "client_synced"
    INVOICE_CREATED = "invoice_created"
    ITEM_ATTACHED = "item_attached"
    FINALIZED = "finalized"
    SENT = "sent"
    PERSISTED = "persisted"


# Provider event type → local status
WEBHOOK_STATUS = {
    "invoice.sent": InvoiceStatus.SENT,
    "invoice.paid": InvoiceStatus.PAID,
    "invoice.voided": InvoiceStatus.VOID,
}

# paid and void are final; events never move an invoice backwards
ALLOWED_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.VOID},
    InvoiceStatus.SENT: {InvoiceStatus.PAID, InvoiceStatus.VOID},
    InvoiceStatus.PAID: set(),
    InvoiceStatus.VOID: set(),
}


@dataclass
class SagaState:
    """What is known to exist so far. Logged after every step."""

    key: str
    completed: Optional[SagaStep] = None
    client_id: Optional[int] = None
    customer_id: Optional[str] = None
    invoice_id: Optional[str] = None
    hosted_url: Optional[str] = None

    def idempotency_key(self, step: SagaStep) -> str:
        return f"{self.key}-{step.value}"

    def as_context(self) -> Dict[str, Any]:
        return {
            "last_completed_step": self.completed.value if self.completed else None,
            "client_id": self.client_id,
            "customer_id": self.customer_id,
            "invoice_id": self.invoice_id,
        }


class InvoiceService:

    # ══════════════════════════════════════════════════════════════════════
    # Creation saga
    # ══════════════════════════════════════════════════════════════════════

    async def create_invoice(
        self, db: AsyncSession, request: InvoiceRequest
    ) -> CreateInvoiceResponse:
        """
        Run the saga for one validated request.

        Raises:
            InvoiceCreationFailed: any step failed; `step` and the known
                Stripe/local ids are in its context
        """
        state = SagaState(key=uuid.uuid4().hex)
        step = SagaStep.CLIENT_LOOKUP

        try:
            client = await storage.get_client_by_email(db, request.client_email)
            state.client_id = client.id if client else None
            self._completed(state, step)

            step = SagaStep.CUSTOMER_RESOLVED
            customer_id = await billing_service.find_customer_by_email(request.client_email)
            if customer_id is None:
                customer_id = await billing_service.create_customer(
                    name=request.client_name,
                    email=request.client_email,
                    idempotency_key=state.idempotency_key(step),
                )
            state.customer_id = customer_id
            self._completed(state, step)

            step = SagaStep.CLIENT_SYNCED
            client = await self._sync_client(db, client, request, customer_id)
            state.client_id = client.id
            self._completed(state, step)

            step = SagaStep.INVOICE_CREATED
            state.invoice_id = await billing_service.create_invoice(
                customer_id=customer_id,
                idempotency_key=state.idempotency_key(step),
            )
            self._completed(state, step)

            step = SagaStep.ITEM_ATTACHED
            await billing_service.attach_line_item(
                customer_id=customer_id,
                invoice_id=state.invoice_id,
                amount_minor=request.amount_minor_units,
                description=request.service_description,
                idempotency_key=state.idempotency_key(step),
            )
            self._completed(state, step)

            step = SagaStep.FINALIZED
            await billing_service.finalize_invoice(
                state.invoice_id, idempotency_key=state.idempotency_key(step)
            )
            self._completed(state, step)

            step = SagaStep.SENT
            sent = await billing_service.send_invoice(
                state.invoice_id, idempotency_key=state.idempotency_key(step)
            )
            state.hosted_url = sent.hosted_url
            self._completed(state, step)

            step = SagaStep.PERSISTED
            if sent.due_date:
                due_date = datetime.fromtimestamp(sent.due_date, tz=timezone.utc)
            else:
                due_date = datetime.now(timezone.utc) + timedelta(
                    days=settings.invoice_days_until_due
                )
            await storage.create_invoice(
                db,
                client_id=client.id,
                external_invoice_id=state.invoice_id,
                amount=request.amount,
                currency=settings.stripe_currency,
                description=request.service_description,
                status=InvoiceStatus.SENT,
                hosted_url=sent.hosted_url,
                due_date=due_date,
            )
            await db.commit()
            self._completed(state, step)

        except Exception as exc:
            await db.rollback()
            await self._compensate(state, step, exc)
            context = state.as_context()
            context["cause"] = str(exc) or type(exc).__name__
            raise InvoiceCreationFailed(
                message=self._failure_message(step, state, exc),
                step=step.value,
                context=context,
            ) from exc

        return CreateInvoiceResponse(
            success=True,
            invoice_url=state.hosted_url,
            invoice_id=state.invoice_id,
        )

    async def _sync_client(
        self,
        db: AsyncSession,
        client: Optional[Client],
        request: InvoiceRequest,
        customer_id: str,
    ) -> Client:
        """Create the local Client, or attach a missing Stripe customer id."""
        if client is None:
            try:
                client = await storage.create_client(
                    db,
                    name=request.client_name,
                    email=request.client_email,
                    external_customer_id=customer_id,
                )
                await db.commit()
                return client
            except IntegrityError:
                # A concurrent request created the row first
                await db.rollback()
                client = await storage.get_client_by_email(db, request.client_email)
                if client is None:
                    raise

        if not client.external_customer_id:
            await storage.update_client_customer_id(db, client, customer_id)
            await db.commit()
        elif client.external_customer_id != customer_id:
            logger.warning(
                "Client %d is linked to customer %s but Stripe resolved %s",
                client.id, client.external_customer_id, customer_id,
            )
        return client

    def _completed(self, state: SagaState, step: SagaStep) -> None:
        state.completed = step
        logger.info(
            "[%s] invoice saga %s completed: client=%s customer=%s invoice=%s",
            request_id_var.get(""),
            step.value,
            state.client_id,
            state.customer_id,
            state.invoice_id,
        )

    async def _compensate(self, state: SagaState, failed: SagaStep, exc: Exception) -> None:
        rid = request_id_var.get("")
        logger.error(
            "[%s] invoice saga failed at %s: %s | state=%s",
            rid, failed.value, str(exc), state.as_context(),
        )

        if state.invoice_id is None:
            return

        if state.completed == SagaStep.SENT:
            logger.critical(
                "[%s] Stripe invoice %s was sent to customer %s but not recorded locally; "
                "manual reconciliation required",
                rid, state.invoice_id, state.customer_id,
            )
            return

        try:
            if state.completed == SagaStep.FINALIZED:
                await billing_service.void_invoice(state.invoice_id)
                logger.warning("[%s] Voided Stripe invoice %s", rid, state.invoice_id)
            else:
                await billing_service.delete_draft(state.invoice_id)
                logger.warning("[%s] Deleted draft Stripe invoice %s", rid, state.invoice_id)
        except Exception:
            logger.exception(
                "[%s] Compensation failed for Stripe invoice %s", rid, state.invoice_id
            )

    def _failure_message(self, step: SagaStep, state: SagaState, exc: Exception) -> str:
        """
        Headline for the error envelope.

        Our own errors (Stripe failures included) keep their message. Anything
        else gets a fixed sentence; its text still reaches the owner through
        the `cause` entry of the error details.
        """
        if step == SagaStep.PERSISTED:
            return (
                f"Invoice {state.invoice_id} was sent but could not be recorded. "
                "It needs to be added manually."
            )
        if isinstance(exc, ShutterDeskError):
            return exc.message
        return "Failed to create invoice"

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def list_all(self, db: AsyncSession) -> List[InvoiceRead]:
        invoices = await storage.list_invoices(db)
        return [InvoiceRead.model_validate(i) for i in invoices]

    async def list_for_email(self, db: AsyncSession, email: str) -> List[InvoiceRead]:
        invoices = await storage.list_invoices_for_email(db, email)
        return [InvoiceRead.model_validate(i) for i in invoices]

    # ══════════════════════════════════════════════════════════════════════
    # Provider reconciliation
    # ══════════════════════════════════════════════════════════════════════

    async def apply_provider_event(
        self, db: AsyncSession, event_type: str, external_invoice_id: Optional[str]
    ) -> bool:
        """
        Move a local invoice to the status a Stripe event implies.

        Returns True when a row changed. Unhandled event types, unknown
        invoice ids and events that would move a paid or void invoice
        backwards (Stripe may deliver late or twice) are acknowledged
        without error.
        """
        status = WEBHOOK_STATUS.get(event_type)
        if status is None or not external_invoice_id:
            logger.debug("Ignoring Stripe event %s", event_type)
            return False

        invoice = await storage.get_invoice_by_external_id(db, external_invoice_id)
        if invoice is None:
            logger.warning(
                "Stripe event %s for unknown invoice %s", event_type, external_invoice_id
            )
            return False

        if invoice.status == status:
            return False
        if status not in ALLOWED_TRANSITIONS[invoice.status]:
            logger.warning(
                "Ignoring out-of-order Stripe event %s for invoice %s: already %s",
                event_type, external_invoice_id, invoice.status.value,
            )
            return False

        previous = invoice.status
        await storage.update_invoice_status(db, invoice, status)
        await db.commit()
        logger.info(
            "Invoice %d status %s → %s (%s)",
            invoice.id, previous.value, status.value, event_type,
        )
        return True


invoice_service = InvoiceService()
