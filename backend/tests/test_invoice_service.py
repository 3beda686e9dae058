"""
ShutterDesk Backend - Invoice Saga Unit Tests
===============================================

What:  Tests for InvoiceService: the Stripe invoice saga, its compensations,
       and webhook status reconciliation.
How:   Stripe is replaced by the `mock_billing` fixture; the local side is
       a real SQLite database so committed state can be inspected.

What we test:
    ✅ Happy path records a sent invoice and links the client to Stripe
    ✅ An existing Stripe customer is reused
    ✅ Repeat invoices share one Client row
    ✅ A Client missing its Stripe id gets it attached
    ✅ Compensation per failing step (delete draft / void / nothing)
    ✅ A failing compensation never hides the original error
    ✅ Due date comes from Stripe, or defaults to the configured term
    ✅ Webhook events move invoice status forward only
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from shutterdesk.config import settings
from shutterdesk.exceptions import ExternalServiceError, InvoiceCreationFailed
from shutterdesk.models.client import Client
from shutterdesk.models.enums import InvoiceStatus
from shutterdesk.models.invoice import Invoice
from shutterdesk.schemas.invoice import InvoiceRequest
from shutterdesk.services.billing_service import SentInvoice
from shutterdesk.services.invoice_service import InvoiceService, SagaStep
from shutterdesk.storage import storage


def _request(email="jane@example.com", amount="450.00"):
    return InvoiceRequest(
        client_name="Jane Doe",
        client_email=email,
        service_description="Wedding photography, full day coverage",
        amount=Decimal(amount),
    )


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(model.id)))).scalar()


async def _stored_invoice(session_factory) -> Invoice:
    async with session_factory() as session:
        return (await session.execute(select(Invoice))).scalar_one()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TestInvoiceSagaSuccess:

    def setup_method(self):
        self.service = InvoiceService()

    @pytest.mark.asyncio
    async def test_creates_and_records_sent_invoice(self, db_session, session_factory, mock_billing):
        result = await self.service.create_invoice(db_session, _request())

        assert result.success is True
        assert result.invoice_id == "in_test_1"
        assert result.invoice_url == "https://invoice.stripe.com/i/in_test_1"

        mock_billing.attach_line_item.assert_awaited_once()
        assert mock_billing.attach_line_item.await_args.kwargs["amount_minor"] == 45000

        async with session_factory() as session:
            invoice = (await session.execute(select(Invoice))).scalar_one()
            client = (await session.execute(select(Client))).scalar_one()
        assert invoice.external_invoice_id == "in_test_1"
        assert invoice.status == InvoiceStatus.SENT
        assert invoice.amount == Decimal("450.00")
        assert invoice.due_date is not None
        assert invoice.client_id == client.id
        assert client.external_customer_id == "cus_test_1"

    @pytest.mark.asyncio
    async def test_due_date_defaults_to_configured_term(self, db_session, session_factory, mock_billing):
        before = datetime.now(timezone.utc)
        await self.service.create_invoice(db_session, _request())
        after = datetime.now(timezone.utc)

        due = _as_utc((await _stored_invoice(session_factory)).due_date)
        assert settings.invoice_days_until_due == 30
        assert before + timedelta(days=30) - timedelta(seconds=1) <= due
        assert due <= after + timedelta(days=30) + timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_due_date_taken_from_stripe(self, db_session, session_factory, mock_billing):
        stripe_due = datetime(2026, 11, 18, 12, 0, tzinfo=timezone.utc)
        mock_billing.send_invoice.side_effect = None
        mock_billing.send_invoice.return_value = SentInvoice(
            id="in_test_1",
            hosted_url="https://invoice.stripe.com/i/in_test_1",
            due_date=int(stripe_due.timestamp()),
        )

        await self.service.create_invoice(db_session, _request())

        assert _as_utc((await _stored_invoice(session_factory)).due_date) == stripe_due

    @pytest.mark.asyncio
    async def test_every_stripe_write_gets_a_step_key(self, db_session, mock_billing):
        await self.service.create_invoice(db_session, _request())

        keys = [
            mock_billing.create_customer.await_args.kwargs["idempotency_key"],
            mock_billing.create_invoice.await_args.kwargs["idempotency_key"],
            mock_billing.attach_line_item.await_args.kwargs["idempotency_key"],
            mock_billing.finalize_invoice.await_args.kwargs["idempotency_key"],
            mock_billing.send_invoice.await_args.kwargs["idempotency_key"],
        ]
        assert keys[0].endswith("-customer_resolved")
        assert keys[-1].endswith("-sent")
        assert len(set(keys)) == 5
        # One prefix per saga run
        assert len({k.rsplit("-", 1)[0] for k in keys}) == 1

    @pytest.mark.asyncio
    async def test_existing_stripe_customer_is_reused(self, db_session, session_factory, mock_billing):
        mock_billing.find_customer_by_email.return_value = "cus_existing"

        await self.service.create_invoice(db_session, _request())

        mock_billing.create_customer.assert_not_awaited()
        async with session_factory() as session:
            client = (await session.execute(select(Client))).scalar_one()
        assert client.external_customer_id == "cus_existing"

    @pytest.mark.asyncio
    async def test_repeat_invoices_share_one_client(self, db_session, session_factory, mock_billing):
        await self.service.create_invoice(db_session, _request())
        mock_billing.find_customer_by_email.return_value = "cus_test_1"
        await self.service.create_invoice(db_session, _request(email="JANE@example.com"))

        assert await _count(session_factory, Client) == 1
        assert await _count(session_factory, Invoice) == 2

    @pytest.mark.asyncio
    async def test_client_without_customer_id_is_repaired(self, db_session, session_factory, mock_billing):
        async with session_factory() as session:
            await storage.create_client(session, name="Jane Doe", email="jane@example.com")
            await session.commit()

        await self.service.create_invoice(db_session, _request())

        async with session_factory() as session:
            client = (await session.execute(select(Client))).scalar_one()
        assert client.external_customer_id == "cus_test_1"


class TestInvoiceSagaCompensation:

    def setup_method(self):
        self.service = InvoiceService()

    @pytest.mark.asyncio
    async def test_lookup_failure_aborts_without_compensation(self, db_session, session_factory, mock_billing):
        mock_billing.find_customer_by_email.side_effect = ExternalServiceError(
            message="Could not connect to Stripe", service="stripe"
        )

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.CUSTOMER_RESOLVED.value
        assert exc_info.value.message == "Could not connect to Stripe"
        mock_billing.create_invoice.assert_not_awaited()
        mock_billing.delete_draft.assert_not_awaited()
        mock_billing.void_invoice.assert_not_awaited()
        assert await _count(session_factory, Client) == 0

    @pytest.mark.asyncio
    async def test_attach_failure_deletes_draft(self, db_session, session_factory, mock_billing):
        mock_billing.attach_line_item.side_effect = ExternalServiceError(
            message="Amount must be at least $0.50 usd", service="stripe"
        )

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.ITEM_ATTACHED.value
        assert exc_info.value.message == "Amount must be at least $0.50 usd"
        assert exc_info.value.context["invoice_id"] == "in_test_1"
        assert exc_info.value.context["last_completed_step"] == SagaStep.INVOICE_CREATED.value
        mock_billing.delete_draft.assert_awaited_once_with("in_test_1")
        mock_billing.void_invoice.assert_not_awaited()
        assert await _count(session_factory, Invoice) == 0

    @pytest.mark.asyncio
    async def test_finalize_failure_deletes_draft(self, db_session, mock_billing):
        mock_billing.finalize_invoice.side_effect = ExternalServiceError(message="boom")

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.FINALIZED.value
        mock_billing.delete_draft.assert_awaited_once_with("in_test_1")
        mock_billing.void_invoice.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_failure_voids_finalized_invoice(self, db_session, mock_billing):
        mock_billing.send_invoice.side_effect = ExternalServiceError(message="Send failed")

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.SENT.value
        mock_billing.void_invoice.assert_awaited_once_with("in_test_1")
        mock_billing.delete_draft.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persist_failure_is_not_compensated(self, db_session, session_factory, mock_billing):
        with patch.object(
            storage, "create_invoice", AsyncMock(side_effect=SQLAlchemyError("disk full"))
        ):
            with pytest.raises(InvoiceCreationFailed) as exc_info:
                await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.PERSISTED.value
        assert "in_test_1" in exc_info.value.message
        mock_billing.delete_draft.assert_not_awaited()
        mock_billing.void_invoice.assert_not_awaited()
        assert await _count(session_factory, Invoice) == 0

    @pytest.mark.asyncio
    async def test_compensation_failure_keeps_original_error(self, db_session, mock_billing):
        mock_billing.attach_line_item.side_effect = ExternalServiceError(message="Attach failed")
        mock_billing.delete_draft.side_effect = ExternalServiceError(message="Delete failed")

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.step == SagaStep.ITEM_ATTACHED.value
        assert exc_info.value.message == "Attach failed"

    @pytest.mark.asyncio
    async def test_unexpected_error_gets_generic_message(self, db_session, mock_billing):
        mock_billing.create_invoice.side_effect = RuntimeError("socket closed")

        with pytest.raises(InvoiceCreationFailed) as exc_info:
            await self.service.create_invoice(db_session, _request())

        assert exc_info.value.message == "Failed to create invoice"
        assert exc_info.value.context["cause"] == "socket closed"
        assert exc_info.value.step == SagaStep.INVOICE_CREATED.value
        mock_billing.delete_draft.assert_not_awaited()


class TestApplyProviderEvent:

    def setup_method(self):
        self.service = InvoiceService()

    @pytest.mark.asyncio
    async def test_paid_event_marks_invoice_paid(self, db_session, session_factory, mock_billing):
        await self.service.create_invoice(db_session, _request())

        changed = await self.service.apply_provider_event(db_session, "invoice.paid", "in_test_1")

        assert changed is True
        async with session_factory() as session:
            invoice = (await session.execute(select(Invoice))).scalar_one()
        assert invoice.status == InvoiceStatus.PAID

    @pytest.mark.asyncio
    async def test_repeated_event_is_a_noop(self, db_session, mock_billing):
        await self.service.create_invoice(db_session, _request())

        assert await self.service.apply_provider_event(db_session, "invoice.sent", "in_test_1") is False

    @pytest.mark.asyncio
    async def test_unhandled_type_and_unknown_invoice_are_ignored(self, db_session):
        assert await self.service.apply_provider_event(db_session, "customer.created", "cus_1") is False
        assert await self.service.apply_provider_event(db_session, "invoice.paid", "in_missing") is False
        assert await self.service.apply_provider_event(db_session, "invoice.paid", None) is False

    @pytest.mark.asyncio
    async def test_late_sent_event_does_not_reopen_paid_invoice(
        self, db_session, session_factory, mock_billing
    ):
        await self.service.create_invoice(db_session, _request())
        await self.service.apply_provider_event(db_session, "invoice.paid", "in_test_1")

        changed = await self.service.apply_provider_event(db_session, "invoice.sent", "in_test_1")

        assert changed is False
        assert (await _stored_invoice(session_factory)).status == InvoiceStatus.PAID

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "first, late",
        [
            ("invoice.voided", "invoice.sent"),
            ("invoice.voided", "invoice.paid"),
            ("invoice.paid", "invoice.voided"),
        ],
    )
    async def test_final_statuses_are_kept(self, db_session, session_factory, mock_billing, first, late):
        await self.service.create_invoice(db_session, _request())
        await self.service.apply_provider_event(db_session, first, "in_test_1")
        settled = (await _stored_invoice(session_factory)).status

        assert await self.service.apply_provider_event(db_session, late, "in_test_1") is False
        assert (await _stored_invoice(session_factory)).status == settled
