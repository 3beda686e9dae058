"""
ShutterDesk Backend - Invoice SQLAlchemy Model
================================================

What:  ORM model for the `invoices` table: local mirror of Stripe invoices.
Who:   Written only by the invoice saga (InvoiceService.create_invoice) and
       the Stripe webhook (status updates); read by the dashboards.

Status:
    Set to 'sent' when the saga persists the row. Afterwards it changes
    only through the Stripe webhook (invoice.paid → paid,
    invoice.voided → void). Without the webhook configured the value is
    stale after creation.

Index on created_at DESC: every listing is newest-first.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base
from shutterdesk.models.enums import InvoiceStatus, string_enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False, index=True,
    )

    # Stripe invoice id (in_...), the join key to the provider's record
    external_invoice_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Major units (dollars), two decimal places
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[InvoiceStatus] = mapped_column(
        string_enum(InvoiceStatus),
        nullable=False,
        default=InvoiceStatus.DRAFT,
    )

    # Stripe-hosted payment page
    hosted_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_invoices_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, external='{self.external_invoice_id}', "
            f"status='{self.status}')>"
        )
