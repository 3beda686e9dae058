"""
ShutterDesk Backend - Invoice Schemas
=======================================

What:  Input contract of the invoice saga and the invoice read model.
When:  InvoiceRequest is validated before the saga starts. A request that
       fails here never reaches Stripe.

Amount:
    Major units (dollars) as a Decimal, quantized to cents with HALF_UP.
    The minor-unit value sent to Stripe is derived from the quantized
    amount, so the local row and the Stripe line item always agree.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import field_validator

from shutterdesk.models.enums import InvoiceStatus
from shutterdesk.schemas.auth import check_email
from shutterdesk.schemas.common import CamelModel

CENT = Decimal("0.01")

# Numeric(10, 2)
MAX_AMOUNT = Decimal("99999999.99")


class InvoiceRequest(CamelModel):
    client_name: str
    client_email: str
    service_description: str
    amount: Decimal

    @field_validator("client_name")
    @classmethod
    def validate_client_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Client name must be at least 2 characters")
        return v

    @field_validator("client_email")
    @classmethod
    def validate_client_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("service_description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Description must be at least 10 characters")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a positive number")
        v = v.quantize(CENT, rounding=ROUND_HALF_UP)
        if v <= 0:
            raise ValueError("Amount must be a positive number")
        if v > MAX_AMOUNT:
            raise ValueError("Amount is too large")
        return v

    @property
    def amount_minor_units(self) -> int:
        """Cents for the Stripe line item."""
        return int((self.amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


class InvoiceRead(CamelModel):
    id: int
    client_id: int
    external_invoice_id: str
    amount: Decimal
    currency: str
    description: str
    status: InvoiceStatus
    hosted_url: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CreateInvoiceResponse(CamelModel):
    """`invoice_id` is the Stripe invoice id (in_...), not the local row id."""
    success: bool = True
    invoice_url: Optional[str] = None
    invoice_id: str
