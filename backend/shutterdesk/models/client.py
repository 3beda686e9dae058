"""
ShutterDesk Backend - Client SQLAlchemy Model
===============================================

What:  ORM model for the `clients` table: billing parties.
Why separate from User: a client can be invoiced before (or without) ever
       creating a login. The two are correlated by email only, see
       services/correlation.py.

Lifecycle:
    1. Created lazily the first time an invoice is requested for an email
    2. external_customer_id attached when the Stripe customer becomes known
    3. Never deleted
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Unique: concurrent first invoices for one email race on this constraint
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    # Stripe customer id (cus_...)
    external_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, customer='{self.external_customer_id}')>"
