"""
ShutterDesk Backend - ContactInquiry SQLAlchemy Model
=======================================================

What:  ORM model for the `contact_inquiries` table.
Who:   Created by the public contact form and by logged-in clients
       (project requests); status moved by the owner.

Status flow (owner-driven, any order allowed):
    new → contacted → converted → closed
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base
from shutterdesk.models.enums import InquiryStatus, string_enum


class ContactInquiry(Base):
    __tablename__ = "contact_inquiries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    # wedding, portrait, event, commercial, realtor, ...
    project_type: Mapped[str] = mapped_column(String(100), nullable=False)

    # Free text as typed by the visitor; not parsed as a calendar date
    desired_date: Mapped[str] = mapped_column(String(100), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[InquiryStatus] = mapped_column(
        string_enum(InquiryStatus),
        nullable=False,
        default=InquiryStatus.NEW,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_contact_inquiries_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<ContactInquiry(id={self.id}, status='{self.status}')>"
