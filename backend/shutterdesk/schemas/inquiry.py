"""
ShutterDesk Backend - Contact Inquiry Schemas
===============================================

What:  Public contact form, client project request form, owner status
       update, and the inquiry read model.

Two entry points create the same row:
    ContactInquiryCreate  - anonymous visitor, types name and email
    ClientRequestCreate   - logged-in client; name and email come from the
                            session, and the message must be more detailed
"""

from datetime import datetime

from pydantic import field_validator

from shutterdesk.models.enums import InquiryStatus
from shutterdesk.schemas.auth import check_email
from shutterdesk.schemas.common import CamelModel


class _ProjectDetails(CamelModel):
    project_type: str
    desired_date: str
    message: str

    @field_validator("project_type")
    @classmethod
    def validate_project_type(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please select a project type")
        return v

    @field_validator("desired_date")
    @classmethod
    def validate_desired_date(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please select a date")
        return v


class ContactInquiryCreate(_ProjectDetails):
    full_name: str
    email: str

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return check_email(v)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Message must be at least 10 characters")
        return v


class ClientRequestCreate(_ProjectDetails):
    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 20:
            raise ValueError(
                "Please provide more details about your project (at least 20 characters)"
            )
        return v


class InquiryStatusUpdate(CamelModel):
    status: InquiryStatus


class ContactInquiryRead(CamelModel):
    id: int
    full_name: str
    email: str
    project_type: str
    desired_date: str
    message: str
    status: InquiryStatus
    created_at: datetime


class InquiryResponse(CamelModel):
    success: bool = True
    inquiry: ContactInquiryRead
