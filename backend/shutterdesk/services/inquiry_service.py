"""
ShutterDesk Backend - Contact Inquiry Service
===============================================

What:  Intake of contact-form and client project requests, plus the owner's
       inquiry pipeline (list, status changes).
How:   Both intake paths write the same ContactInquiry row with status=new.
       A logged-in client's request takes name and email from the User, so
       it correlates with that client's dashboard by construction.
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.exceptions import NotFoundError
from shutterdesk.models.enums import InquiryStatus
from shutterdesk.models.user import User
from shutterdesk.schemas.inquiry import (
    ClientRequestCreate,
    ContactInquiryCreate,
    ContactInquiryRead,
)
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)


class InquiryService:

    async def submit_contact_form(
        self, db: AsyncSession, payload: ContactInquiryCreate
    ) -> ContactInquiryRead:
        inquiry = await storage.create_contact_inquiry(
            db,
            full_name=payload.full_name,
            email=payload.email,
            project_type=payload.project_type,
            desired_date=payload.desired_date,
            message=payload.message,
        )
        await db.commit()
        logger.info("Contact inquiry %d received (%s)", inquiry.id, inquiry.project_type)
        return ContactInquiryRead.model_validate(inquiry)

    async def submit_client_request(
        self, db: AsyncSession, user: User, payload: ClientRequestCreate
    ) -> ContactInquiryRead:
        inquiry = await storage.create_contact_inquiry(
            db,
            full_name=user.name,
            email=user.email,
            project_type=payload.project_type,
            desired_date=payload.desired_date,
            message=payload.message,
        )
        await db.commit()
        logger.info("Project request %d submitted by user %d", inquiry.id, user.id)
        return ContactInquiryRead.model_validate(inquiry)

    async def list_all(self, db: AsyncSession) -> List[ContactInquiryRead]:
        inquiries = await storage.list_contact_inquiries(db)
        return [ContactInquiryRead.model_validate(i) for i in inquiries]

    async def list_for_email(self, db: AsyncSession, email: str) -> List[ContactInquiryRead]:
        inquiries = await storage.list_contact_inquiries_for_email(db, email)
        return [ContactInquiryRead.model_validate(i) for i in inquiries]

    async def set_status(
        self, db: AsyncSession, inquiry_id: int, status: InquiryStatus
    ) -> ContactInquiryRead:
        inquiry = await storage.get_contact_inquiry(db, inquiry_id)
        if inquiry is None:
            raise NotFoundError(resource="Inquiry", resource_id=str(inquiry_id))
        previous = inquiry.status
        await storage.update_contact_inquiry_status(db, inquiry, status)
        await db.commit()
        logger.info("Inquiry %d status %s → %s", inquiry.id, previous.value, status.value)
        return ContactInquiryRead.model_validate(inquiry)


inquiry_service = InquiryService()
