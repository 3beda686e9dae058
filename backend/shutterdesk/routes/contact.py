"""
ShutterDesk Backend - Contact & Project Request Route Handlers
================================================================

What:
    POST  /api/contact                 public contact form
    GET   /api/contact-inquiries       owner: every inquiry, newest first
    PATCH /api/contact-inquiries/{id}  owner: move an inquiry along the pipeline
    GET   /api/client/requests         client: own inquiries (matched by email)
    POST  /api/client/requests         client: new project request
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.database import get_db_session
from shutterdesk.deps import require_role
from shutterdesk.models.enums import UserRole
from shutterdesk.schemas.common import ErrorResponse
from shutterdesk.schemas.inquiry import (
    ClientRequestCreate,
    ContactInquiryCreate,
    ContactInquiryRead,
    InquiryResponse,
    InquiryStatusUpdate,
)
from shutterdesk.services.inquiry_service import inquiry_service
from shutterdesk.services.session_service import Principal

router = APIRouter(prefix="/api", tags=["Contact"])


@router.post(
    "/contact",
    response_model=InquiryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Submit the public contact form",
)
async def submit_contact(
    payload: ContactInquiryCreate,
    db: AsyncSession = Depends(get_db_session),
) -> InquiryResponse:
    inquiry = await inquiry_service.submit_contact_form(db, payload)
    return InquiryResponse(inquiry=inquiry)


@router.get("/contact-inquiries", response_model=List[ContactInquiryRead])
async def list_inquiries(
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContactInquiryRead]:
    return await inquiry_service.list_all(db)


@router.patch(
    "/contact-inquiries/{inquiry_id}",
    response_model=InquiryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Change an inquiry's status",
)
async def update_inquiry_status(
    inquiry_id: int,
    payload: InquiryStatusUpdate,
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> InquiryResponse:
    inquiry = await inquiry_service.set_status(db, inquiry_id, payload.status)
    return InquiryResponse(inquiry=inquiry)


@router.get("/client/requests", response_model=List[ContactInquiryRead])
async def list_my_requests(
    principal: Principal = Depends(require_role(UserRole.CLIENT)),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContactInquiryRead]:
    return await inquiry_service.list_for_email(db, principal.user.email)


@router.post(
    "/client/requests",
    response_model=InquiryResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Request a new project as a logged-in client",
)
async def submit_project_request(
    payload: ClientRequestCreate,
    principal: Principal = Depends(require_role(UserRole.CLIENT)),
    db: AsyncSession = Depends(get_db_session),
) -> InquiryResponse:
    inquiry = await inquiry_service.submit_client_request(db, principal.user, payload)
    return InquiryResponse(inquiry=inquiry)
