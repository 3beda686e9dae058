"""
ShutterDesk Backend - Invoice Route Handlers
==============================================

What:  POST /api/create-invoice (owner), GET /api/invoices (owner),
       GET /api/client/invoices (client).
How:   The request body is validated before the saga starts, so a bad
       amount or description never produces a Stripe call.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.database import get_db_session
from shutterdesk.deps import require_role
from shutterdesk.models.enums import UserRole
from shutterdesk.schemas.common import ErrorResponse
from shutterdesk.schemas.invoice import CreateInvoiceResponse, InvoiceRead, InvoiceRequest
from shutterdesk.services.invoice_service import invoice_service
from shutterdesk.services.session_service import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Invoices"])


@router.post(
    "/create-invoice",
    response_model=CreateInvoiceResponse,
    responses={
        400: {"description": "Invalid invoice request", "model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"description": "Invoice saga failed", "model": ErrorResponse},
    },
    summary="Create and send a Stripe invoice",
)
async def create_invoice(
    payload: InvoiceRequest,
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> CreateInvoiceResponse:
    """
    Runs the invoice saga: client lookup, Stripe customer, draft invoice,
    line item, finalize, send, local record. See InvoiceService.
    """
    return await invoice_service.create_invoice(db, payload)


@router.get("/invoices", response_model=List[InvoiceRead], summary="All invoices, newest first")
async def list_invoices(
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvoiceRead]:
    return await invoice_service.list_all(db)


@router.get(
    "/client/invoices",
    response_model=List[InvoiceRead],
    summary="Invoices billed to the logged-in client",
)
async def list_my_invoices(
    principal: Principal = Depends(require_role(UserRole.CLIENT)),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvoiceRead]:
    return await invoice_service.list_for_email(db, principal.user.email)
