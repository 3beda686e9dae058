"""
ShutterDesk Backend - Owner Dashboard Route
=============================================

What:  GET /api/owner/dashboard-summary (owner only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.database import get_db_session
from shutterdesk.deps import require_role
from shutterdesk.models.enums import UserRole
from shutterdesk.schemas.common import DashboardSummary
from shutterdesk.services.dashboard_service import dashboard_service
from shutterdesk.services.session_service import Principal

router = APIRouter(prefix="/api/owner", tags=["Dashboard"])


@router.get("/dashboard-summary", response_model=DashboardSummary)
async def dashboard_summary(
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> DashboardSummary:
    return await dashboard_service.summary(db)
