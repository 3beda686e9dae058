"""
ShutterDesk Backend - Portfolio Route Handlers
================================================

What:  Public gallery listing plus owner-only gallery management, and the
       client-gallery placeholder.

Caching:
    GET /api/portfolio is public and changes rarely; a short shared cache
    lets a CDN absorb traffic spikes without serving stale galleries for long.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.database import get_db_session
from shutterdesk.deps import require_role
from shutterdesk.models.enums import UserRole
from shutterdesk.schemas.common import ErrorResponse
from shutterdesk.schemas.portfolio import (
    PortfolioItemCreate,
    PortfolioItemRead,
    PortfolioItemUpdate,
)
from shutterdesk.services.portfolio_service import portfolio_service
from shutterdesk.services.session_service import Principal

router = APIRouter(prefix="/api", tags=["Portfolio"])


@router.get(
    "/portfolio",
    response_model=List[PortfolioItemRead],
    summary="Gallery items ordered by display order",
)
async def list_portfolio(
    response: Response,
    category: Optional[str] = Query(
        default=None,
        description="Exact category label; 'All' or omitted returns every item",
    ),
    featured: bool = Query(default=False, description="Only items featured on the home page"),
    db: AsyncSession = Depends(get_db_session),
) -> List[PortfolioItemRead]:
    items = await portfolio_service.list_items(db, category=category, featured_only=featured)
    response.headers["Cache-Control"] = "public, max-age=60"
    return items


@router.post(
    "/portfolio",
    response_model=PortfolioItemRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_portfolio_item(
    payload: PortfolioItemCreate,
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> PortfolioItemRead:
    return await portfolio_service.create_item(db, payload)


@router.patch(
    "/portfolio/{item_id}",
    response_model=PortfolioItemRead,
    responses={404: {"model": ErrorResponse}},
)
async def update_portfolio_item(
    item_id: int,
    payload: PortfolioItemUpdate,
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> PortfolioItemRead:
    return await portfolio_service.update_item(db, item_id, payload)


@router.delete(
    "/portfolio/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_portfolio_item(
    item_id: int,
    principal: Principal = Depends(require_role(UserRole.OWNER)),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await portfolio_service.delete_item(db, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/client/portfolio",
    response_model=List[PortfolioItemRead],
    summary="Private client gallery (not yet available)",
)
async def client_portfolio(
    principal: Principal = Depends(require_role(UserRole.CLIENT)),
) -> List[PortfolioItemRead]:
    # Client galleries have no storage yet; the dashboard shows an empty state
    return []
