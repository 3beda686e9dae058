"""
ShutterDesk Backend - Portfolio Service
=========================================

What:  Public gallery listing and owner-side gallery management.

Category filter:
    Exact, case-sensitive match on the stored label. "All" (or no value)
    means no filter. A label nobody uses yields an empty list, not an error.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.exceptions import NotFoundError, PersistenceError
from shutterdesk.models.portfolio import PortfolioItem
from shutterdesk.schemas.portfolio import (
    PortfolioItemCreate,
    PortfolioItemRead,
    PortfolioItemUpdate,
)
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class PortfolioService:

    async def list_items(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        featured_only: bool = False,
    ) -> List[PortfolioItemRead]:
        if category == ALL_CATEGORIES or not category:
            category = None
        try:
            items = await storage.list_portfolio_items(
                db, category=category, featured_only=featured_only
            )
        except SQLAlchemyError as e:
            logger.error("Portfolio listing failed (category=%s): %s", category, str(e))
            raise PersistenceError(
                message="Could not load the portfolio. Please try again.",
                context={"category": category, "error_type": type(e).__name__},
            )
        return [PortfolioItemRead.model_validate(item) for item in items]

    async def create_item(self, db: AsyncSession, payload: PortfolioItemCreate) -> PortfolioItemRead:
        item = await storage.create_portfolio_item(db, **payload.model_dump())
        await db.commit()
        logger.info("Portfolio item %d created in %s", item.id, item.category)
        return PortfolioItemRead.model_validate(item)

    async def update_item(
        self, db: AsyncSession, item_id: int, payload: PortfolioItemUpdate
    ) -> PortfolioItemRead:
        item = await self._get_or_404(db, item_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if changes:
            await storage.update_portfolio_item(db, item, changes)
            await db.commit()
            logger.info("Portfolio item %d updated: %s", item.id, sorted(changes))
        return PortfolioItemRead.model_validate(item)

    async def delete_item(self, db: AsyncSession, item_id: int) -> None:
        item = await self._get_or_404(db, item_id)
        await storage.delete_portfolio_item(db, item)
        await db.commit()
        logger.info("Portfolio item %d deleted", item_id)

    async def _get_or_404(self, db: AsyncSession, item_id: int) -> PortfolioItem:
        item = await storage.get_portfolio_item(db, item_id)
        if item is None:
            raise NotFoundError(resource="Portfolio item", resource_id=str(item_id))
        return item


portfolio_service = PortfolioService()
