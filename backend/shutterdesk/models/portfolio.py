"""
ShutterDesk Backend - PortfolioItem SQLAlchemy Model
======================================================

What:  ORM model for the `portfolio_items` table (public gallery).
Read-heavy and owner-managed. Listings are ordered by display_order ASC.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shutterdesk.database import Base


class PortfolioItem(Base):
    __tablename__ = "portfolio_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Free-form label ("Weddings", "Portraits", "Realtor/Home Photography", ...)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)

    # 0 = regular, 1 = featured on the home page
    featured: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_portfolio_items_category_order", "category", "display_order"),
    )

    def __repr__(self) -> str:
        return f"<PortfolioItem(id={self.id}, category='{self.category}')>"
