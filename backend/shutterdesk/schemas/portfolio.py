"""
ShutterDesk Backend - Portfolio Schemas
=========================================

What:  Read model for the public gallery and the owner's create/update forms.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from shutterdesk.schemas.common import CamelModel


class PortfolioItemRead(CamelModel):
    id: int
    title: str
    category: str
    description: str
    image_url: str
    featured: int
    display_order: int
    created_at: datetime


class PortfolioItemCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    image_url: str = Field(min_length=1)
    featured: int = Field(default=0, ge=0, le=1)
    display_order: int = Field(default=0)


class PortfolioItemUpdate(CamelModel):
    """Partial update; only keys present in the request body are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    image_url: Optional[str] = Field(default=None, min_length=1)
    featured: Optional[int] = Field(default=None, ge=0, le=1)
    display_order: Optional[int] = None
