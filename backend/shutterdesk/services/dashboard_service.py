"""
ShutterDesk Backend - Owner Dashboard Summary
===============================================

What:  The four headline numbers of the owner dashboard.

    newInquiries    inquiries with status new
    activeProjects  inquiries with status contacted or converted
    totalRevenue    sum of paid invoices
    pendingRevenue  sum of sent (unpaid) invoices

Revenue figures depend on invoice statuses, which only move when the
Stripe webhook is configured.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.exceptions import PersistenceError
from shutterdesk.models.enums import InquiryStatus, InvoiceStatus
from shutterdesk.schemas.common import DashboardSummary
from shutterdesk.storage import storage

logger = logging.getLogger(__name__)


class DashboardService:

    async def summary(self, db: AsyncSession) -> DashboardSummary:
        """
        Raises:
            PersistenceError: any of the aggregate queries failed
        """
        try:
            return DashboardSummary(
                new_inquiries=await storage.count_contact_inquiries(db, InquiryStatus.NEW),
                active_projects=await storage.count_contact_inquiries(
                    db, InquiryStatus.CONTACTED, InquiryStatus.CONVERTED
                ),
                total_revenue=await storage.sum_invoice_amounts(db, InvoiceStatus.PAID),
                pending_revenue=await storage.sum_invoice_amounts(db, InvoiceStatus.SENT),
            )
        except SQLAlchemyError as e:
            logger.error("Dashboard summary query failed: %s", str(e))
            raise PersistenceError(
                message="Could not load the dashboard summary. Please try again.",
                context={"error_type": type(e).__name__},
            )


dashboard_service = DashboardService()
