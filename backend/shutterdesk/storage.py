"""
ShutterDesk Backend - Persistence Layer
=========================================

What:  Typed CRUD access to users, clients, invoices, portfolio items,
       contact inquiries and auth sessions.
How:   Stateless methods taking the caller's AsyncSession. Writes are
       flushed (ids assigned) but not committed; the caller owns the unit
       of work. Listings apply the ordering each screen expects.
Who:   Services only. Routes never build queries.

Errors:
    SQLAlchemy exceptions propagate unchanged. Services translate the ones
    they can act on (IntegrityError on a unique email); anything else is
    turned into the generic PersistenceError envelope by main.py.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shutterdesk.models.client import Client
from shutterdesk.models.enums import AuthProvider, InquiryStatus, InvoiceStatus, UserRole
from shutterdesk.models.inquiry import ContactInquiry
from shutterdesk.models.invoice import Invoice
from shutterdesk.models.portfolio import PortfolioItem
from shutterdesk.models.session import AuthSession
from shutterdesk.models.user import User
from shutterdesk.services.correlation import email_matches


class Storage:
    """Query catalogue. One method per access pattern."""

    # ══════════════════════════════════════════════════════════════════════
    # Users
    # ══════════════════════════════════════════════════════════════════════

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        return await db.get(User, user_id)

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        """Exact match, as stored. Login identity is case-sensitive."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        *,
        email: str,
        name: str,
        role: UserRole = UserRole.CLIENT,
        provider: AuthProvider = AuthProvider.LOCAL,
        password_hash: Optional[str] = None,
        provider_id: Optional[str] = None,
        profile_picture: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            name=name,
            role=role,
            provider=provider,
            password_hash=password_hash,
            provider_id=provider_id,
            profile_picture=profile_picture,
        )
        db.add(user)
        await db.flush()
        return user

    async def update_user_provider(
        self,
        db: AsyncSession,
        user: User,
        *,
        provider: AuthProvider,
        provider_id: str,
        profile_picture: Optional[str],
    ) -> User:
        """Links an OAuth identity. Role, email and password hash are left alone."""
        user.provider = provider
        user.provider_id = provider_id
        user.profile_picture = profile_picture
        await db.flush()
        return user

    # ══════════════════════════════════════════════════════════════════════
    # Clients
    # ══════════════════════════════════════════════════════════════════════

    async def get_client_by_email(self, db: AsyncSession, email: str) -> Optional[Client]:
        result = await db.execute(
            select(Client).where(email_matches(Client.email, email)).order_by(Client.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def create_client(
        self,
        db: AsyncSession,
        *,
        name: str,
        email: str,
        external_customer_id: Optional[str] = None,
    ) -> Client:
        client = Client(name=name, email=email, external_customer_id=external_customer_id)
        db.add(client)
        await db.flush()
        return client

    async def update_client_customer_id(
        self, db: AsyncSession, client: Client, external_customer_id: str
    ) -> Client:
        client.external_customer_id = external_customer_id
        await db.flush()
        return client

    # ══════════════════════════════════════════════════════════════════════
    # Invoices
    # ══════════════════════════════════════════════════════════════════════

    async def create_invoice(
        self,
        db: AsyncSession,
        *,
        client_id: int,
        external_invoice_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        status: InvoiceStatus,
        hosted_url: Optional[str],
        due_date: Optional[datetime],
    ) -> Invoice:
        invoice = Invoice(
            client_id=client_id,
            external_invoice_id=external_invoice_id,
            amount=amount,
            currency=currency,
            description=description,
            status=status,
            hosted_url=hosted_url,
            due_date=due_date,
        )
        db.add(invoice)
        await db.flush()
        return invoice

    async def get_invoice_by_external_id(
        self, db: AsyncSession, external_invoice_id: str
    ) -> Optional[Invoice]:
        result = await db.execute(
            select(Invoice).where(Invoice.external_invoice_id == external_invoice_id)
        )
        return result.scalar_one_or_none()

    async def list_invoices(self, db: AsyncSession) -> List[Invoice]:
        result = await db.execute(
            select(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc())
        )
        return list(result.scalars().all())

    async def list_invoices_for_email(self, db: AsyncSession, email: str) -> List[Invoice]:
        """Invoices of the Client correlated with `email`; [] when no such client."""
        client = await self.get_client_by_email(db, email)
        if client is None:
            return []
        result = await db.execute(
            select(Invoice)
            .where(Invoice.client_id == client.id)
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        )
        return list(result.scalars().all())

    async def update_invoice_status(
        self, db: AsyncSession, invoice: Invoice, status: InvoiceStatus
    ) -> Invoice:
        invoice.status = status
        await db.flush()
        return invoice

    async def sum_invoice_amounts(self, db: AsyncSession, status: InvoiceStatus) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(Invoice.amount), 0)).where(Invoice.status == status)
        )
        return Decimal(str(result.scalar() or 0)).quantize(Decimal("0.01"))

    # ══════════════════════════════════════════════════════════════════════
    # Portfolio
    # ══════════════════════════════════════════════════════════════════════

    async def list_portfolio_items(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        featured_only: bool = False,
    ) -> List[PortfolioItem]:
        query = select(PortfolioItem)
        if category is not None:
            query = query.where(PortfolioItem.category == category)
        if featured_only:
            query = query.where(PortfolioItem.featured == 1)
        query = query.order_by(PortfolioItem.display_order.asc(), PortfolioItem.id.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_portfolio_item(self, db: AsyncSession, item_id: int) -> Optional[PortfolioItem]:
        return await db.get(PortfolioItem, item_id)

    async def create_portfolio_item(self, db: AsyncSession, **fields: Any) -> PortfolioItem:
        item = PortfolioItem(**fields)
        db.add(item)
        await db.flush()
        return item

    async def update_portfolio_item(
        self, db: AsyncSession, item: PortfolioItem, changes: Dict[str, Any]
    ) -> PortfolioItem:
        for key, value in changes.items():
            setattr(item, key, value)
        await db.flush()
        return item

    async def delete_portfolio_item(self, db: AsyncSession, item: PortfolioItem) -> None:
        await db.delete(item)
        await db.flush()

    # ══════════════════════════════════════════════════════════════════════
    # Contact inquiries
    # ══════════════════════════════════════════════════════════════════════

    async def create_contact_inquiry(
        self,
        db: AsyncSession,
        *,
        full_name: str,
        email: str,
        project_type: str,
        desired_date: str,
        message: str,
    ) -> ContactInquiry:
        inquiry = ContactInquiry(
            full_name=full_name,
            email=email,
            project_type=project_type,
            desired_date=desired_date,
            message=message,
            status=InquiryStatus.NEW,
        )
        db.add(inquiry)
        await db.flush()
        return inquiry

    async def get_contact_inquiry(
        self, db: AsyncSession, inquiry_id: int
    ) -> Optional[ContactInquiry]:
        return await db.get(ContactInquiry, inquiry_id)

    async def list_contact_inquiries(self, db: AsyncSession) -> List[ContactInquiry]:
        result = await db.execute(
            select(ContactInquiry).order_by(
                ContactInquiry.created_at.desc(), ContactInquiry.id.desc()
            )
        )
        return list(result.scalars().all())

    async def list_contact_inquiries_for_email(
        self, db: AsyncSession, email: str
    ) -> List[ContactInquiry]:
        result = await db.execute(
            select(ContactInquiry)
            .where(email_matches(ContactInquiry.email, email))
            .order_by(ContactInquiry.created_at.desc(), ContactInquiry.id.desc())
        )
        return list(result.scalars().all())

    async def update_contact_inquiry_status(
        self, db: AsyncSession, inquiry: ContactInquiry, status: InquiryStatus
    ) -> ContactInquiry:
        inquiry.status = status
        await db.flush()
        return inquiry

    async def count_contact_inquiries(
        self, db: AsyncSession, *statuses: InquiryStatus
    ) -> int:
        result = await db.execute(
            select(func.count(ContactInquiry.id)).where(ContactInquiry.status.in_(statuses))
        )
        return int(result.scalar() or 0)

    # ══════════════════════════════════════════════════════════════════════
    # Auth sessions
    # ══════════════════════════════════════════════════════════════════════

    async def create_auth_session(
        self, db: AsyncSession, *, token_hash: str, user_id: int, expires_at: datetime
    ) -> AuthSession:
        row = AuthSession(token_hash=token_hash, user_id=user_id, expires_at=expires_at)
        db.add(row)
        await db.flush()
        return row

    async def get_live_auth_session(
        self, db: AsyncSession, token_hash: str, now: datetime
    ) -> Optional[AuthSession]:
        result = await db.execute(
            select(AuthSession).where(
                AuthSession.token_hash == token_hash,
                AuthSession.expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def delete_auth_session(self, db: AsyncSession, token_hash: str) -> int:
        result = await db.execute(delete(AuthSession).where(AuthSession.token_hash == token_hash))
        return result.rowcount or 0

    async def delete_expired_auth_sessions(self, db: AsyncSession, now: datetime) -> int:
        result = await db.execute(delete(AuthSession).where(AuthSession.expires_at <= now))
        return result.rowcount or 0


storage = Storage()
