# Services package init
"""
ShutterDesk Backend - Services Layer
======================================

What:  Business logic between the routes (HTTP) and storage (persistence).
How:   Stateless classes with a module-level singleton each. Every method
       takes the request's AsyncSession as its first argument.

Service Inventory:
    - AuthService:       register, local and OAuth authentication, owner bootstrap
    - SessionService:    server-side sessions (establish, resolve, terminate, purge)
    - GoogleOAuthClient: authorization-code flow over httpx
    - BillingService:    Stripe adapter (threadpool, retry, error translation)
    - InvoiceService:    invoice creation saga, listings, webhook reconciliation
    - PortfolioService:  gallery listing and owner CRUD
    - InquiryService:    contact form, client requests, owner pipeline
    - DashboardService:  owner summary numbers
    - correlation:       User ↔ Client/Inquiry matching by normalized email
"""
