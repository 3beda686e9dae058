"""
ShutterDesk Backend - Application Package
==========================================

What: API backend for a photography studio website: public portfolio and
      contact endpoints, owner and client dashboards, session login and
      Stripe invoicing.
Who:  Imported by uvicorn (shutterdesk.main:app), Alembic, pytest and the
      management CLI (python -m shutterdesk.manage).

Layering:

    ┌─────────────────────────────────────┐
    │   Routes + deps (HTTP, role gate)   │  ← request/response contracts
    ├─────────────────────────────────────┤
    │   Services (auth, sessions, saga)   │  ← business rules, Stripe, OAuth
    ├─────────────────────────────────────┤
    │   Storage (typed CRUD)              │  ← one method per query
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
