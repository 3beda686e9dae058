"""
ShutterDesk Backend - Email Correlation
=========================================

What:  The single place where a login identity (User) is matched to the
       billing and inquiry records that belong to it.
How:   Users, Clients and ContactInquiries are not linked by foreign keys.
       They are joined by normalized email (trimmed, lower-cased). Every
       "records of the current principal" query goes through
       `email_matches()`; replacing it with a user_id foreign key later only
       touches this module.
"""

from sqlalchemy import ColumnElement, func
from sqlalchemy.orm import InstrumentedAttribute


def normalize_email(email: str) -> str:
    """Canonical form used for correlation lookups."""
    return email.strip().lower()


def email_matches(column: InstrumentedAttribute, email: str) -> ColumnElement[bool]:
    """SQL predicate: `column` holds the same normalized address as `email`."""
    return func.lower(func.trim(column)) == normalize_email(email)
