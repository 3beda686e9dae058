"""
ShutterDesk Backend - Closed Enumerations
===========================================

What:  The closed value sets stored in string columns.
How:   str-valued Enums. Members compare equal to their wire values
       (UserRole.OWNER == "owner"), and SQLAlchemy persists the value,
       not the member name.
"""

import enum
from typing import List, Type

from sqlalchemy import Enum as SAEnum


class UserRole(str, enum.Enum):
    OWNER = "owner"
    CLIENT = "client"


class AuthProvider(str, enum.Enum):
    LOCAL = "local"
    GOOGLE = "google"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    VOID = "void"


class InquiryStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    CLOSED = "closed"


def _values(enum_cls: Type[enum.Enum]) -> List[str]:
    return [member.value for member in enum_cls]


def string_enum(enum_cls: Type[enum.Enum], length: int = 20) -> SAEnum:
    """VARCHAR-backed column type for one of the enums above (no native DB enum)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=_values,
        validate_strings=True,
    )
