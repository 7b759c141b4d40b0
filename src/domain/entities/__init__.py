"""
Identity Domain Entities

Each entity in its own file.
"""

from .enums import (
    MfaMethod,
    PreferredLogin,
    RevocationReason,
    TokenState,
)

from .user import User
from .session import Session
from .refresh_token import RefreshToken
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "MfaMethod",
    "PreferredLogin",
    "RevocationReason",
    "TokenState",
    # Entities
    "User",
    "Session",
    "RefreshToken",
    "AuditEvent",
]
