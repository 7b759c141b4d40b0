"""
Use Cases

Organized into domain folders:
- tokens/: Rotation engine and family management
- sessions/: Session establishment and logout cascades
- audit/: Audit logs
"""

from .tokens import (
    RotateRefreshTokenUseCase,
    RevokeFamilyUseCase,
    GetTokenFamilyUseCase,
)
from .sessions import (
    EstablishSessionUseCase,
    RevokeSessionUseCase,
    RevokeUserSessionsUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Tokens
    "RotateRefreshTokenUseCase",
    "RevokeFamilyUseCase",
    "GetTokenFamilyUseCase",
    # Sessions
    "EstablishSessionUseCase",
    "RevokeSessionUseCase",
    "RevokeUserSessionsUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
