"""
Session Use Cases

Session establishment and the logout cascades.
"""

from .establish_session_use_case import EstablishSessionUseCase
from .revoke_session_use_case import RevokeSessionUseCase
from .revoke_user_sessions_use_case import RevokeUserSessionsUseCase
from .dtos import (
    EstablishSessionCommand,
    EstablishSessionResponse,
    RevocationResponse,
)

__all__ = [
    # Use Cases
    "EstablishSessionUseCase",
    "RevokeSessionUseCase",
    "RevokeUserSessionsUseCase",
    # DTOs - Commands
    "EstablishSessionCommand",
    # DTOs - Responses
    "EstablishSessionResponse",
    "RevocationResponse",
]
