"""
Token Use Cases

Rotation engine and rotation-family management.
"""

from .rotate_refresh_token_use_case import REJECTION_CODES, RotateRefreshTokenUseCase
from .revoke_family_use_case import RevokeFamilyUseCase
from .get_token_family_use_case import GetTokenFamilyUseCase
from .dtos import (
    RevokeFamilyResponse,
    RotationResponse,
    TokenFamilyResponse,
    TokenNode,
)

__all__ = [
    # Use Cases
    "RotateRefreshTokenUseCase",
    "RevokeFamilyUseCase",
    "GetTokenFamilyUseCase",
    # Constants
    "REJECTION_CODES",
    # DTOs
    "RevokeFamilyResponse",
    "RotationResponse",
    "TokenFamilyResponse",
    "TokenNode",
]
