"""
Session Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Command DTOs
# ============================================================================


class EstablishSessionCommand(BaseModel):
    """An upstream authenticator vouches for user_id; open a session for it"""

    user_id: UUID
    ttl_seconds: Optional[int] = Field(default=None, gt=0)
    cnf_jkt: Optional[str] = Field(default=None, max_length=128)


# ============================================================================
# Response DTOs
# ============================================================================


class EstablishSessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    session_id: str
    family_id: str
    session_expires_at: datetime
    refresh_token_expires_at: datetime


class RevocationResponse(BaseModel):
    """Rows revoked by a logout; zero counts on a repeated call"""

    sessions_revoked: int
    tokens_revoked: int
