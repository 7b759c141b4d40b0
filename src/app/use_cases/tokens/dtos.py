"""
Token Use Case DTOs (Data Transfer Objects)

Command and Response classes for the rotation and family endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# ============================================================================
# Response DTOs
# ============================================================================


class RotationResponse(BaseModel):
    """Successful rotation: the successor token and a fresh access token"""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    session_id: str
    family_id: str
    refresh_token_expires_at: datetime


class TokenNode(BaseModel):
    """One token of a rotation family, without any secret material"""

    id: str
    parent_id: Optional[str]
    replaced_by_id: Optional[str]
    state: str
    kid: Optional[str]
    device_id: Optional[str]
    ip: Optional[str]
    created_at: datetime
    used_at: Optional[datetime]
    revoked_at: Optional[datetime]
    revoked_reason: Optional[str]
    expires_at: datetime


class TokenFamilyResponse(BaseModel):
    """Rotation lineage of one family, root first"""

    family_id: str
    session_id: str
    user_id: str
    tokens: List[TokenNode]


class RevokeFamilyResponse(BaseModel):
    family_id: str
    revoked_count: int
