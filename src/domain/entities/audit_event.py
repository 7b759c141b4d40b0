"""
AuditEvent Entity

Append-only record of token lifecycle and security events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - forensic trail for rotations and cascades.

    Business Rules:
    - Never updated or deleted
    - Carries session and family ids so a compromised lineage can be traced
    - Metadata never contains token material, only ids and counts
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: UUID = Field(nullable=False)
    user_id: Optional[UUID] = Field(default=None)
    session_id: Optional[UUID] = Field(default=None)
    family_id: Optional[UUID] = Field(default=None)

    action: str = Field(max_length=100)  # e.g. "token_rotated", "token_reuse_detected"
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_tenant_created_at", "tenant_id", "created_at"),
        Index("idx_audit_tenant_action", "tenant_id", "action"),
        Index("idx_audit_family", "tenant_id", "family_id"),
    )
