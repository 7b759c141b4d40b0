"""
Session Entity

One authenticated client context. Parent of a refresh-token family.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKeyConstraint, UniqueConstraint
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - validity window plus revocation state.

    Business Rules:
    - not_after > issued_at and not_before <= not_after
    - Active iff revoked_at is NULL and now < not_after
    - Only the revocation fields are ever mutated, and only once
    - Never physically deleted (refresh tokens reference it)
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: UUID = Field(nullable=False)
    user_id: UUID = Field(nullable=False)

    # DPoP/JWT cnf thumbprint (jkt)
    cnf_jkt: Optional[str] = Field(default=None, max_length=128)

    # Client context
    device_id: Optional[str] = Field(default=None, max_length=255)
    ip: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None)

    # Validity window
    issued_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    not_before: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    not_after: datetime = Field(sa_column=Column(DateTime, nullable=False))

    # Revocation
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[str] = Field(default=None, max_length=100)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, onupdate=utcnow)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_sessions_id_per_tenant"),
        CheckConstraint("not_after > issued_at", name="ck_sessions_window_after_issue"),
        CheckConstraint("not_before <= not_after", name="ck_sessions_window_ordered"),
        ForeignKeyConstraint(
            ["user_id", "tenant_id"],
            ["users.id", "users.tenant_id"],
            name="fk_sessions_users",
        ),
        Index("idx_sessions_tenant", "tenant_id"),
        Index("idx_sessions_tenant_user", "tenant_id", "user_id"),
        Index("idx_sessions_revoked_at", "tenant_id", "revoked_at"),
    )

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.not_after
