"""
RefreshToken Entity

One link of a rotation family.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKeyConstraint, UniqueConstraint, text
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import TokenState


class RefreshToken(SQLModel, table=True):
    """
    RefreshToken entity - a single-use credential in a rotation chain.

    Business Rules:
    - jti is unique per tenant
    - expires_at > created_at
    - parent_id is fixed at issuance; replaced_by_id is set once, on rotation
    - All tokens sharing family_id form one acyclic chain rooted at the
      session's first token
    - Presentable iff not revoked, not used and not expired
    - Soft-deleted only (kept for forensics)
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: UUID = Field(nullable=False)
    user_id: UUID = Field(nullable=False)
    session_id: UUID = Field(nullable=False)

    # Rotation lineage
    family_id: UUID = Field(nullable=False)
    parent_id: Optional[UUID] = Field(default=None)
    replaced_by_id: Optional[UUID] = Field(default=None)

    # Cryptographic identifiers
    jti: str = Field(max_length=128)
    kid: Optional[str] = Field(default=None, max_length=64)
    cnf_jkt: Optional[str] = Field(default=None, max_length=128)

    # Client context
    device_id: Optional[str] = Field(default=None, max_length=255)
    ip: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None)

    # Lifecycle
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[str] = Field(default=None, max_length=100)
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, onupdate=utcnow)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_refresh_tokens_id_per_tenant"),
        UniqueConstraint("tenant_id", "jti", name="uq_refresh_tokens_jti_per_tenant"),
        CheckConstraint("expires_at > created_at", name="ck_refresh_tokens_expiry"),
        ForeignKeyConstraint(
            ["user_id", "tenant_id"],
            ["users.id", "users.tenant_id"],
            name="fk_rt_users",
        ),
        ForeignKeyConstraint(
            ["session_id", "tenant_id"],
            ["sessions.id", "sessions.tenant_id"],
            name="fk_rt_sessions",
        ),
        ForeignKeyConstraint(
            ["parent_id", "tenant_id"],
            ["refresh_tokens.id", "refresh_tokens.tenant_id"],
            name="fk_rt_parent",
        ),
        ForeignKeyConstraint(
            ["replaced_by_id", "tenant_id"],
            ["refresh_tokens.id", "refresh_tokens.tenant_id"],
            name="fk_rt_replaced_by",
        ),
        Index("idx_rt_tenant", "tenant_id"),
        Index("idx_rt_user", "tenant_id", "user_id"),
        Index("idx_rt_session", "tenant_id", "session_id"),
        Index(
            "idx_rt_family_active",
            "tenant_id",
            "family_id",
            "used_at",
            postgresql_where=text("revoked = false"),
        ),
        Index(
            "idx_rt_active_by_user",
            "tenant_id",
            "user_id",
            "expires_at",
            postgresql_where=text("revoked = false AND used_at IS NULL"),
        ),
    )

    def state(self, now: datetime) -> TokenState:
        """
        Derive the lifecycle state at ``now``.

        Expiry is checked first: an expired token is never evidence of
        reuse, whatever its other flags say. The boundary is exclusive, so a
        token whose expires_at equals now is already expired.
        """
        if self.expires_at <= now:
            return TokenState.expired
        if self.revoked:
            return TokenState.revoked
        if self.used_at is not None:
            return TokenState.used
        return TokenState.active

    def is_presentable(self, now: datetime) -> bool:
        return self.state(now) == TokenState.active
