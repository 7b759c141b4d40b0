"""
User Entity

Identity principal owned by the external identity component. Persisted here
so that sessions and refresh tokens can reference it per tenant.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import MfaMethod, PreferredLogin


class User(SQLModel, table=True):
    """
    User entity - tenant-scoped identity principal.

    Business Rules:
    - Username and email are unique within a tenant, not globally
    - PASSWORD login requires a password hash
    - TOTP MFA requires a secret
    - Soft-deleted only (sessions and tokens reference it)
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(nullable=False)

    username: str = Field(max_length=64)
    email: str = Field(max_length=255)
    password_hash: Optional[str] = Field(default=None)

    preferred_login: PreferredLogin = Field(default=PreferredLogin.PASSWORD)
    mfa_method: MfaMethod = Field(default=MfaMethod.NONE)
    mfa_secret: Optional[str] = Field(default=None)

    email_verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    locked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, onupdate=utcnow)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        UniqueConstraint("tenant_id", "id", name="uq_users_id_per_tenant"),
        UniqueConstraint("tenant_id", "username", name="uq_users_username_per_tenant"),
        UniqueConstraint("tenant_id", "email", name="uq_users_email_per_tenant"),
        CheckConstraint(
            "preferred_login <> 'PASSWORD' OR password_hash IS NOT NULL",
            name="ck_users_password_login_has_hash",
        ),
        CheckConstraint(
            "mfa_method <> 'TOTP' OR mfa_secret IS NOT NULL",
            name="ck_users_totp_has_secret",
        ),
        Index("idx_users_tenant", "tenant_id"),
        Index("idx_users_last_login", "tenant_id", "last_login_at"),
    )
