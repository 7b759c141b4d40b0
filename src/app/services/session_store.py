"""
Session Store

Owns session records: creation with a validated window, activity checks
and one-way revocation.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from config import ApplicationConfig
from src.app.services.clock import Clock
from src.app.services.context import ClientContext, TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Session
from src.libs.result import Error, Result, Return


class SessionStore:
    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def get(self, tenant: TenantContext, session_id: UUID) -> Result[Session]:
        session = await self.uow.sessions.get_by_id(tenant.tenant_id, session_id)
        if session is None:
            return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))
        return Return.ok(session)

    async def create(
        self,
        tenant: TenantContext,
        user_id: UUID,
        client: ClientContext,
        cnf_jkt: Optional[str] = None,
        ttl: Optional[timedelta] = None,
        not_before: Optional[datetime] = None,
    ) -> Result[Session]:
        """
        Persist a session for an already authenticated user.

        The user must resolve inside the tenant; credential checks happened
        upstream.
        """
        user = await self.uow.users.get_by_id(tenant.tenant_id, user_id)
        if user is None:
            return Return.err(Error("USER_NOT_FOUND", "User not found in tenant"))

        issued_at = self.clock.now()
        if ttl is None:
            ttl = timedelta(seconds=ApplicationConfig.SESSION_TTL_SECONDS)
        not_after = issued_at + ttl
        not_before = not_before or issued_at

        if not_after <= issued_at or not_before > not_after:
            return Return.err(
                Error("INVALID_SESSION_WINDOW", "Session validity window is empty")
            )

        session = Session(
            tenant_id=tenant.tenant_id,
            user_id=user_id,
            cnf_jkt=cnf_jkt,
            device_id=client.device_id,
            ip=client.ip,
            user_agent=client.user_agent,
            issued_at=issued_at,
            not_before=not_before,
            not_after=not_after,
            created_at=issued_at,
            updated_at=issued_at,
        )
        session = await self.uow.sessions.create(session)
        return Return.ok(session)

    async def revoke(
        self, tenant: TenantContext, session_id: UUID, reason: str
    ) -> Result[bool]:
        """Returns ok(False) when the session was already revoked."""
        revoked = await self.uow.sessions.revoke(
            tenant.tenant_id, session_id, reason, self.clock.now()
        )
        return Return.ok(revoked)

    async def revoke_by_user(
        self, tenant: TenantContext, user_id: UUID, reason: str
    ) -> Result[int]:
        count = await self.uow.sessions.revoke_all_by_user(
            tenant.tenant_id, user_id, reason, self.clock.now()
        )
        return Return.ok(count)
