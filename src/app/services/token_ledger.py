"""
Token Ledger

Owns refresh-token records and their rotation-family graph.
"""

import logging
import secrets
from datetime import timedelta
from typing import List, Optional
from uuid import UUID, uuid4

from config import ApplicationConfig
from src.app.services.clock import Clock
from src.app.services.context import ClientContext, TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import RefreshToken, Session
from src.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


def tenant_mismatch(tenant: TenantContext, what: str, ref: UUID) -> Result:
    logger.error(f"Tenant mismatch: {what} {ref} does not resolve in tenant {tenant.tenant_id}")
    return Return.err(
        Error("TENANT_MISMATCH", f"{what} does not belong to the current tenant")
    )


class TokenLedger:
    """
    Ledger operations over the refresh_tokens table.

    Business Rules:
    - jti is unique per tenant, checked before insert
    - A token never outlives its session (expires_at capped at not_after)
    - Children inherit the family, the proof-of-possession binding and the
      session of their parent
    - A token is consumed at most once (conditional update)
    - Revocation is monotonic: already revoked rows are never touched again
    """

    JTI_BYTES = 32

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def lookup(
        self, tenant: TenantContext, jti: str, for_update: bool = False
    ) -> Result[RefreshToken]:
        token = await self.uow.refresh_tokens.get_by_jti(
            tenant.tenant_id, jti, for_update=for_update
        )
        if token is None:
            return Return.err(Error("TOKEN_NOT_FOUND", "Refresh token not found"))
        return Return.ok(token)

    async def issue_root(
        self,
        tenant: TenantContext,
        session: Session,
        client: ClientContext,
        ttl: Optional[timedelta] = None,
    ) -> Result[RefreshToken]:
        """Start a new rotation family for a freshly established session."""
        if not tenant.owns(session):
            return tenant_mismatch(tenant, "session", session.id)

        if not session.is_active(self.clock.now()):
            return Return.err(Error("SESSION_INACTIVE", "Session is not active"))

        return await self._issue(
            tenant,
            session,
            client,
            family_id=uuid4(),
            parent=None,
            cnf_jkt=session.cnf_jkt,
            ttl=ttl,
        )

    async def issue_child(
        self,
        tenant: TenantContext,
        parent: RefreshToken,
        client: ClientContext,
        ttl: Optional[timedelta] = None,
    ) -> Result[RefreshToken]:
        """Issue the successor of parent in the same family."""
        if not tenant.owns(parent):
            return tenant_mismatch(tenant, "parent token", parent.id)

        session = await self.uow.sessions.get_by_id(tenant.tenant_id, parent.session_id)
        if session is None:
            return tenant_mismatch(tenant, "session", parent.session_id)

        if not session.is_active(self.clock.now()):
            return Return.err(Error("SESSION_INACTIVE", "Session is not active"))

        return await self._issue(
            tenant,
            session,
            client,
            family_id=parent.family_id,
            parent=parent,
            cnf_jkt=parent.cnf_jkt,
            ttl=ttl,
        )

    async def _issue(
        self,
        tenant: TenantContext,
        session: Session,
        client: ClientContext,
        family_id: UUID,
        parent: Optional[RefreshToken],
        cnf_jkt: Optional[str],
        ttl: Optional[timedelta],
    ) -> Result[RefreshToken]:
        now = self.clock.now()
        if ttl is None:
            ttl = timedelta(seconds=ApplicationConfig.REFRESH_TOKEN_TTL_SECONDS)
        expires_at = min(now + ttl, session.not_after)
        if expires_at <= now:
            return Return.err(
                Error("INVALID_TOKEN_WINDOW", "Refresh token would be born expired")
            )

        jti = secrets.token_urlsafe(self.JTI_BYTES)
        if await self.uow.refresh_tokens.get_by_jti(tenant.tenant_id, jti) is not None:
            return Return.err(Error("JTI_COLLISION", "Generated jti already exists"))

        token = RefreshToken(
            tenant_id=tenant.tenant_id,
            user_id=session.user_id,
            session_id=session.id,
            family_id=family_id,
            parent_id=parent.id if parent is not None else None,
            jti=jti,
            kid=ApplicationConfig.JWT_KID,
            cnf_jkt=cnf_jkt,
            device_id=client.device_id or session.device_id,
            ip=client.ip or session.ip,
            user_agent=client.user_agent or session.user_agent,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        token = await self.uow.refresh_tokens.create(token)
        return Return.ok(token)

    async def mark_used(
        self, tenant: TenantContext, token: RefreshToken, replacement: RefreshToken
    ) -> Result[None]:
        """Consume token, linking it to the replacement issued for it."""
        if not tenant.owns(token):
            return tenant_mismatch(tenant, "token", token.id)
        if not tenant.owns(replacement):
            return tenant_mismatch(tenant, "replacement token", replacement.id)

        if replacement.parent_id != token.id or replacement.family_id != token.family_id:
            logger.error(
                f"Refusing to link token {token.id} to {replacement.id}: not its child"
            )
            return Return.err(
                Error("INVALID_LINEAGE", "Replacement was not issued from this token")
            )

        consumed = await self.uow.refresh_tokens.mark_used(
            tenant.tenant_id, token.id, replacement.id, self.clock.now()
        )
        if not consumed:
            return Return.err(
                Error("ALREADY_USED", "Refresh token already consumed or revoked")
            )
        return Return.ok(None)

    async def revoke_family(
        self, tenant: TenantContext, family_id: UUID, reason: str
    ) -> Result[int]:
        count = await self.uow.refresh_tokens.revoke_family(
            tenant.tenant_id, family_id, reason, self.clock.now()
        )
        return Return.ok(count)

    async def revoke_by_session(
        self, tenant: TenantContext, session_id: UUID, reason: str
    ) -> Result[int]:
        count = await self.uow.refresh_tokens.revoke_by_session(
            tenant.tenant_id, session_id, reason, self.clock.now()
        )
        return Return.ok(count)

    async def revoke_by_user(
        self, tenant: TenantContext, user_id: UUID, reason: str
    ) -> Result[int]:
        count = await self.uow.refresh_tokens.revoke_by_user(
            tenant.tenant_id, user_id, reason, self.clock.now()
        )
        return Return.ok(count)

    async def get_family(
        self, tenant: TenantContext, family_id: UUID
    ) -> Result[List[RefreshToken]]:
        tokens = await self.uow.refresh_tokens.get_family(tenant.tenant_id, family_id)
        if not tokens:
            return Return.err(Error("FAMILY_NOT_FOUND", "Token family not found"))
        return Return.ok(tokens)
