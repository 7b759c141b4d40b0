"""
Revoke Session Use Case

Logout of one session: the session and every outstanding token under it.
"""

from typing import Optional
from uuid import UUID

from src.app.services.clock import Clock, SystemClock
from src.app.services.context import TenantContext
from src.app.services.revocation_cascade import RevocationCascade
from src.app.services.session_store import SessionStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, RevocationReason
from src.libs.result import Error, Result, Return
from .dtos import RevocationResponse


class RevokeSessionUseCase:
    """
    Business Rules:
    - Users can only revoke their own sessions
    - Revoking an already revoked session succeeds with zero counts
    """

    def __init__(self, uow: UnitOfWork, clock: Optional[Clock] = None):
        self.uow = uow
        self.clock = clock or SystemClock()

    async def execute(
        self,
        tenant: TenantContext,
        session_id: UUID,
        requesting_user_id: UUID,
        reason: str = RevocationReason.logout.value,
    ) -> Result[RevocationResponse]:
        """
        Args:
            tenant: Tenant from the caller's access token
            session_id: Session to revoke
            requesting_user_id: User asking for the logout
            reason: Stored as revoked_reason on session and tokens

        Returns:
            Result with revocation counts, or Error
        """
        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            session = await SessionStore(self.uow, self.clock).get(tenant, session_id)
            if session.is_err():
                return session

            if session.value.user_id != requesting_user_id:
                return Return.err(
                    Error("FORBIDDEN", "Session does not belong to current user")
                )

            result = await RevocationCascade(self.uow, self.clock).revoke_session(
                tenant, session_id, reason
            )
            if result.is_err():
                return result
            summary = result.value

            await self.uow.audit_events.create(
                AuditEvent(
                    tenant_id=tenant.tenant_id,
                    created_at=self.clock.now(),
                    user_id=requesting_user_id,
                    session_id=session_id,
                    action="session_revoked",
                    event_metadata={
                        "reason": reason,
                        "tokens_revoked": summary.tokens_revoked,
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(
                RevocationResponse(
                    sessions_revoked=summary.sessions_revoked,
                    tokens_revoked=summary.tokens_revoked,
                )
            )
