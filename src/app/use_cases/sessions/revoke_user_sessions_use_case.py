"""
Revoke User Sessions Use Case

Global logout: every session and outstanding token of a user in the tenant.
"""

from typing import Optional
from uuid import UUID

from src.app.services.clock import Clock, SystemClock
from src.app.services.context import TenantContext
from src.app.services.revocation_cascade import RevocationCascade
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, RevocationReason
from src.libs.result import Result, Return
from .dtos import RevocationResponse


class RevokeUserSessionsUseCase:
    def __init__(self, uow: UnitOfWork, clock: Optional[Clock] = None):
        self.uow = uow
        self.clock = clock or SystemClock()

    async def execute(
        self,
        tenant: TenantContext,
        user_id: UUID,
        reason: str = RevocationReason.global_logout.value,
    ) -> Result[RevocationResponse]:
        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            result = await RevocationCascade(self.uow, self.clock).revoke_user(
                tenant, user_id, reason
            )
            if result.is_err():
                return result
            summary = result.value

            await self.uow.audit_events.create(
                AuditEvent(
                    tenant_id=tenant.tenant_id,
                    created_at=self.clock.now(),
                    user_id=user_id,
                    action="user_sessions_revoked",
                    event_metadata={
                        "reason": reason,
                        "sessions_revoked": summary.sessions_revoked,
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
