"""
Revoke Family Use Case

Operator-initiated revocation of one rotation family (incident response).
"""

from typing import Optional
from uuid import UUID

from src.app.services.clock import Clock, SystemClock
from src.app.services.context import TenantContext
from src.app.services.revocation_cascade import RevocationCascade
from src.app.services.token_ledger import TokenLedger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.libs.result import Result, Return
from .dtos import RevokeFamilyResponse


class RevokeFamilyUseCase:
    """
    Business Rules:
    - The family must exist in the caller's tenant
    - Re-revoking a revoked family succeeds with revoked_count = 0
    """

    def __init__(self, uow: UnitOfWork, clock: Optional[Clock] = None):
        self.uow = uow
        self.clock = clock or SystemClock()

    async def execute(
        self, tenant: TenantContext, family_id: UUID, reason: str
    ) -> Result[RevokeFamilyResponse]:
        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            family = await TokenLedger(self.uow, self.clock).get_family(tenant, family_id)
            if family.is_err():
                return family
            root = family.value[0]

            result = await RevocationCascade(self.uow, self.clock).revoke_family(
                tenant, family_id, reason
            )
            if result.is_err():
                return result

            await self.uow.audit_events.create(
                AuditEvent(
                    tenant_id=tenant.tenant_id,
                    created_at=self.clock.now(),
                    user_id=root.user_id,
                    session_id=root.session_id,
                    family_id=family_id,
                    action="family_revoked",
                    event_metadata={
                        "reason": reason,
                        "revoked_count": result.value.tokens_revoked,
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(
                RevokeFamilyResponse(
                    family_id=str(family_id),
                    revoked_count=result.value.tokens_revoked,
                )
            )
