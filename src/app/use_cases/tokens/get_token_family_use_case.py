"""
Get Token Family Use Case

Forensic view of one rotation lineage.
"""

from typing import Dict, List, Optional
from uuid import UUID

from src.app.services.clock import Clock, SystemClock
from src.app.services.context import TenantContext
from src.app.services.token_ledger import TokenLedger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import RefreshToken
from src.libs.result import Error, Result, Return
from .dtos import TokenFamilyResponse, TokenNode


def order_lineage(tokens: List[RefreshToken]) -> List[RefreshToken]:
    """
    Walk the chain from the root along replaced_by_id.

    Tokens that hang off the chain (a child whose parent was never linked
    to it, e.g. issued in a rolled back race) are appended in creation
    order so nothing is hidden from the view.
    """
    by_id: Dict[UUID, RefreshToken] = {token.id: token for token in tokens}
    roots = [token for token in tokens if token.parent_id is None]

    ordered: List[RefreshToken] = []
    seen = set()
    for root in roots:
        current: Optional[RefreshToken] = root
        while current is not None and current.id not in seen:
            ordered.append(current)
            seen.add(current.id)
            current = by_id.get(current.replaced_by_id) if current.replaced_by_id else None

    ordered.extend(token for token in tokens if token.id not in seen)
    return ordered


class GetTokenFamilyUseCase:
    def __init__(self, uow: UnitOfWork, clock: Optional[Clock] = None):
        self.uow = uow
        self.clock = clock or SystemClock()

    async def execute(
        self, tenant: TenantContext, family_id: UUID
    ) -> Result[TokenFamilyResponse]:
        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            family = await TokenLedger(self.uow, self.clock).get_family(tenant, family_id)
            if family.is_err():
                return family

            tokens = order_lineage(family.value)
            if tokens[0].parent_id is not None:
                return Return.err(Error("INVALID_LINEAGE", "Token family has no root"))

            now = self.clock.now()
            root = tokens[0]
            return Return.ok(
                TokenFamilyResponse(
                    family_id=str(family_id),
                    session_id=str(root.session_id),
                    user_id=str(root.user_id),
                    tokens=[
                        TokenNode(
                            id=str(token.id),
                            parent_id=str(token.parent_id) if token.parent_id else None,
                            replaced_by_id=(
                                str(token.replaced_by_id) if token.replaced_by_id else None
                            ),
                            state=token.state(now).value,
                            kid=token.kid,
                            device_id=token.device_id,
                            ip=token.ip,
                            created_at=token.created_at,
                            used_at=token.used_at,
                            revoked_at=token.revoked_at,
                            revoked_reason=token.revoked_reason,
                            expires_at=token.expires_at,
                        )
                        for token in tokens
                    ],
                )
            )
