"""
Establish Session Use Case

Opens a session for an authenticated user and roots its rotation family.
"""

import logging
from datetime import timedelta
from typing import Optional

from src.api.utils.jwt import encode_refresh_token, generate_access_token
from src.app.services.clock import Clock, SystemClock
from src.app.services.context import ClientContext, TenantContext
from src.app.services.session_store import SessionStore
from src.app.services.token_ledger import TokenLedger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.libs.result import Result, Return
from .dtos import EstablishSessionCommand, EstablishSessionResponse

logger = logging.getLogger(__name__)


class EstablishSessionUseCase:
    """
    Business Rules:
    - Credentials were verified upstream; only tenant membership of the
      user id is checked here
    - The session and its root token commit together
    - The root token inherits the session's proof-of-possession binding
    """

    def __init__(self, uow: UnitOfWork, clock: Optional[Clock] = None):
        self.uow = uow
        self.clock = clock or SystemClock()

    async def execute(
        self,
        tenant: TenantContext,
        command: EstablishSessionCommand,
        client: ClientContext,
    ) -> Result[EstablishSessionResponse]:
        ttl = timedelta(seconds=command.ttl_seconds) if command.ttl_seconds else None

        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            session = await SessionStore(self.uow, self.clock).create(
                tenant, command.user_id, client, cnf_jkt=command.cnf_jkt, ttl=ttl
            )
            if session.is_err():
                return session
            session = session.value

            root = await TokenLedger(self.uow, self.clock).issue_root(tenant, session, client)
            if root.is_err():
                return root
            root = root.value

            await self.uow.audit_events.create(
                AuditEvent(
                    tenant_id=tenant.tenant_id,
                    created_at=self.clock.now(),
                    user_id=session.user_id,
                    session_id=session.id,
                    family_id=root.family_id,
                    action="session_established",
                    event_metadata={
                        "device_id": client.device_id,
                        "ip": client.ip,
                        "bound": session.cnf_jkt is not None,
                    },
                )
            )
            await self.uow.commit()

            logger.info(f"Established session {session.id} for user {session.user_id}")

            return Return.ok(
                EstablishSessionResponse(
                    access_token=generate_access_token(
                        session.user_id, tenant.tenant_id, session.id
                    ),
                    refresh_token=encode_refresh_token(root),
                    session_id=str(session.id),
                    family_id=str(root.family_id),
                    session_expires_at=session.not_after,
                    refresh_token_expires_at=root.expires_at,
                )
            )
