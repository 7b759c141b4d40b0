"""
Revocation Cascade

Invalidates a rotation family, a session with its tokens, or every
session and token of a user. Runs inside the caller's transaction; the
caller commits.
"""

import logging
from uuid import UUID

from pydantic import BaseModel

from src.app.services.clock import Clock
from src.app.services.context import TenantContext
from src.app.services.session_store import SessionStore
from src.app.services.token_ledger import TokenLedger
from src.app.services.unit_of_work import UnitOfWork
from src.libs.result import Result, Return

logger = logging.getLogger(__name__)


class RevocationSummary(BaseModel):
    """Rows newly revoked by one cascade"""

    sessions_revoked: int = 0
    tokens_revoked: int = 0


class RevocationCascade:
    """
    Business Rules:
    - Monotonic: nothing is ever un-revoked
    - Idempotent: repeating a cascade revokes zero additional rows
    - Session revocation eagerly revokes the session's outstanding tokens,
      even though rotation re-checks session activity anyway
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.ledger = TokenLedger(uow, clock)
        self.sessions = SessionStore(uow, clock)

    async def revoke_family(
        self, tenant: TenantContext, family_id: UUID, reason: str
    ) -> Result[RevocationSummary]:
        result = await self.ledger.revoke_family(tenant, family_id, reason)
        if result.is_err():
            return result
        logger.info(f"Revoked family {family_id}: {result.value} token(s), reason={reason}")
        return Return.ok(RevocationSummary(tokens_revoked=result.value))

    async def revoke_session(
        self, tenant: TenantContext, session_id: UUID, reason: str
    ) -> Result[RevocationSummary]:
        found = await self.sessions.get(tenant, session_id)
        if found.is_err():
            return found

        revoked = await self.sessions.revoke(tenant, session_id, reason)
        if revoked.is_err():
            return revoked

        tokens = await self.ledger.revoke_by_session(tenant, session_id, reason)
        if tokens.is_err():
            return tokens

        summary = RevocationSummary(
            sessions_revoked=1 if revoked.value else 0,
            tokens_revoked=tokens.value,
        )
        logger.info(
            f"Revoked session {session_id}: {summary.tokens_revoked} token(s), reason={reason}"
        )
        return Return.ok(summary)

    async def revoke_user(
        self, tenant: TenantContext, user_id: UUID, reason: str
    ) -> Result[RevocationSummary]:
        sessions = await self.sessions.revoke_by_user(tenant, user_id, reason)
        if sessions.is_err():
            return sessions

        tokens = await self.ledger.revoke_by_user(tenant, user_id, reason)
        if tokens.is_err():
            return tokens

        summary = RevocationSummary(
            sessions_revoked=sessions.value, tokens_revoked=tokens.value
        )
        logger.info(
            f"Revoked user {user_id}: {summary.sessions_revoked} session(s), "
            f"{summary.tokens_revoked} token(s), reason={reason}"
        )
        return Return.ok(summary)
