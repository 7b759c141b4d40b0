"""
Rotate Refresh Token Use Case

The rotation engine: validates a presented refresh token against the
ledger and either rotates it or answers with a revocation cascade.
"""

import hmac
import logging
from typing import Optional

from config import ApplicationConfig
from src.api.utils.jwt import (
    decode_refresh_token,
    encode_refresh_token,
    generate_access_token,
)
from src.app.services.clock import Clock, SystemClock
from src.app.services.context import ClientContext, TenantContext
from src.app.services.family_locks import FamilyLockRegistry, family_locks
from src.app.services.revocation_cascade import RevocationCascade
from src.app.services.session_store import SessionStore
from src.app.services.token_ledger import TokenLedger, tenant_mismatch
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import (
    AuditEvent,
    RefreshToken,
    RevocationReason,
    Session,
    TokenState,
)
from src.libs.result import Error, Result, Return
from .dtos import RotationResponse

logger = logging.getLogger(__name__)

# Rejections that must look identical to clients
REJECTION_CODES = (
    "INVALID_TOKEN",
    "TOKEN_REUSE_DETECTED",
    "SESSION_INACTIVE",
    "POP_MISMATCH",
    # Successor would be born expired (non-positive refresh TTL)
    "INVALID_TOKEN_WINDOW",
)


class RotateRefreshTokenUseCase:
    """
    Use case for exchanging a refresh token for its successor.

    Business Rules:
    - Evaluation order: not found, expired, revoked, reused, valid
    - Not found / expired / revoked tokens are rejected without side effects
    - A consumed token presented again revokes its whole family (and, by
      default, its session): a legitimate client presents each token once
    - A valid token is rotated only if its session is active and the
      presented proof-of-possession matches every bound thumbprint
    - Issuing the child and consuming the parent commit together
    - Of concurrent presentations of one token exactly one wins; the
      others observe it as consumed and take the reuse branch
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        locks: Optional[FamilyLockRegistry] = None,
    ):
        self.uow = uow
        self.clock = clock or SystemClock()
        self.locks = locks or family_locks
        self.ledger = TokenLedger(uow, self.clock)
        self.sessions = SessionStore(uow, self.clock)
        self.cascade = RevocationCascade(uow, self.clock)

    async def execute(
        self,
        tenant: TenantContext,
        refresh_token: str,
        client: ClientContext,
        proof_jkt: Optional[str] = None,
    ) -> Result[RotationResponse]:
        """
        Execute refresh token rotation.

        Args:
            tenant: Tenant the caller acts in
            refresh_token: Bearer refresh token as presented by the client
            client: Device metadata recorded on the successor
            proof_jkt: Thumbprint proven by the caller's DPoP proof, if any

        Returns:
            Result with RotationResponse, or Error with one of
            REJECTION_CODES (client-facing) or TENANT_MISMATCH (internal)
        """
        claims = decode_refresh_token(refresh_token)
        if claims is None or claims.get("tid") != str(tenant.tenant_id):
            return self._invalid()
        jti = claims["jti"]

        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            found = await self.ledger.lookup(tenant, jti)
            if found.is_err():
                return self._invalid()

            async with self.locks.hold(tenant.tenant_id, found.value.family_id):
                result = await self._transition(tenant, jti, client, proof_jkt)

                if result.is_err() and result.error.code == "ALREADY_USED":
                    # Another worker consumed the token between our read and
                    # our update. Drop the child we issued and re-evaluate:
                    # the token now reads as used.
                    logger.info(f"Lost rotation race on family {found.value.family_id}")
                    await self.uow.rollback()
                    await self.uow.bind_tenant(tenant.tenant_id)
                    result = await self._transition(tenant, jti, client, proof_jkt)

                return result

    async def _transition(
        self,
        tenant: TenantContext,
        jti: str,
        client: ClientContext,
        proof_jkt: Optional[str],
    ) -> Result[RotationResponse]:
        now = self.clock.now()

        found = await self.ledger.lookup(tenant, jti, for_update=True)
        if found.is_err():
            return self._invalid()
        token = found.value

        state = token.state(now)
        if state in (TokenState.expired, TokenState.revoked):
            logger.info(f"Rejected {state.value} refresh token {token.id}")
            return self._invalid()

        if state == TokenState.used:
            return await self._handle_reuse(tenant, token)

        session_found = await self.sessions.get(tenant, token.session_id)
        if session_found.is_err():
            return tenant_mismatch(tenant, "session", token.session_id)
        session = session_found.value

        if not session.is_active(now):
            logger.info(f"Rejected refresh token {token.id}: session {session.id} inactive")
            return Return.err(Error("SESSION_INACTIVE", "Session is not active"))

        if not self._proof_matches(token, session, proof_jkt):
            return await self._handle_pop_mismatch(tenant, token)

        child = await self.ledger.issue_child(tenant, token, client)
        if child.is_err():
            return child

        consumed = await self.ledger.mark_used(tenant, token, child.value)
        if consumed.is_err():
            return consumed

        await self.uow.audit_events.create(
            AuditEvent(
                tenant_id=tenant.tenant_id,
                created_at=self.clock.now(),
                user_id=token.user_id,
                session_id=token.session_id,
                family_id=token.family_id,
                action="token_rotated",
                event_metadata={
                    "parent_id": str(token.id),
                    "child_id": str(child.value.id),
                    "ip": client.ip,
                },
            )
        )

        await self.uow.commit()

        return Return.ok(self._build_response(child.value))

    async def _handle_reuse(
        self, tenant: TenantContext, token: RefreshToken
    ) -> Result[RotationResponse]:
        logger.warning(
            f"Refresh token reuse detected: tenant={tenant.tenant_id} "
            f"family={token.family_id} token={token.id}"
        )
        reason = RevocationReason.reuse_detected.value

        family = await self.cascade.revoke_family(tenant, token.family_id, reason)
        if family.is_err():
            return family

        sessions_revoked = 0
        tokens_revoked = family.value.tokens_revoked
        if ApplicationConfig.REVOKE_SESSION_ON_REUSE:
            session = await self.cascade.revoke_session(tenant, token.session_id, reason)
            if session.is_err():
                return tenant_mismatch(tenant, "session", token.session_id)
            sessions_revoked = session.value.sessions_revoked
            tokens_revoked += session.value.tokens_revoked

        await self.uow.audit_events.create(
            AuditEvent(
                tenant_id=tenant.tenant_id,
                created_at=self.clock.now(),
                user_id=token.user_id,
                session_id=token.session_id,
                family_id=token.family_id,
                action="token_reuse_detected",
                event_metadata={
                    "token_id": str(token.id),
                    "tokens_revoked": tokens_revoked,
                    "sessions_revoked": sessions_revoked,
                },
            )
        )

        # The cascade must survive even though the request is rejected
        await self.uow.commit()

        return Return.err(Error("TOKEN_REUSE_DETECTED", "Refresh token reuse detected"))

    async def _handle_pop_mismatch(
        self, tenant: TenantContext, token: RefreshToken
    ) -> Result[RotationResponse]:
        logger.warning(
            f"Proof-of-possession mismatch: tenant={tenant.tenant_id} token={token.id}"
        )
        tokens_revoked = 0
        if ApplicationConfig.REVOKE_FAMILY_ON_POP_MISMATCH:
            family = await self.cascade.revoke_family(
                tenant, token.family_id, RevocationReason.pop_mismatch.value
            )
            if family.is_err():
                return family
            tokens_revoked = family.value.tokens_revoked

        await self.uow.audit_events.create(
            AuditEvent(
                tenant_id=tenant.tenant_id,
                created_at=self.clock.now(),
                user_id=token.user_id,
                session_id=token.session_id,
                family_id=token.family_id,
                action="pop_mismatch",
                event_metadata={"token_id": str(token.id), "tokens_revoked": tokens_revoked},
            )
        )
        await self.uow.commit()

        return Return.err(
            Error("POP_MISMATCH", "Proof-of-possession does not match token binding")
        )

    @staticmethod
    def _proof_matches(
        token: RefreshToken, session: Session, proof_jkt: Optional[str]
    ) -> bool:
        for bound in (token.cnf_jkt, session.cnf_jkt):
            if bound is None:
                continue
            if proof_jkt is None:
                return False
            if not hmac.compare_digest(bound.encode(), proof_jkt.encode()):
                return False
        return True

    @staticmethod
    def _invalid() -> Result[RotationResponse]:
        return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))

    @staticmethod
    def _build_response(token: RefreshToken) -> RotationResponse:
        return RotationResponse(
            access_token=generate_access_token(
                token.user_id, token.tenant_id, token.session_id
            ),
            refresh_token=encode_refresh_token(token),
            session_id=str(token.session_id),
            family_id=str(token.family_id),
            refresh_token_expires_at=token.expires_at,
        )
