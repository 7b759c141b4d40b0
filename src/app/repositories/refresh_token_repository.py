from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import RefreshToken


class IRefreshTokenRepository(ABC):
    """Refresh token repository interface - application layer.

    Every method is scoped by tenant_id. Mutations are conditional updates
    so they stay correct when several requests race on the same rows.
    """

    @abstractmethod
    async def get_by_jti(
        self, tenant_id: UUID, jti: str, for_update: bool = False
    ) -> Optional[RefreshToken]:
        """
        Get token by its jti.

        With for_update the row is re-read from the database (ignoring any
        cached instance) and locked until the transaction ends, where the
        backend supports row locks.
        """
        pass

    @abstractmethod
    async def get_family(self, tenant_id: UUID, family_id: UUID) -> List[RefreshToken]:
        """Get every token of a rotation family, oldest first"""
        pass

    @abstractmethod
    async def create(self, token: RefreshToken) -> RefreshToken:
        """Insert a new token"""
        pass

    @abstractmethod
    async def mark_used(
        self, tenant_id: UUID, token_id: UUID, replaced_by_id: UUID, used_at: datetime
    ) -> bool:
        """
        Consume a token.

        Only transitions a token that is neither used nor revoked. Returns
        False when no row changed, i.e. someone else consumed or revoked it
        first.
        """
        pass

    @abstractmethod
    async def revoke_family(
        self, tenant_id: UUID, family_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        """Revoke every non-revoked token of a family. Returns count revoked."""
        pass

    @abstractmethod
    async def revoke_by_session(
        self, tenant_id: UUID, session_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        """Revoke outstanding (unused, non-revoked) tokens of a session."""
        pass

    @abstractmethod
    async def revoke_by_user(
        self, tenant_id: UUID, user_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        """Revoke outstanding (unused, non-revoked) tokens across a user's sessions."""
        pass
