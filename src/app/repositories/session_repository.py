from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer.

    Every method is scoped by tenant_id; a session of another tenant is
    indistinguishable from a missing one.
    """

    @abstractmethod
    async def get_by_id(self, tenant_id: UUID, session_id: UUID) -> Optional[Session]:
        """Get session by ID within the tenant"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def revoke(
        self, tenant_id: UUID, session_id: UUID, reason: str, revoked_at: datetime
    ) -> bool:
        """Revoke one session. Returns False if it was already revoked or missing."""
        pass

    @abstractmethod
    async def revoke_all_by_user(
        self, tenant_id: UUID, user_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        """Revoke every non-revoked session of a user. Returns count revoked."""
        pass
