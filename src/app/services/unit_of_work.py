from abc import ABC, abstractmethod
from uuid import UUID

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management.

    Leaving the context without commit() rolls back, so an aborted request
    never leaves a half-rotated family behind.
    """

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    refresh_tokens: IRefreshTokenRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def bind_tenant(self, tenant_id: UUID):
        """Expose the tenant to the storage engine for the current transaction"""
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
