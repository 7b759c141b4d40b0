from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, tenant_id: UUID, session_id: UUID) -> Optional[Session]:
        stmt = select(Session).where(
            Session.tenant_id == tenant_id,
            Session.id == session_id,
            Session.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, session_obj: Session) -> Session:
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def revoke(
        self, tenant_id: UUID, session_id: UUID, reason: str, revoked_at: datetime
    ) -> bool:
        stmt = (
            update(Session)
            .where(
                Session.tenant_id == tenant_id,
                Session.id == session_id,
                Session.revoked_at.is_(None),
            )
            .values(revoked_at=revoked_at, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_user(
        self, tenant_id: UUID, user_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        stmt = (
            update(Session)
            .where(
                Session.tenant_id == tenant_id,
                Session.user_id == user_id,
                Session.revoked_at.is_(None),
            )
            .values(revoked_at=revoked_at, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
