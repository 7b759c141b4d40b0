from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.refresh_token_repository import IRefreshTokenRepository
from src.domain.entities import RefreshToken


class RefreshTokenRepository(IRefreshTokenRepository):
    """Refresh token repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_jti(
        self, tenant_id: UUID, jti: str, for_update: bool = False
    ) -> Optional[RefreshToken]:
        stmt = select(RefreshToken).where(
            RefreshToken.tenant_id == tenant_id,
            RefreshToken.jti == jti,
            RefreshToken.deleted_at.is_(None),
        )
        if for_update:
            # SQLite silently drops FOR UPDATE; PostgreSQL locks the row
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_family(self, tenant_id: UUID, family_id: UUID) -> List[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.tenant_id == tenant_id,
                RefreshToken.family_id == family_id,
                RefreshToken.deleted_at.is_(None),
            )
            .order_by(RefreshToken.created_at)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, token: RefreshToken) -> RefreshToken:
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def mark_used(
        self, tenant_id: UUID, token_id: UUID, replaced_by_id: UUID, used_at: datetime
    ) -> bool:
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.tenant_id == tenant_id,
                RefreshToken.id == token_id,
                RefreshToken.used_at.is_(None),
                RefreshToken.revoked == False,  # noqa: E712
            )
            .values(used_at=used_at, replaced_by_id=replaced_by_id)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke_family(
        self, tenant_id: UUID, family_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.tenant_id == tenant_id,
                RefreshToken.family_id == family_id,
                RefreshToken.revoked == False,  # noqa: E712
            )
            .values(revoked=True, revoked_at=revoked_at, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_by_session(
        self, tenant_id: UUID, session_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.tenant_id == tenant_id,
                RefreshToken.session_id == session_id,
                RefreshToken.revoked == False,  # noqa: E712
                RefreshToken.used_at.is_(None),
            )
            .values(revoked=True, revoked_at=revoked_at, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_by_user(
        self, tenant_id: UUID, user_id: UUID, reason: str, revoked_at: datetime
    ) -> int:
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.tenant_id == tenant_id,
                RefreshToken.user_id == user_id,
                RefreshToken.revoked == False,  # noqa: E712
                RefreshToken.used_at.is_(None),
            )
            .values(revoked=True, revoked_at=revoked_at, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
