"""
SQLModel repositories against SQLite: conditional consumption and
soft-delete visibility.
"""

from datetime import timedelta
from uuid import UUID

import pytest
import pytest_asyncio

from src.adapter.repositories.refresh_token_repository import RefreshTokenRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.api.utils.jwt import decode_refresh_token
from src.app.services.context import ClientContext, TenantContext
from src.app.use_cases.sessions import EstablishSessionCommand, EstablishSessionUseCase
from src.app.use_cases.tokens import RotateRefreshTokenUseCase
from src.domain.base import utcnow
from src.domain.entities import RefreshToken


@pytest.fixture
def acme(test_data):
    return TenantContext(tenant_id=test_data.tenant_id("acme"))


@pytest_asyncio.fixture
async def established(uow_factory, acme, users):
    result = await EstablishSessionUseCase(uow_factory()).execute(
        acme, EstablishSessionCommand(user_id=users["alice"].id), ClientContext()
    )
    return result.value


async def load_root(db_session, acme, established):
    jti = decode_refresh_token(established.refresh_token)["jti"]
    return await RefreshTokenRepository(db_session).get_by_jti(acme.tenant_id, jti)


def successor_of(token: RefreshToken, now) -> RefreshToken:
    return RefreshToken(
        tenant_id=token.tenant_id,
        user_id=token.user_id,
        session_id=token.session_id,
        family_id=token.family_id,
        parent_id=token.id,
        jti=f"{token.jti}-next",
        expires_at=now + timedelta(days=1),
        created_at=now,
        updated_at=now,
    )


@pytest.mark.asyncio
async def test_mark_used_succeeds_only_once(db_session, acme, established):
    repository = RefreshTokenRepository(db_session)
    root = await load_root(db_session, acme, established)
    now = utcnow()
    first = await repository.create(successor_of(root, now))
    second = successor_of(root, now)
    second.jti = f"{root.jti}-other"
    second = await repository.create(second)

    assert await repository.mark_used(acme.tenant_id, root.id, first.id, now) is True
    assert await repository.mark_used(acme.tenant_id, root.id, second.id, now) is False
    await db_session.commit()

    reloaded = await repository.get_by_jti(acme.tenant_id, root.jti, for_update=True)
    assert reloaded.replaced_by_id == first.id


@pytest.mark.asyncio
async def test_mark_used_refuses_revoked_token(db_session, acme, established):
    repository = RefreshTokenRepository(db_session)
    root = await load_root(db_session, acme, established)
    now = utcnow()
    child = await repository.create(successor_of(root, now))

    await repository.revoke_family(acme.tenant_id, root.family_id, "admin-revoked", now)

    assert await repository.mark_used(acme.tenant_id, root.id, child.id, now) is False


@pytest.mark.asyncio
async def test_soft_deleted_token_is_invisible(uow_factory, db_session, acme, established):
    root = await load_root(db_session, acme, established)
    root.deleted_at = utcnow()
    db_session.add(root)
    await db_session.commit()

    found = await RefreshTokenRepository(db_session).get_by_jti(acme.tenant_id, root.jti)
    rotated = await RotateRefreshTokenUseCase(uow_factory()).execute(
        acme, established.refresh_token, ClientContext()
    )

    assert found is None
    assert rotated.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_soft_deleted_session_is_invisible(uow_factory, db_session, acme, established):
    repository = SessionRepository(db_session)
    session = await repository.get_by_id(acme.tenant_id, UUID(established.session_id))
    session.deleted_at = utcnow()
    db_session.add(session)
    await db_session.commit()

    found = await repository.get_by_id(acme.tenant_id, session.id)
    rotated = await RotateRefreshTokenUseCase(uow_factory()).execute(
        acme, established.refresh_token, ClientContext()
    )

    assert found is None
    assert rotated.error.code == "TENANT_MISMATCH"
