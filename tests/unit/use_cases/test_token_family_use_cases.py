"""
Unit tests for rotation family inspection and revocation
"""

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.app.services.context import TenantContext
from src.app.use_cases.tokens import GetTokenFamilyUseCase, RevokeFamilyUseCase
from src.app.use_cases.tokens.get_token_family_use_case import order_lineage
from tests.fixtures.clock import FixedClock
from tests.fixtures.factories import NOW, make_session, make_token


@pytest.fixture
def tenant():
    return TenantContext(tenant_id=uuid4())


def chain(session, length):
    tokens = [make_token(session)]
    for _ in range(length - 1):
        child = make_token(session, parent=tokens[-1])
        tokens[-1].replaced_by_id = child.id
        tokens[-1].used_at = NOW - timedelta(minutes=1)
        tokens.append(child)
    return tokens


def test_order_lineage_follows_replaced_by(tenant):
    tokens = chain(make_session(tenant.tenant_id), 4)

    ordered = order_lineage(list(reversed(tokens)))

    assert [t.id for t in ordered] == [t.id for t in tokens]


def test_order_lineage_keeps_orphans_last(tenant):
    session = make_session(tenant.tenant_id)
    tokens = chain(session, 2)
    orphan = make_token(session, parent=tokens[0])

    ordered = order_lineage([orphan] + tokens)

    assert [t.id for t in ordered] == [tokens[0].id, tokens[1].id, orphan.id]


@pytest.mark.asyncio
async def test_get_family_reports_states(mock_uow, tenant):
    tokens = chain(make_session(tenant.tenant_id), 3)
    mock_uow.refresh_tokens.get_family = AsyncMock(return_value=tokens)

    result = await GetTokenFamilyUseCase(mock_uow, FixedClock(NOW)).execute(
        tenant, tokens[0].family_id
    )

    assert result.is_ok()
    assert [node.state for node in result.value.tokens] == ["used", "used", "active"]
    assert result.value.tokens[0].parent_id is None
    assert result.value.tokens[1].parent_id == str(tokens[0].id)


@pytest.mark.asyncio
async def test_get_family_not_found(mock_uow, tenant):
    mock_uow.refresh_tokens.get_family = AsyncMock(return_value=[])

    result = await GetTokenFamilyUseCase(mock_uow, FixedClock(NOW)).execute(
        tenant, uuid4()
    )

    assert result.error.code == "FAMILY_NOT_FOUND"


@pytest.mark.asyncio
async def test_revoke_family(mock_uow, tenant):
    tokens = chain(make_session(tenant.tenant_id), 2)
    family_id = tokens[0].family_id
    mock_uow.refresh_tokens.get_family = AsyncMock(return_value=tokens)
    mock_uow.refresh_tokens.revoke_family = AsyncMock(return_value=2)

    result = await RevokeFamilyUseCase(mock_uow, FixedClock(NOW)).execute(
        tenant, family_id, "admin-revoked"
    )

    assert result.value.revoked_count == 2
    mock_uow.refresh_tokens.revoke_family.assert_called_once_with(
        tenant.tenant_id, family_id, "admin-revoked", NOW
    )
    event = mock_uow.audit_events.create.call_args.args[0]
    assert event.action == "family_revoked"
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_revoke_unknown_family(mock_uow, tenant):
    mock_uow.refresh_tokens.get_family = AsyncMock(return_value=[])
    mock_uow.refresh_tokens.revoke_family = AsyncMock()

    result = await RevokeFamilyUseCase(mock_uow, FixedClock(NOW)).execute(
        tenant, uuid4(), "admin-revoked"
    )

    assert result.error.code == "FAMILY_NOT_FOUND"
    mock_uow.refresh_tokens.revoke_family.assert_not_called()
