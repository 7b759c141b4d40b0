import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.bind_tenant = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.audit_events.create = AsyncMock()
    return uow
