"""
Audit trail pagination when several events share a timestamp.
"""

import pytest

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.domain.base import utcnow
from src.domain.entities import AuditEvent


@pytest.mark.asyncio
async def test_events_sharing_timestamp_span_pages(db_session, test_data):
    tenant_id = test_data.tenant_id("acme")
    repository = AuditEventRepository(db_session)
    stamp = utcnow()
    for _ in range(5):
        await repository.create(
            AuditEvent(tenant_id=tenant_id, action="token_rotated", created_at=stamp)
        )
    await db_session.commit()

    seen = []
    cursor = None
    for _ in range(5):
        events, cursor = await repository.get_by_tenant_paginated(
            tenant_id, limit=2, cursor=cursor
        )
        seen.extend(event.id for event in events)
        if cursor is None:
            break

    assert len(seen) == 5
    assert len(set(seen)) == 5
