"""
Get Audit Events Use Case

Retrieves token lifecycle audit events for a tenant with pagination.
"""

from typing import Any, Dict, Optional

from src.app.services.context import TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.libs.result import Result, Return


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events for a tenant.

    Business Rules:
    - Results are tenant-scoped
    - Results ordered by newest first
    - Supports cursor-based pagination
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        tenant: TenantContext,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        async with self.uow:
            await self.uow.bind_tenant(tenant.tenant_id)

            events, next_cursor = await self.uow.audit_events.get_by_tenant_paginated(
                tenant.tenant_id, limit=limit, cursor=cursor
            )

            events_list = [
                {
                    "action": event.action,
                    "user_id": str(event.user_id) if event.user_id else None,
                    "session_id": str(event.session_id) if event.session_id else None,
                    "family_id": str(event.family_id) if event.family_id else None,
                    "timestamp": event.created_at.isoformat() + "Z",
                    "metadata": event.event_metadata or {},
                }
                for event in events
            ]

            return Return.ok({"events": events_list, "next_cursor": next_cursor})
