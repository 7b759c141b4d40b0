import base64
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlmodel import and_, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.entities import AuditEvent


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        self.session.add(audit_event)
        await self.session.flush()
        return audit_event

    async def get_by_tenant_paginated(
        self, tenant_id: UUID, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """
        Cursor format: base64 of "<created_at ISO>|<id>" of the last returned
        event. The id breaks ties between events sharing a timestamp.
        An undecodable cursor restarts from the newest event.
        """
        stmt = select(AuditEvent).where(AuditEvent.tenant_id == tenant_id)

        if cursor:
            try:
                raw_timestamp, raw_id = (
                    base64.urlsafe_b64decode(cursor).decode("utf-8").split("|")
                )
                cursor_timestamp = datetime.fromisoformat(raw_timestamp)
                cursor_id = UUID(raw_id)
                stmt = stmt.where(
                    or_(
                        AuditEvent.created_at < cursor_timestamp,
                        and_(
                            AuditEvent.created_at == cursor_timestamp,
                            AuditEvent.id < cursor_id,
                        ),
                    )
                )
            except (ValueError, TypeError):
                pass

        stmt = stmt.order_by(
            AuditEvent.created_at.desc(), AuditEvent.id.desc()
        ).limit(limit + 1)
        result = await self.session.exec(stmt)
        events = list(result.all())

        next_cursor = None
        if len(events) > limit:
            events = events[:limit]
            next_cursor = base64.urlsafe_b64encode(
                f"{events[-1].created_at.isoformat()}|{events[-1].id}".encode("utf-8")
            ).decode("utf-8")

        return events, next_cursor
