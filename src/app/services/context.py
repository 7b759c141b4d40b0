"""
Request Context

Values supplied by external collaborators on every call: the tenant the
caller acts in and the client metadata recorded on issued tokens.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TenantContext(BaseModel):
    """Active tenant. Every lookup and mutation is scoped by it."""

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID

    def owns(self, entity) -> bool:
        return getattr(entity, "tenant_id", None) == self.tenant_id


class ClientContext(BaseModel):
    """Device metadata of the presenting client"""

    model_config = ConfigDict(frozen=True)

    device_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
