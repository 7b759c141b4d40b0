"""
Admin API Routes

Incident-response endpoints: inspect and revoke rotation families, read the
audit trail. Service-to-service only (X-Admin-API-Key).
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.context import TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.app.use_cases.tokens import (
    GetTokenFamilyUseCase,
    RevokeFamilyResponse,
    RevokeFamilyUseCase,
    TokenFamilyResponse,
)
from src.depends import get_tenant_context, get_unit_of_work
from src.domain.entities import RevocationReason

router = APIRouter(
    prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_api_key)]
)


class RevokeFamilyRequest(BaseModel):
    reason: str = Field(
        RevocationReason.admin.value, min_length=1, max_length=100
    )


class AuditEventResponse(BaseModel):
    """Single audit event in response"""

    action: str
    user_id: Optional[str]
    session_id: Optional[str]
    family_id: Optional[str]
    timestamp: str
    metadata: Dict[str, Any]


class AuditEventsResponse(BaseModel):
    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "/families/{family_id}",
    status_code=status.HTTP_200_OK,
    response_model=TokenFamilyResponse,
)
async def get_token_family(
    family_id: UUID,
    tenant: TenantContext = Depends(get_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Inspect Token Family

    Returns the rotation chain root first, with the derived state of every
    token. No token material is returned.
    """
    use_case = GetTokenFamilyUseCase(uow)
    result = await use_case.execute(tenant, family_id)

    if result.is_err():
        error = result.error
        if error.code == "FAMILY_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


@router.post(
    "/families/{family_id}/revoke",
    status_code=status.HTTP_200_OK,
    response_model=RevokeFamilyResponse,
)
async def revoke_token_family(
    family_id: UUID,
    request: RevokeFamilyRequest,
    tenant: TenantContext = Depends(get_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Revoke Token Family

    Idempotent: a second call reports revoked_count = 0.
    """
    use_case = RevokeFamilyUseCase(uow)
    result = await use_case.execute(tenant, family_id, request.reason)

    if result.is_err():
        error = result.error
        if error.code == "FAMILY_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value


@router.get(
    "/audit-events",
    status_code=status.HTTP_200_OK,
    response_model=AuditEventsResponse,
)
async def get_audit_events(
    tenant: TenantContext = Depends(get_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Audit Trail

    Newest first, cursor-paginated.
    """
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(tenant, limit=limit, cursor=cursor)

    if result.is_err():
        raise ServerError(result.error)

    return result.value
