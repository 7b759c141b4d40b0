from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.app.services.context import ClientContext, TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.tokens import (
    REJECTION_CODES,
    RotateRefreshTokenUseCase,
    RotationResponse,
)
from src.depends import get_client_context, get_tenant_context, get_unit_of_work
from src.libs.result import Error

router = APIRouter(prefix="/tokens", tags=["Tokens"])


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RotationResponse)
async def refresh(
    request: RefreshRequest,
    tenant: TenantContext = Depends(get_tenant_context),
    client: ClientContext = Depends(get_client_context),
    x_proof_jkt: Optional[str] = Header(None),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Rotate Refresh Token

    Exchanges a refresh token for its successor. Each refresh token can be
    presented exactly once; presenting a consumed token again revokes the
    whole rotation family.

    Headers:
        - X-Tenant-ID: tenant context (required)
        - X-Proof-JKT: thumbprint proven by a verified DPoP proof (optional)

    Raises:
        - 400 Bad Request: Missing or malformed tenant header
        - 401 Unauthorized: Token rejected, for whatever reason (uniform body)
        - 500 Internal Server Error: Tenant mismatch or storage failure
    """
    use_case = RotateRefreshTokenUseCase(uow)
    result = await use_case.execute(tenant, request.refresh_token, client, proof_jkt=x_proof_jkt)

    if result.is_err():
        error = result.error
        if error.code in REJECTION_CODES:
            # Never reveal why: reuse, expiry and revocation look the same
            raise ClientError(
                Error("INVALID_TOKEN", "Invalid refresh token"),
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
        raise ServerError(error)

    return result.value
