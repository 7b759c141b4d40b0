from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.context import ClientContext, TenantContext
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.sessions import (
    EstablishSessionCommand,
    EstablishSessionResponse,
    EstablishSessionUseCase,
    RevocationResponse,
    RevokeSessionUseCase,
    RevokeUserSessionsUseCase,
)
from src.depends import (
    get_current_user,
    get_tenant_context,
    get_unit_of_work,
    get_user_tenant_context,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class EstablishSessionRequest(BaseModel):
    """
    Session establishment payload, sent by the authenticator after it has
    verified the user's credentials.
    """

    user_id: UUID = Field(..., description="Authenticated user")
    ttl_seconds: Optional[int] = Field(None, gt=0, description="Session lifetime override")
    cnf_jkt: Optional[str] = Field(
        None, max_length=128, description="DPoP key thumbprint to bind the session to"
    )
    device_id: Optional[str] = Field(None, max_length=255)
    ip: Optional[str] = Field(None, max_length=45, description="End-user IP")
    user_agent: Optional[str] = Field(None, description="End-user agent")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=EstablishSessionResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def establish_session(
    request: EstablishSessionRequest,
    tenant: TenantContext = Depends(get_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Establish Session (internal)

    Opens a session and issues the root refresh token of a new family.

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 404 Not Found: User does not exist in the tenant
        - 422 Unprocessable Entity: Invalid input or empty validity window
        - 500 Internal Server Error: Server error
    """
    command = EstablishSessionCommand(
        user_id=request.user_id, ttl_seconds=request.ttl_seconds, cnf_jkt=request.cnf_jkt
    )
    client = ClientContext(
        device_id=request.device_id, ip=request.ip, user_agent=request.user_agent
    )

    use_case = EstablishSessionUseCase(uow)
    result = await use_case.execute(tenant, command, client)

    if result.is_err():
        error = result.error
        if error.code == "USER_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        elif error.code in ("INVALID_SESSION_WINDOW", "INVALID_TOKEN_WINDOW"):
            raise ClientError(error, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
        raise ServerError(error)

    return result.value


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevocationResponse,
)
async def revoke_all_sessions(
    current_user: dict = Depends(get_current_user),
    tenant: TenantContext = Depends(get_user_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Global Logout

    Revokes every session of the caller in the tenant, together with every
    outstanding refresh token.
    """
    use_case = RevokeUserSessionsUseCase(uow)
    result = await use_case.execute(tenant, UUID(current_user["user_id"]))

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevocationResponse,
)
async def revoke_session(
    session_id: UUID,
    current_user: dict = Depends(get_current_user),
    tenant: TenantContext = Depends(get_user_tenant_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Logout

    Revokes one of the caller's sessions and its outstanding refresh tokens.
    Repeating the call is harmless and reports zero revocations.

    Raises:
        - 401 Unauthorized: Invalid access token
        - 403 Forbidden: Session belongs to another user
        - 404 Not Found: Session not found in the tenant
        - 500 Internal Server Error: Server error
    """
    use_case = RevokeSessionUseCase(uow)
    result = await use_case.execute(tenant, session_id, UUID(current_user["user_id"]))

    if result.is_err():
        error = result.error
        if error.code == "FORBIDDEN":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        elif error.code == "SESSION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
