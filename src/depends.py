from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.utils.jwt import verify_access_token
from src.app.services.context import ClientContext, TenantContext
from src.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to extract and verify the access token from Authorization header.

    Returns:
        Decoded payload containing user_id, tenant_id, session_id

    Raises:
        ClientError: 401 if token is missing, invalid or expired
    """
    payload = verify_access_token(credentials.credentials) if credentials else None

    if payload is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Invalid or expired access token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return payload


async def get_tenant_context(x_tenant_id: str = Header(None)) -> TenantContext:
    """Tenant supplied by the gateway in X-Tenant-ID."""
    try:
        return TenantContext(tenant_id=UUID(x_tenant_id))
    except (TypeError, ValueError):
        raise ClientError(
            Error("TENANT_REQUIRED", "X-Tenant-ID header must carry a tenant UUID"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )


async def get_user_tenant_context(
    current_user: dict = Depends(get_current_user),
) -> TenantContext:
    """Tenant the caller's access token was minted for."""
    return TenantContext(tenant_id=UUID(current_user["tenant_id"]))


async def get_client_context(
    request: Request,
    user_agent: str = Header(None),
    x_device_id: str = Header(None),
) -> ClientContext:
    return ClientContext(
        device_id=x_device_id,
        ip=request.client.host if request.client else None,
        user_agent=user_agent,
    )
