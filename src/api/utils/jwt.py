from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig
from src.domain.entities import RefreshToken

ALGORITHM = "HS256"
REFRESH_TOKEN_TYPE = "refresh"


def generate_access_token(user_id: UUID, tenant_id: UUID, session_id: UUID) -> str:
    """
    Generate JWT access token

    Args:
        user_id: User UUID
        tenant_id: Tenant UUID
        session_id: Session the token was minted for

    Returns:
        JWT token string (HS256, ACCESS_TOKEN_TTL_MINUTES expiry)
    """
    now = datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "tenant_id": str(tenant_id),
        "session_id": str(session_id),
        "exp": now + timedelta(minutes=ApplicationConfig.ACCESS_TOKEN_TTL_MINUTES),
        "iat": now,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm=ALGORITHM)


def encode_refresh_token(token: RefreshToken) -> str:
    """
    Serialize a ledger token into the bearer string handed to clients.

    Only identifiers travel in the JWT; all state lives in the ledger.
    """
    payload = {
        "jti": token.jti,
        "tid": str(token.tenant_id),
        "sid": str(token.session_id),
        "typ": REFRESH_TOKEN_TYPE,
        "iat": token.created_at,
        "exp": token.expires_at,
    }
    headers = {"kid": token.kid} if token.kid else None
    return jwt.encode(
        payload, ApplicationConfig.JWT_SECRET, algorithm=ALGORITHM, headers=headers
    )


def decode_refresh_token(token: str) -> Optional[dict]:
    """
    Verify the signature of a presented refresh token and return its claims.

    Expiry is deliberately not checked here: the ledger's expires_at is the
    single source of truth for it.

    Returns:
        Claims dict, or None if the token is malformed, forged or not a
        refresh token
    """
    try:
        claims = jwt.decode(
            token,
            ApplicationConfig.JWT_SECRET,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        return None

    if claims.get("typ") != REFRESH_TOKEN_TYPE or not claims.get("jti"):
        return None
    return claims


def verify_access_token(token: str) -> Optional[dict]:
    """
    Verify and decode an access token

    Returns:
        Decoded payload dict or None if invalid or expired
    """
    try:
        payload = jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if not all(payload.get(claim) for claim in ("user_id", "tenant_id", "session_id")):
        return None
    return payload
