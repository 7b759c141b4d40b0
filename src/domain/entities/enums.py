"""
Identity Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class PreferredLogin(str, Enum):
    """How the user normally authenticates"""

    PASSWORD = "PASSWORD"
    OIDC = "OIDC"


class MfaMethod(str, Enum):
    """Second factor configured for the user"""

    NONE = "NONE"
    TOTP = "TOTP"


class TokenState(str, Enum):
    """Lifecycle state of a refresh token, derived from its stored fields"""

    active = "active"
    used = "used"
    revoked = "revoked"
    expired = "expired"


class RevocationReason(str, Enum):
    """Values written to revoked_reason"""

    reuse_detected = "reuse-detected"
    pop_mismatch = "pop-mismatch"
    logout = "logout"
    global_logout = "global-logout"
    admin = "admin-revoked"
