#controls what parts of the internal security system are publicly exposed to the rest of the application
from .auth import create_access_token, create_refresh_token, verify_token, get_password_hash, verify_password
from .deps import get_current_user, get_current_active_user, require_roles, require_admin

__all__ = [
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "get_password_hash",
    "verify_password",
    "get_current_user",
    "get_current_active_user",
    "require_roles",
    "require_admin",
]
