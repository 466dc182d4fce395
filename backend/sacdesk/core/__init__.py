from .config import settings
from .exceptions import NotFound, PersistenceFailure, SacDeskError, ValidationError
from .security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_token,
    verify_password,
)

__all__ = [
    "settings",
    "NotFound",
    "PersistenceFailure",
    "SacDeskError",
    "ValidationError",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "verify_token",
    "verify_password",
]
