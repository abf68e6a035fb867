from .config import Settings, get_settings
from .security import (
    create_jwt_token,
    decode_jwt_token,
    verify_identity_token,
)

__all__ = [
    "Settings",
    "get_settings",
    "create_jwt_token",
    "decode_jwt_token",
    "verify_identity_token",
]
