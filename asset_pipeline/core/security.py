# Standard library imports
import time
from typing import Any, Dict, Optional

# External package imports
import jwt
from jwt.exceptions import DecodeError, ExpiredSignatureError, InvalidTokenError

# Local application imports
from .config import get_settings
from ..domain.exceptions import (
    AuthenticationRequiredError,
    InvalidTokenError as InvalidIdentityTokenError,
    TokenExpiredError,
)

# Claims that may carry the identity, in lookup order. "userId" is what the
# legacy Node issuer put in its access tokens.
IDENTITY_CLAIMS = ("sub", "userId")


def create_jwt_token(payload: Dict[str, Any], expires_in_seconds: Optional[int] = None) -> str:
    """
    Create a JWT token with expiration

    Args:
        payload: Dictionary containing token claims (e.g., sub, email)
        expires_in_seconds: Override for the configured lifetime. Negative values
            produce an already-expired token.

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    issued_at = int(time.time())
    lifetime = (
        expires_in_seconds
        if expires_in_seconds is not None
        else settings.access_token_expire_minutes * 60
    )

    token_payload = {
        **payload,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }

    return jwt.encode(
        token_payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_jwt_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token

    Args:
        token: The JWT token string to decode

    Returns:
        Dictionary containing decoded token claims

    Raises:
        ValueError: If token is invalid or expired
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except (InvalidTokenError, DecodeError) as e:
        raise ValueError(f"Invalid token: {str(e)}")


def extract_identity(claims: Dict[str, Any]) -> Optional[str]:
    """Return the owner id carried by decoded claims, if any."""
    for claim in IDENTITY_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None


def verify_identity_token(token: Optional[str]) -> str:
    """
    Verify a handshake identity token and return the owner id it names.

    Unlike decode_jwt_token this keeps expiry and other verification failures
    apart, because connection rejections report them differently.

    Args:
        token: Raw token string as supplied by the client (may be None)

    Returns:
        Owner id from the token claims

    Raises:
        AuthenticationRequiredError: If no token was supplied
        TokenExpiredError: If the token has expired
        InvalidTokenError: If the token fails verification or has no identity
    """
    if not token or not isinstance(token, str):
        raise AuthenticationRequiredError()

    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError(f"Token expired: {e}")
    except (InvalidTokenError, DecodeError) as e:
        raise InvalidIdentityTokenError(f"Invalid token: {e}")

    owner_id = extract_identity(claims)
    if not owner_id:
        raise InvalidIdentityTokenError("Token does not contain user ID")
    return owner_id
