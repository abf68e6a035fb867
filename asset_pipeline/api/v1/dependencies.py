# External package imports
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# Local application imports
from ...core.security import verify_identity_token
from ...di.container import DIContainer
from ...domain.exceptions import AuthenticationError


security_scheme = HTTPBearer(auto_error=True)


def get_container(request: Request) -> DIContainer:
    """The container built at startup and attached to the application"""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized"
        )
    return container


async def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> str:
    """
    FastAPI dependency resolving the caller's identity from a Bearer JWT

    Args:
        credentials: HTTP Bearer token credentials

    Returns:
        Owner ID carried by the token

    Raises:
        HTTPException: 401 if the token is expired, invalid or carries no identity
    """
    try:
        return verify_identity_token(credentials.credentials)
    except AuthenticationError as exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exception.reason
        )
