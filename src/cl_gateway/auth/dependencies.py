"""FastAPI dependencies: services container, current user, admin guard.

Usage in any protected router:
    from src.cl_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: Annotated[UserProfile, Depends(get_current_user)]):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.cl_common.errors import AdminRequiredError, InvalidCredentialsError
from src.cl_gateway.auth.jwt_handler import decode_token
from src.cl_user.domain.models import UserProfile
from src.services import Services

# Tokens come from the identity provider; tokenUrl only feeds Swagger's Authorize button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


async def get_current_user(
    request: Request,
    token: Annotated[str, Depends(oauth2_scheme)],
    services: Annotated[Services, Depends(get_services)],
) -> UserProfile:
    """Verify the Bearer token and load the caller's user document.

    Raises HTTP 401 if the token is invalid or the user document is missing.
    """
    try:
        payload = decode_token(token, request.app.state.settings)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user = await services.users.get_by_id(payload["sub"])
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    return user


async def require_admin(
    current_user: Annotated[UserProfile, Depends(get_current_user)],
) -> UserProfile:
    if not current_user.is_admin:
        raise AdminRequiredError()
    return current_user
