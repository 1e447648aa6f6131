from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer

from schemas.user import Actor
from services.auth_service import AuthService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
) -> Actor:
    """Dependency to get current authenticated user."""
    settings = request.app.state.settings

    # Try to get token from Authorization header first
    if token:
        return AuthService.get_actor_from_token(token, settings)

    # Try to get token from cookies if header not present
    token_from_cookie = request.cookies.get("access_token")
    if token_from_cookie:
        return AuthService.get_actor_from_token(token_from_cookie, settings)

    # No token found
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
