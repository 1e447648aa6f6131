import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from core.config import Settings, get_settings
from schemas.user import Actor, LoginRequest, UserRole

ALGORITHM = "HS256"


class AuthService:
    """Service layer for authentication."""

    @staticmethod
    def authenticate(login: LoginRequest, settings: Optional[Settings] = None) -> Actor:
        """Workers sign in by name; managers must also present the access PIN."""
        settings = settings or get_settings()
        name = login.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Please enter your name.")

        if login.role == UserRole.MANAGER and not hmac.compare_digest(
            login.pin.encode("utf-8"), settings.manager_access_pin.encode("utf-8")
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid Access PIN.",
            )
        return Actor(name=name, role=login.role)

    @staticmethod
    def create_access_token(
        actor: Actor,
        expires_delta: Optional[timedelta] = None,
        settings: Optional[Settings] = None,
    ) -> str:
        """Create JWT access token."""
        settings = settings or get_settings()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        to_encode = {"sub": actor.name, "role": actor.role.value, "exp": expire}
        return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)

    @staticmethod
    def get_actor_from_token(token: str, settings: Optional[Settings] = None) -> Actor:
        """Verify JWT token and return the caller it names."""
        settings = settings or get_settings()
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            raise credentials_exception

        name = payload.get("sub")
        role = payload.get("role")
        if not name or role not in {r.value for r in UserRole}:
            raise credentials_exception
        return Actor(name=str(name), role=UserRole(role))
