from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    MANAGER = "MANAGER"
    WORKER = "WORKER"


class Actor(BaseModel):
    """The authenticated caller of a workflow operation."""
    name: str = Field(..., min_length=1, max_length=120)
    role: UserRole

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER


class LoginRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    role: UserRole = UserRole.WORKER
    pin: str = ""


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
    user: str
