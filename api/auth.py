from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from core.security import get_current_user
from schemas.user import Actor, LoginRequest, TokenResponse
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request):
    """Sign in by name and role; managers also supply the access PIN."""
    settings = request.app.state.settings
    actor = AuthService.authenticate(payload, settings)
    access_token = AuthService.create_access_token(actor, settings=settings)

    response = JSONResponse(content=TokenResponse(
        access_token=access_token,
        role=actor.role,
        user=actor.name,
    ).model_dump(mode="json"))

    # Set token as cookie
    response.set_cookie(
        key="access_token",
        value=access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=False  # Set to True if running over HTTPS in production
    )

    return response


@router.post("/logout")
def logout():
    response = JSONResponse(content={"message": "Logged out"})
    response.delete_cookie("access_token")
    return response


@router.get("/me", response_model=Actor)
def get_me(current_user: Actor = Depends(get_current_user)):
    """Get current authenticated user profile."""
    return current_user
