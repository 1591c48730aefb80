"""Authentication endpoints: register, login and current profile."""

from fastapi import APIRouter, Depends, status

from app.core.deps import get_auth_service, get_current_user
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    UserPublic,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create a Customer or ServiceProvider account and return a JWT."""
    return await service.register(body.name, body.email, body.password, body.role)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Authenticate via email + password, return JWT."""
    return await service.login(body.email, body.password)


@router.get("/me", response_model=UserPublic)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Return the profile of the current authenticated user."""
    return await service.get_profile(current_user.id)
