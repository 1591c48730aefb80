"""Dependency injection: auth, role enforcement and service wiring."""

from pathlib import Path
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.base import get_db
from app.models.user import UserRole
from app.repositories.category import CategoryRepository
from app.repositories.commission_rule import CommissionRuleRepository
from app.repositories.user import UserRepository
from app.schemas.auth import CurrentUser
from app.services.auth_service import AuthService
from app.services.category_service import CategoryService
from app.services.uploads import ImageUploader, LocalImageUploader

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Decode JWT and return CurrentUser. Raises 401 on invalid/expired token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        return CurrentUser(id=UUID(user_id), role=payload["role"])
    except (JWTError, KeyError, ValueError):
        raise credentials_exception


def require_role(*allowed_roles: str):
    """Dependency factory: checks the user has one of the allowed roles."""

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: Insufficient privileges.",
            )
        return user

    return checker


require_admin = require_role(UserRole.ADMIN.value)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(CategoryRepository(db), CommissionRuleRepository(db))


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))


def get_image_uploader() -> ImageUploader:
    return LocalImageUploader(
        directory=Path(settings.UPLOAD_DIR) / "categories",
        base_url=f"{settings.UPLOAD_URL_PREFIX}/categories",
        max_bytes=settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024,
    )
