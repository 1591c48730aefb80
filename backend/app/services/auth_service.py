"""Registration, login and token issuance."""

import logging
import uuid

from app.core.errors import DuplicateEmail, InvalidCredentials, UserNotFound
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User, UserRole
from app.repositories.user import UserRepository
from app.schemas.auth import AuthResponse, UserPublic

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole | str = UserRole.CUSTOMER,
    ) -> AuthResponse:
        email = email.lower()
        if await self.users.find_by_email(email):
            raise DuplicateEmail()

        user = await self.users.create(
            {
                "name": name,
                "email": email,
                "hashed_password": hash_password(password),
                "role": UserRole(role),
            }
        )
        logger.info("User registered: id=%s role=%s", user.id, user.role.value)
        return self._issue(user)

    async def login(self, email: str, password: str) -> AuthResponse:
        user = await self.users.find_by_email(email.lower())
        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Failed login attempt for %s", email)
            raise InvalidCredentials()
        return self._issue(user)

    async def get_profile(self, user_id: uuid.UUID) -> UserPublic:
        user = await self.users.find_by_id(user_id)
        if not user:
            raise UserNotFound()
        return UserPublic.model_validate(user)

    async def ensure_admin(self, name: str, email: str, password: str) -> User:
        """Create an Admin account, or promote and reset an existing one."""
        email = email.lower()
        user = await self.users.find_by_email(email)
        data = {"name": name, "hashed_password": hash_password(password), "role": UserRole.ADMIN}
        if user:
            return await self.users.update(user, data)
        return await self.users.create({**data, "email": email})

    @staticmethod
    def _issue(user: User) -> AuthResponse:
        token = create_access_token(user_id=user.id, role=user.role.value)
        return AuthResponse(user=UserPublic.model_validate(user), token=token)
