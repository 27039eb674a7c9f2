import logging
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.errors import AuthError, ConflictError, NotFoundError
from jamroom.core.security import create_access_token, verify_token
from jamroom.db.repositories.user_repository import UserRepository
from jamroom.domains.identity.entities import User
from jamroom.domains.identity.schemas import UserCreate, UserLogin

logger = logging.getLogger(__name__)


class IdentityService:
    """Сервис для регистрации и входа пользователей"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)

    async def register_user(self, user_data: UserCreate) -> User:
        """Регистрация нового пользователя"""
        if await self.user_repository.username_exists(user_data.username):
            raise ConflictError("Username already exists")

        user = User.create_user(
            username=user_data.username,
            password=user_data.password
        )

        # Гонку между проверкой и вставкой закрывает уникальный индекс
        created = await self.user_repository.create(user)
        logger.info(f"Registered user {created.id} ({created.username})")
        return created

    async def authenticate_user(self, login_data: UserLogin) -> User:
        """Проверка учетных данных"""
        user = await self.user_repository.get_by_username(login_data.username)

        if not user or not user.authenticate(login_data.password):
            raise AuthError("Invalid credentials")

        return user

    async def login_user(self, login_data: UserLogin) -> Tuple[User, str]:
        """Вход пользователя и создание JWT токена"""
        user = await self.authenticate_user(login_data)

        token_data = {
            "sub": str(user.id),
            "username": user.username
        }

        return user, create_access_token(data=token_data)

    async def get_user(self, user_id: int) -> User:
        """Получение пользователя по id"""
        user = await self.user_repository.get_by_id(user_id)

        if not user:
            raise NotFoundError("User not found")

        return user

    async def get_current_user_from_token(self, token: str) -> Optional[User]:
        """Получение текущего пользователя из JWT токена"""
        payload = verify_token(token)

        if not payload or not str(payload.get("sub", "")).isdigit():
            return None

        return await self.user_repository.get_by_id(int(payload["sub"]))
