from datetime import datetime
from typing import Optional

from jamroom.core.clock import utcnow
from jamroom.core.security import get_password_hash, verify_password


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        id: Optional[int],
        username: str,
        password_hash: str,
        created_at: Optional[datetime] = None
    ):
        self.id = id
        self.username = username
        self.password_hash = password_hash
        self.created_at = created_at or utcnow()

    def authenticate(self, password: str) -> bool:
        """Проверка пароля пользователя"""
        return verify_password(password, self.password_hash)

    @classmethod
    def create_user(cls, username: str, password: str) -> "User":
        """Создание нового пользователя с хешированием пароля"""
        return cls(
            id=None,
            username=username,
            password_hash=get_password_hash(password)
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username})"
