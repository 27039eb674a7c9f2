from pydantic import Field, field_validator

from jamroom.core.schemas import ApiModel


class UserCreate(ApiModel):
    """Схема для регистрации пользователя"""
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not v.replace('_', '').replace('-', '').isalnum():
            raise ValueError('Username must contain only alphanumeric characters, underscores, and hyphens')
        return v


class UserLogin(ApiModel):
    """Схема для входа пользователя"""
    username: str
    password: str


class UserResponse(ApiModel):
    """Публичные данные пользователя"""
    id: int
    username: str


class LoginResponse(UserResponse):
    """Ответ на вход: пользователь и JWT токен"""
    access_token: str
    token_type: str = "bearer"
