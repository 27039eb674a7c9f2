from jamroom.domains.identity.entities import User
from jamroom.domains.identity.schemas import (
    UserCreate, UserLogin, UserResponse, LoginResponse
)

__all__ = [
    "User",
    "UserCreate", "UserLogin", "UserResponse", "LoginResponse"
]
