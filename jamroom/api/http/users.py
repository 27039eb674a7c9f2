from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.db import get_db
from jamroom.domains.identity.schemas import UserCreate, UserLogin, UserResponse, LoginResponse
from jamroom.domains.identity.services import IdentityService
from jamroom.domains.rooms.schemas import RoomResponse
from jamroom.domains.rooms.services import RoomService

router = APIRouter(prefix="/api/users", tags=["users"])
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """Зависимость для получения текущего пользователя по Bearer токену"""
    user = None
    if credentials:
        identity_service = IdentityService(db)
        user = await identity_service.get_current_user_from_token(credentials.credentials)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


@router.post("/register", response_model=UserResponse)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Регистрация нового пользователя"""
    identity_service = IdentityService(db)
    user = await identity_service.register_user(user_data)
    return UserResponse(id=user.id, username=user.username)


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Вход пользователя"""
    identity_service = IdentityService(db)
    user, token = await identity_service.login_user(login_data)
    return LoginResponse(id=user.id, username=user.username, access_token=token)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user=Depends(get_current_user)):
    """Текущий пользователь по токену"""
    return UserResponse(id=current_user.id, username=current_user.username)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Получение информации о пользователе"""
    identity_service = IdentityService(db)
    user = await identity_service.get_user(user_id)
    return UserResponse(id=user.id, username=user.username)


@router.get("/{user_id}/rooms", response_model=List[RoomResponse])
async def get_user_rooms(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Комнаты, созданные пользователем"""
    room_service = RoomService(db)
    rooms = await room_service.list_rooms_by_creator(user_id)
    return [RoomResponse.model_validate(room) for room in rooms]
