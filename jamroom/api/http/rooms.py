from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.db import get_db, get_session_factory
from jamroom.domains.loops.schemas import (
    LoopCreate, LoopResponse, LoopWithUserResponse, BatchDeleteResponse, ExportResponse
)
from jamroom.domains.loops.services import LoopService
from jamroom.domains.rooms.schemas import (
    RoomCreate, RoomResponse, RoomSnapshotResponse, MembershipRequest,
    ParticipantResponse, ParticipantWithUserResponse, LeaveResponse,
    ActivityResponse, RoomStatsResponse
)
from jamroom.domains.rooms.services import RoomService

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomResponse])
async def list_public_rooms(db: AsyncSession = Depends(get_db)):
    """Список публичных комнат"""
    room_service = RoomService(db)
    rooms = await room_service.list_public_rooms()
    return [RoomResponse.model_validate(room) for room in rooms]


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    db: AsyncSession = Depends(get_db)
):
    """Создание комнаты; создатель сразу становится участником"""
    room_service = RoomService(db)
    room = await room_service.create_room(room_data)
    return RoomResponse.model_validate(room)


@router.get("/{room_id}", response_model=RoomSnapshotResponse)
async def get_room_snapshot(
    room_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Снимок комнаты: метаданные и участники с присутствием"""
    room_service = RoomService(db)
    snapshot = await room_service.get_room_snapshot(room_id)

    return RoomSnapshotResponse(
        **RoomResponse.model_validate(snapshot.room).model_dump(),
        participants=[
            ParticipantWithUserResponse.model_validate(participant)
            for participant in snapshot.participants
        ]
    )


@router.get("/{room_id}/stats", response_model=RoomStatsResponse)
async def get_room_stats(
    room_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Статистика лупов и участников комнаты"""
    room_service = RoomService(db)
    stats = await room_service.get_room_stats(room_id)
    return RoomStatsResponse(**stats)


@router.post("/{room_id}/join", response_model=ParticipantResponse)
async def join_room(
    room_id: int,
    membership: MembershipRequest,
    db: AsyncSession = Depends(get_db)
):
    """Вход в комнату (идемпотентный)"""
    room_service = RoomService(db)
    participant = await room_service.join_room(room_id, membership.user_id)
    return ParticipantResponse.model_validate(participant)


@router.post("/{room_id}/leave", response_model=LeaveResponse)
async def leave_room(
    room_id: int,
    membership: MembershipRequest,
    db: AsyncSession = Depends(get_db)
):
    """Выход из комнаты"""
    room_service = RoomService(db)
    success = await room_service.leave_room(room_id, membership.user_id)
    return LeaveResponse(success=success)


@router.post("/{room_id}/activity", response_model=ActivityResponse)
async def update_activity(
    room_id: int,
    membership: MembershipRequest,
    db: AsyncSession = Depends(get_db)
):
    """Heartbeat участника"""
    room_service = RoomService(db)
    await room_service.heartbeat(room_id, membership.user_id)
    return ActivityResponse(success=True)


@router.get("/{room_id}/loops", response_model=List[LoopWithUserResponse])
async def list_loops(
    room_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Лупы комнаты вместе с авторами"""
    loop_service = LoopService(db)
    loops = await loop_service.list_loops(room_id)
    return [LoopWithUserResponse.model_validate(loop) for loop in loops]


@router.post("/{room_id}/loops", response_model=LoopResponse, status_code=status.HTTP_201_CREATED)
async def create_loop(
    room_id: int,
    loop_data: LoopCreate,
    db: AsyncSession = Depends(get_db)
):
    """Сохранение записанного лупа"""
    loop_service = LoopService(db)
    loop = await loop_service.create_loop(room_id, loop_data)
    return LoopResponse.model_validate(loop)


@router.delete("/{room_id}/loops", response_model=BatchDeleteResponse)
async def delete_all_loops(
    room_id: int,
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory)
):
    """Удаление всех лупов комнаты (без общей транзакции)"""
    loop_service = LoopService(db, session_factory)
    result = await loop_service.delete_all_loops(room_id)
    return BatchDeleteResponse(**result)


@router.post("/{room_id}/export", response_model=ExportResponse)
async def export_mixdown(
    room_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Экспорт микса (заглушка: только метаданные)"""
    loop_service = LoopService(db)
    export = await loop_service.export_mixdown(room_id)
    return ExportResponse(**export)
