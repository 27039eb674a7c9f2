import logging
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.clock import utcnow
from jamroom.core.config import settings
from jamroom.core.errors import NotFoundError, ValidationError
from jamroom.db.repositories.loop_repository import LoopRepository
from jamroom.db.repositories.participant_repository import ParticipantRepository
from jamroom.db.repositories.room_repository import RoomRepository
from jamroom.db.repositories.user_repository import UserRepository
from jamroom.domains.rooms.entities import KEY_SIGNATURES, Room, Participant, RoomSnapshot
from jamroom.domains.rooms.schemas import RoomCreate

logger = logging.getLogger(__name__)


def validate_room_fields(name: str, bpm: int, key_signature: str) -> str:
    """Проверка полей комнаты на границе сервиса; возвращает очищенное имя"""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Room name is required")
    if not settings.min_bpm <= bpm <= settings.max_bpm:
        raise ValidationError(f"BPM must be between {settings.min_bpm} and {settings.max_bpm}")
    if key_signature not in KEY_SIGNATURES:
        raise ValidationError(f"Unknown key signature: {key_signature}")
    return name


class RoomService:
    """Сервис синхронизации состояния комнаты: членство, присутствие, снимки"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.room_repository = RoomRepository(session)
        self.participant_repository = ParticipantRepository(session)
        self.user_repository = UserRepository(session)
        self.loop_repository = LoopRepository(session)

    async def create_room(self, room_data: RoomCreate) -> Room:
        """Создание комнаты и вход создателя одной транзакцией"""
        name = validate_room_fields(room_data.name, room_data.bpm, room_data.key_signature)
        await self._require_user(room_data.creator_id)

        room = Room.create_room(
            name=name,
            creator_id=room_data.creator_id,
            bpm=room_data.bpm,
            key_signature=room_data.key_signature,
            is_public=room_data.is_public
        )

        try:
            created_room = await self.room_repository.create(room, commit=False)
            await self.participant_repository.upsert(
                created_room.id, room_data.creator_id, created_room.created_at, commit=False
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Room {created_room.id} created by user {created_room.creator_id}")
        return created_room

    async def get_room(self, room_id: int) -> Room:
        room = await self.room_repository.get_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found")
        return room

    async def list_public_rooms(self) -> List[Room]:
        return await self.room_repository.list_public()

    async def list_rooms_by_creator(self, user_id: int) -> List[Room]:
        return await self.room_repository.list_by_creator(user_id)

    async def join_room(self, room_id: int, user_id: int) -> Participant:
        """Идемпотентный вход: повторный вызов только обновляет last_active_at"""
        if not await self.room_repository.exists(room_id):
            raise NotFoundError("Room not found")
        await self._require_user(user_id)

        participant = await self.participant_repository.upsert(room_id, user_id, utcnow())
        logger.info(f"User {user_id} joined room {room_id}")
        return participant

    async def leave_room(self, room_id: int, user_id: int) -> bool:
        """Выход из комнаты; False если пользователь не был участником"""
        removed = await self.participant_repository.remove(room_id, user_id)
        if removed:
            logger.info(f"User {user_id} left room {room_id}")
        return removed

    async def heartbeat(self, room_id: int, user_id: int) -> bool:
        """Отметка активности; для не-участника ничего не делает и не падает"""
        touched = await self.participant_repository.touch(room_id, user_id, utcnow())
        if not touched:
            logger.debug(f"Heartbeat from non-participant {user_id} in room {room_id} ignored")
        return touched

    async def get_room_snapshot(self, room_id: int, now: Optional[datetime] = None) -> RoomSnapshot:
        """Комната и ее участники с вычисленным присутствием"""
        room = await self.get_room(room_id)
        participants = await self.participant_repository.list_for_room(room_id)

        now = now or utcnow()
        for participant in participants:
            participant.classify(now)

        return RoomSnapshot(room=room, participants=participants)

    async def get_room_stats(self, room_id: int) -> Dict[str, Any]:
        """Статистика комнаты для боковой панели"""
        await self.get_room(room_id)
        loops = await self.loop_repository.list_for_room(room_id)
        participants = await self.participant_repository.list_for_room(room_id)

        return {
            "room_id": room_id,
            "loops_count": len(loops),
            "active_count": len([loop for loop in loops if loop.is_active]),
            "total_duration": max((loop.duration for loop in loops), default=0.0),
            "participants_count": len(participants)
        }

    async def _require_user(self, user_id: int) -> None:
        if not await self.user_repository.get_by_id(user_id):
            raise NotFoundError("User not found")
