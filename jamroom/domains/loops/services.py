import asyncio
import logging
import time
from typing import List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.db import get_session_factory
from jamroom.core.errors import NotFoundError, ValidationError
from jamroom.db.repositories.loop_repository import LoopRepository
from jamroom.db.repositories.room_repository import RoomRepository
from jamroom.db.repositories.user_repository import UserRepository
from jamroom.domains.loops.entities import Loop, is_base64
from jamroom.domains.loops.schemas import LoopCreate, LoopUpdate

logger = logging.getLogger(__name__)


class LoopService:
    """Сервис жизненного цикла лупов комнаты"""

    def __init__(self, session: AsyncSession, session_factory=None):
        self.session = session
        self.session_factory = session_factory or get_session_factory()
        self.loop_repository = LoopRepository(session)
        self.room_repository = RoomRepository(session)
        self.user_repository = UserRepository(session)

    async def list_loops(self, room_id: int) -> List[Loop]:
        """Лупы комнаты с авторами; автор мог уже покинуть комнату"""
        return await self.loop_repository.list_for_room(room_id)

    async def create_loop(self, room_id: int, loop_data: LoopCreate) -> Loop:
        """Сохранение записанного лупа; аудио хранится без изменений"""
        name = (loop_data.name or "").strip()
        if not name:
            raise ValidationError("Loop name is required")
        if not loop_data.duration > 0:
            raise ValidationError("Loop duration must be positive")
        if not loop_data.audio_data or not is_base64(loop_data.audio_data):
            raise ValidationError("Audio data must be base64 encoded")

        if not await self.room_repository.exists(room_id):
            raise NotFoundError("Room not found")
        if not await self.user_repository.get_by_id(loop_data.user_id):
            raise NotFoundError("User not found")

        loop = Loop.create_loop(
            room_id=room_id,
            user_id=loop_data.user_id,
            name=name,
            audio_data=loop_data.audio_data,
            duration=loop_data.duration
        )

        created = await self.loop_repository.create(loop)
        logger.info(f"Loop {created.id} ({created.name}) recorded in room {room_id} by user {created.user_id}")
        return created

    async def update_loop(self, loop_id: int, update_data: LoopUpdate) -> Loop:
        """Изменение громкости/mute любым участником; без проверки владельца"""
        values = update_data.model_dump(exclude_none=True)

        volume = values.get("volume")
        if volume is not None and not 0.0 <= volume <= 1.0:
            raise ValidationError("Volume must be between 0 and 1")

        loop = await self.loop_repository.update(loop_id, values)
        if not loop:
            raise NotFoundError("Loop not found")

        return loop

    async def delete_loop(self, loop_id: int) -> None:
        """Безвозвратное удаление лупа"""
        if not await self.loop_repository.delete(loop_id):
            raise NotFoundError("Loop not found")

        logger.info(f"Loop {loop_id} deleted")

    async def delete_all_loops(self, room_id: int) -> Dict[str, Any]:
        """Удаление всех лупов комнаты.

        Каждый луп удаляется в собственной сессии, удаления запускаются
        одновременно и ожидаются как неупорядоченный пакет. Общей транзакции
        нет: успешно удаленные лупы остаются удаленными, даже если часть
        пакета завершилась ошибкой.
        """
        loops = await self.loop_repository.list_for_room(room_id)

        results = await asyncio.gather(
            *(self._delete_independently(loop.id) for loop in loops),
            return_exceptions=True
        )

        deleted = 0
        failed = 0
        for loop, result in zip(loops, results):
            if isinstance(result, Exception):
                failed += 1
                logger.error(f"Failed to delete loop {loop.id} in room {room_id}: {result}")
            elif result:
                deleted += 1

        logger.info(f"Batch delete in room {room_id}: {deleted} deleted, {failed} failed")

        return {
            "success": failed == 0,
            "deleted_count": deleted,
            "failed_count": failed
        }

    async def export_mixdown(self, room_id: int) -> Dict[str, Any]:
        """Заглушка экспорта: метаданные по активным лупам, без сведения аудио"""
        if not await self.room_repository.exists(room_id):
            raise NotFoundError("Room not found")

        loops = await self.loop_repository.list_for_room(room_id)
        active_loops = [loop for loop in loops if loop.is_active]

        export_id = f"export_{int(time.time() * 1000)}"

        return {
            "success": True,
            "export_id": export_id,
            "loops_count": len(active_loops),
            "total_duration": max((loop.duration for loop in active_loops), default=0.0),
            "download_url": f"/api/exports/{export_id}.wav"
        }

    async def _delete_independently(self, loop_id: int) -> bool:
        async with self.session_factory() as session:
            return await LoopRepository(session).delete(loop_id)
