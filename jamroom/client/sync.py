"""Клиентская синхронизация состояния комнаты.

Сервер не рассылает изменения, поэтому клиент сходится к общему состоянию
за счет трех механизмов:

* фоновый опрос снимка комнаты и лупов каждые ``poll_interval`` секунд;
* немедленный повторный запрос после каждой собственной мутации;
* heartbeat каждые ``heartbeat_interval`` секунд, пока клиент в комнате.

Изменения громкости и mute применяются оптимистично: локальное значение
видно сразу, а при отказе сервера откатывается к последнему подтвержденному.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from jamroom.client.api import ApiError, JamRoomAPI
from jamroom.core.clock import utcnow
from jamroom.core.config import settings
from jamroom.domains.loops.schemas import BatchDeleteResponse, LoopResponse, LoopWithUserResponse
from jamroom.domains.rooms.schemas import ParticipantWithUserResponse, RoomSnapshotResponse

logger = logging.getLogger(__name__)


class RoomSync:
    """Локальное представление одной комнаты для одного пользователя"""

    def __init__(
        self,
        api: JamRoomAPI,
        room_id: int,
        user_id: int,
        poll_interval: float = settings.poll_interval_seconds,
        heartbeat_interval: float = settings.heartbeat_interval_seconds,
        on_change: Optional[Callable[["RoomSync"], None]] = None
    ) -> None:
        self.api = api
        self.room_id = room_id
        self.user_id = user_id
        self.poll_interval = poll_interval
        self.heartbeat_interval = heartbeat_interval
        self.on_change = on_change

        self.room: Optional[RoomSnapshotResponse] = None
        self.last_synced_at: Optional[datetime] = None
        # Последнее подтвержденное сервером состояние лупов
        self._server_loops: List[LoopWithUserResponse] = []
        # Оптимистичные правки, еще не подтвержденные сервером
        self._pending: Dict[int, Dict[str, Any]] = {}
        self._tasks: List[asyncio.Task] = []

    @property
    def participants(self) -> List[ParticipantWithUserResponse]:
        return list(self.room.participants) if self.room else []

    @property
    def loops(self) -> List[LoopWithUserResponse]:
        """Лупы с наложенными оптимистичными правками"""
        return [
            loop.model_copy(update=self._pending[loop.id]) if loop.id in self._pending else loop
            for loop in self._server_loops
        ]

    def get_loop(self, loop_id: int) -> Optional[LoopWithUserResponse]:
        for loop in self.loops:
            if loop.id == loop_id:
                return loop
        return None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def refresh(self) -> None:
        """Запрос снимка комнаты и лупов; заменяет локальное состояние целиком"""
        room, loops = await asyncio.gather(
            self.api.get_room(self.room_id),
            self.api.list_loops(self.room_id)
        )
        self.room = room
        self._server_loops = loops
        self.last_synced_at = utcnow()
        self._notify()

    async def start(self) -> None:
        """Вход в комнату, первая загрузка и запуск фоновых циклов"""
        if self.running:
            return
        await self.api.join_room(self.room_id, self.user_id)
        await self.refresh()
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name=f"room-{self.room_id}-poll"),
            asyncio.create_task(self._heartbeat_loop(), name=f"room-{self.room_id}-heartbeat"),
        ]
        logger.info(
            "Sync started for room %s (poll=%ss, heartbeat=%ss)",
            self.room_id, self.poll_interval, self.heartbeat_interval
        )

    async def stop(self, leave: bool = True) -> None:
        """Остановка фоновых циклов и, по умолчанию, выход из комнаты"""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if leave:
            try:
                await self.api.leave_room(self.room_id, self.user_id)
            except ApiError as e:
                logger.warning(f"Leave failed for room {self.room_id}: {e}")
        logger.info(f"Sync stopped for room {self.room_id}")

    async def poll_once(self) -> bool:
        """Один шаг фонового опроса; ошибки логируются и не пробрасываются"""
        try:
            await self.refresh()
            return True
        except ApiError as e:
            logger.warning(f"Poll failed for room {self.room_id}: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected poll error for room {self.room_id}")
            return False

    async def send_heartbeat(self) -> bool:
        """Heartbeat без повторов: пропущенный тик не критичен"""
        try:
            await self.api.heartbeat(self.room_id, self.user_id)
            return True
        except ApiError as e:
            logger.warning(f"Heartbeat failed for room {self.room_id}: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected heartbeat error for room {self.room_id}")
            return False

    async def add_loop(self, name: str, audio_data: str, duration: float) -> LoopResponse:
        loop = await self.api.create_loop(self.room_id, self.user_id, name, audio_data, duration)
        await self._refetch_after_mutation()
        return loop

    async def set_volume(self, loop_id: int, volume: float) -> LoopResponse:
        return await self._apply_optimistic(loop_id, volume=volume)

    async def set_muted(self, loop_id: int, muted: bool) -> LoopResponse:
        return await self._apply_optimistic(loop_id, is_active=not muted)

    async def toggle_mute(self, loop_id: int) -> LoopResponse:
        loop = self.get_loop(loop_id)
        if loop is None:
            raise ApiError("Loop not found", status_code=404)
        return await self.set_muted(loop_id, loop.is_active)

    async def delete_loop(self, loop_id: int) -> None:
        try:
            await self.api.delete_loop(loop_id)
        finally:
            await self._refetch_after_mutation()

    async def delete_all_loops(self) -> BatchDeleteResponse:
        """Пакетное удаление; после частичного отказа состояние все равно обновляется"""
        try:
            result = await self.api.delete_all_loops(self.room_id)
        finally:
            await self._refetch_after_mutation()
        if not result.success:
            logger.warning(
                "Partial delete in room %s: %s deleted, %s failed",
                self.room_id, result.deleted_count, result.failed_count
            )
        return result

    async def _apply_optimistic(self, loop_id: int, **changes: Any) -> LoopResponse:
        self._pending[loop_id] = {**self._pending.get(loop_id, {}), **changes}
        self._notify()
        try:
            updated = await self.api.update_loop(loop_id, **changes)
        except ApiError:
            # Откат к последнему подтвержденному значению
            self._pending.pop(loop_id, None)
            self._notify()
            raise

        self._confirm(updated)
        self._pending.pop(loop_id, None)
        await self._refetch_after_mutation()
        return updated

    def _confirm(self, updated: LoopResponse) -> None:
        """Подтвержденный сервером луп заменяет локальную копию (автор сохраняется)"""
        confirmed = updated.model_dump()
        self._server_loops = [
            loop.model_copy(update=confirmed) if loop.id == updated.id else loop
            for loop in self._server_loops
        ]

    async def _refetch_after_mutation(self) -> None:
        try:
            await self.refresh()
        except ApiError as e:
            logger.warning(f"Refetch after mutation failed for room {self.room_id}: {e}")

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            await self.poll_once()

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await self.send_heartbeat()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
