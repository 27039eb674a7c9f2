from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from jamroom.db.models.room import Room as RoomModel
from jamroom.domains.rooms.entities import Room


class RoomRepository:
    """Репозиторий для работы с комнатами"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, room: Room, commit: bool = True) -> Room:
        """Создание комнаты; при commit=False строка только отправляется в транзакцию"""
        db_room = RoomModel(
            name=room.name,
            creator_id=room.creator_id,
            bpm=room.bpm,
            key_signature=room.key_signature,
            is_public=room.is_public,
            created_at=room.created_at
        )

        self.session.add(db_room)
        if commit:
            await self.session.commit()
            await self.session.refresh(db_room)
        else:
            await self.session.flush()
        return self._to_domain(db_room)

    async def get_by_id(self, room_id: int) -> Optional[Room]:
        """Получение комнаты по id"""
        result = await self.session.execute(
            select(RoomModel).where(RoomModel.id == room_id)
        )
        db_room = result.scalar_one_or_none()
        return self._to_domain(db_room) if db_room else None

    async def exists(self, room_id: int) -> bool:
        result = await self.session.execute(
            select(RoomModel.id).where(RoomModel.id == room_id)
        )
        return result.scalar_one_or_none() is not None

    async def list_public(self) -> List[Room]:
        """Публичные комнаты, новые сначала"""
        result = await self.session.execute(
            select(RoomModel)
            .where(RoomModel.is_public == True)  # noqa: E712
            .order_by(RoomModel.created_at.desc(), RoomModel.id.desc())
        )
        return [self._to_domain(room) for room in result.scalars().all()]

    async def list_by_creator(self, user_id: int) -> List[Room]:
        """Комнаты, созданные пользователем"""
        result = await self.session.execute(
            select(RoomModel)
            .where(RoomModel.creator_id == user_id)
            .order_by(RoomModel.created_at.desc(), RoomModel.id.desc())
        )
        return [self._to_domain(room) for room in result.scalars().all()]

    @staticmethod
    def _to_domain(db_room: RoomModel) -> Room:
        """Преобразование модели БД в доменную сущность"""
        return Room(
            id=db_room.id,
            name=db_room.name,
            creator_id=db_room.creator_id,
            bpm=db_room.bpm,
            key_signature=db_room.key_signature,
            is_public=db_room.is_public,
            created_at=db_room.created_at
        )
