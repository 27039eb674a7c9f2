from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete

from jamroom.db.models.loop import Loop as LoopModel
from jamroom.db.models.user import User as UserModel
from jamroom.db.repositories.user_repository import UserRepository
from jamroom.domains.loops.entities import Loop

# Поля лупа, которые можно менять после создания
MUTABLE_FIELDS = ("volume", "is_active")


class LoopRepository:
    """Репозиторий для работы с лупами"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, loop: Loop) -> Loop:
        """Создание нового лупа"""
        db_loop = LoopModel(
            room_id=loop.room_id,
            user_id=loop.user_id,
            name=loop.name,
            audio_data=loop.audio_data,
            duration=loop.duration,
            volume=loop.volume,
            is_active=loop.is_active,
            created_at=loop.created_at
        )

        self.session.add(db_loop)
        await self.session.commit()
        await self.session.refresh(db_loop)
        return self._to_domain(db_loop)

    async def get_by_id(self, loop_id: int) -> Optional[Loop]:
        """Получение лупа по id"""
        result = await self.session.execute(
            select(LoopModel).where(LoopModel.id == loop_id)
        )
        db_loop = result.scalar_one_or_none()
        return self._to_domain(db_loop) if db_loop else None

    async def list_for_room(self, room_id: int) -> List[Loop]:
        """Лупы комнаты вместе с их авторами, в порядке записи"""
        result = await self.session.execute(
            select(LoopModel, UserModel)
            .join(UserModel, UserModel.id == LoopModel.user_id)
            .where(LoopModel.room_id == room_id)
            .order_by(LoopModel.created_at.asc(), LoopModel.id.asc())
        )
        return [
            self._to_domain(db_loop, UserRepository._to_domain(db_user))
            for db_loop, db_user in result.all()
        ]

    async def update(self, loop_id: int, values: Dict[str, Any]) -> Optional[Loop]:
        """Частичное обновление; побеждает последняя запись"""
        values = {key: value for key, value in values.items() if key in MUTABLE_FIELDS}

        if values:
            stmt = (
                update(LoopModel)
                .where(LoopModel.id == loop_id)
                .values(**values)
            )
            result = await self.session.execute(stmt)
            await self.session.commit()

            if result.rowcount == 0:
                return None

        return await self.get_by_id(loop_id)

    async def delete(self, loop_id: int) -> bool:
        """Удаление лупа без возможности восстановления"""
        stmt = delete(LoopModel).where(LoopModel.id == loop_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _to_domain(db_loop: LoopModel, user=None) -> Loop:
        """Преобразование модели БД в доменную сущность"""
        return Loop(
            id=db_loop.id,
            room_id=db_loop.room_id,
            user_id=db_loop.user_id,
            name=db_loop.name,
            audio_data=db_loop.audio_data,
            duration=db_loop.duration,
            volume=db_loop.volume,
            is_active=db_loop.is_active,
            created_at=db_loop.created_at,
            user=user
        )
