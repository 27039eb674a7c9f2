from datetime import datetime
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_
from sqlalchemy.exc import IntegrityError

from jamroom.db.models.participant import RoomParticipant as ParticipantModel
from jamroom.db.models.user import User as UserModel
from jamroom.db.repositories.user_repository import UserRepository
from jamroom.domains.rooms.entities import Participant


class ParticipantRepository:
    """Репозиторий для участников комнат"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(
        self,
        room_id: int,
        user_id: int,
        now: datetime,
        commit: bool = True
    ) -> Participant:
        """Вход или повторный вход пользователя в комнату.

        Сначала пытаемся обновить существующую строку; если ее нет, вставляем
        новую. Конкурентная вставка той же пары упирается в уникальное
        ограничение и повторяется как обновление.
        """
        if await self._refresh_activity(room_id, user_id, now):
            if commit:
                await self.session.commit()
            return await self.get(room_id, user_id)

        db_participant = ParticipantModel(
            room_id=room_id,
            user_id=user_id,
            joined_at=now,
            last_active_at=now
        )
        self.session.add(db_participant)
        try:
            await self.session.flush()
        except IntegrityError:
            # Уже присоединился в параллельном запросе
            await self.session.rollback()
            await self._refresh_activity(room_id, user_id, now)
            commit = True

        if commit:
            await self.session.commit()
        return await self.get(room_id, user_id)

    async def get(self, room_id: int, user_id: int) -> Optional[Participant]:
        result = await self.session.execute(
            select(ParticipantModel).where(
                and_(
                    ParticipantModel.room_id == room_id,
                    ParticipantModel.user_id == user_id
                )
            )
        )
        db_participant = result.scalar_one_or_none()
        return self._to_domain(db_participant) if db_participant else None

    async def remove(self, room_id: int, user_id: int) -> bool:
        """Выход из комнаты"""
        stmt = delete(ParticipantModel).where(
            and_(
                ParticipantModel.room_id == room_id,
                ParticipantModel.user_id == user_id
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def touch(self, room_id: int, user_id: int, now: datetime) -> bool:
        """Обновление last_active_at; для не-участника ничего не делает"""
        touched = await self._refresh_activity(room_id, user_id, now)
        await self.session.commit()
        return touched

    async def list_for_room(self, room_id: int) -> List[Participant]:
        """Участники комнаты вместе с пользователями, в порядке входа"""
        result = await self.session.execute(
            select(ParticipantModel, UserModel)
            .join(UserModel, UserModel.id == ParticipantModel.user_id)
            .where(ParticipantModel.room_id == room_id)
            .order_by(ParticipantModel.joined_at.asc(), ParticipantModel.id.asc())
        )
        return [
            self._to_domain(db_participant, UserRepository._to_domain(db_user))
            for db_participant, db_user in result.all()
        ]

    async def _refresh_activity(self, room_id: int, user_id: int, now: datetime) -> bool:
        stmt = (
            update(ParticipantModel)
            .where(
                and_(
                    ParticipantModel.room_id == room_id,
                    ParticipantModel.user_id == user_id
                )
            )
            .values(last_active_at=now)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    def _to_domain(db_participant: ParticipantModel, user=None) -> Participant:
        """Преобразование модели БД в доменную сущность"""
        return Participant(
            id=db_participant.id,
            room_id=db_participant.room_id,
            user_id=db_participant.user_id,
            joined_at=db_participant.joined_at,
            last_active_at=db_participant.last_active_at,
            user=user
        )
