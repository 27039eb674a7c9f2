import base64
import binascii
from datetime import datetime
from typing import Optional

from jamroom.core.clock import utcnow
from jamroom.domains.identity.entities import User


class Loop:
    """Записанный аудио-луп, принадлежащий комнате"""

    def __init__(
        self,
        id: Optional[int],
        room_id: int,
        user_id: int,
        name: str,
        audio_data: str,
        duration: float,
        volume: float = 1.0,
        is_active: bool = True,
        created_at: Optional[datetime] = None,
        user: Optional[User] = None
    ):
        self.id = id
        self.room_id = room_id
        self.user_id = user_id
        self.name = name
        self.audio_data = audio_data
        self.duration = duration
        self.volume = volume
        self.is_active = is_active
        self.created_at = created_at or utcnow()
        self.user = user

    @classmethod
    def create_loop(
        cls,
        room_id: int,
        user_id: int,
        name: str,
        audio_data: str,
        duration: float
    ) -> "Loop":
        """Новый луп всегда активен и с громкостью 1.0"""
        return cls(
            id=None,
            room_id=room_id,
            user_id=user_id,
            name=name,
            audio_data=audio_data,
            duration=duration,
            volume=1.0,
            is_active=True
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Loop):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Loop(id={self.id}, room={self.room_id}, name={self.name}, active={self.is_active})"


def is_base64(payload: str) -> bool:
    """Проверка, что полезная нагрузка является корректным base64 (кодек не проверяется)"""
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True
