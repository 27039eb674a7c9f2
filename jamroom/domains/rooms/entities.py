from datetime import datetime
from typing import Optional, List

from jamroom.core.clock import utcnow
from jamroom.domains.identity.entities import User
from jamroom.domains.presence import Presence, classify_presence

KEY_SIGNATURES = (
    "C Major", "G Major", "D Major", "A Major", "E Major", "B Major", "F# Major",
    "C# Major", "F Major", "Bb Major", "Eb Major", "Ab Major", "Db Major", "Gb Major",
    "A Minor", "E Minor", "B Minor", "F# Minor", "C# Minor", "G# Minor", "D# Minor",
    "A# Minor", "D Minor", "G Minor", "C Minor", "F Minor", "Bb Minor", "Eb Minor",
)

DEFAULT_BPM = 120
DEFAULT_KEY_SIGNATURE = "C Major"


class Room:
    """Комната для совместного джема"""

    def __init__(
        self,
        id: Optional[int],
        name: str,
        creator_id: int,
        bpm: int = DEFAULT_BPM,
        key_signature: str = DEFAULT_KEY_SIGNATURE,
        is_public: bool = True,
        created_at: Optional[datetime] = None
    ):
        self.id = id
        self.name = name
        self.creator_id = creator_id
        self.bpm = bpm
        self.key_signature = key_signature
        self.is_public = is_public
        self.created_at = created_at or utcnow()

    @property
    def short_key(self) -> str:
        """Короткая запись тональности: "A Minor" -> "Am" """
        return self.key_signature.replace(" Major", "M").replace(" Minor", "m")

    @classmethod
    def create_room(
        cls,
        name: str,
        creator_id: int,
        bpm: int = DEFAULT_BPM,
        key_signature: str = DEFAULT_KEY_SIGNATURE,
        is_public: bool = True
    ) -> "Room":
        return cls(
            id=None,
            name=name,
            creator_id=creator_id,
            bpm=bpm,
            key_signature=key_signature,
            is_public=is_public
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Room):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Room(id={self.id}, name={self.name}, bpm={self.bpm}, key={self.key_signature})"


class Participant:
    """Членство пользователя в комнате вместе с отметкой активности"""

    def __init__(
        self,
        id: Optional[int],
        room_id: int,
        user_id: int,
        joined_at: datetime,
        last_active_at: datetime,
        user: Optional[User] = None
    ):
        self.id = id
        self.room_id = room_id
        self.user_id = user_id
        self.joined_at = joined_at
        self.last_active_at = last_active_at
        self.user = user
        self.presence: Optional[Presence] = None

    def classify(self, now: datetime) -> Presence:
        """Вычисление статуса присутствия на момент now"""
        self.presence = classify_presence(now, self.last_active_at)
        return self.presence

    def __repr__(self) -> str:
        return f"Participant(room={self.room_id}, user={self.user_id}, last_active={self.last_active_at})"


class RoomSnapshot:
    """Согласованное чтение комнаты и ее участников (лупы запрашиваются отдельно)"""

    def __init__(self, room: Room, participants: List[Participant]):
        self.room = room
        self.participants = participants

    def __repr__(self) -> str:
        return f"RoomSnapshot(room={self.room.id}, participants={len(self.participants)})"
