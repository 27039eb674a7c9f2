from jamroom.db.repositories.user_repository import UserRepository
from jamroom.db.repositories.room_repository import RoomRepository
from jamroom.db.repositories.loop_repository import LoopRepository
from jamroom.db.repositories.participant_repository import ParticipantRepository

__all__ = [
    "UserRepository",
    "RoomRepository",
    "LoopRepository",
    "ParticipantRepository"
]
