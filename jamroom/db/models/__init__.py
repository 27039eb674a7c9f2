from jamroom.db.models.user import User
from jamroom.db.models.room import Room
from jamroom.db.models.loop import Loop
from jamroom.db.models.participant import RoomParticipant

__all__ = [
    "User",
    "Room",
    "Loop",
    "RoomParticipant"
]
