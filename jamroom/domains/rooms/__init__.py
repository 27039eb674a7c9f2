from jamroom.domains.rooms.entities import (
    KEY_SIGNATURES, Room, Participant, RoomSnapshot
)
from jamroom.domains.rooms.schemas import (
    RoomCreate, RoomResponse, MembershipRequest, PresenceResponse,
    ParticipantResponse, ParticipantWithUserResponse, RoomSnapshotResponse,
    LeaveResponse, ActivityResponse, RoomStatsResponse
)

__all__ = [
    "KEY_SIGNATURES", "Room", "Participant", "RoomSnapshot",
    "RoomCreate", "RoomResponse", "MembershipRequest", "PresenceResponse",
    "ParticipantResponse", "ParticipantWithUserResponse", "RoomSnapshotResponse",
    "LeaveResponse", "ActivityResponse", "RoomStatsResponse"
]
