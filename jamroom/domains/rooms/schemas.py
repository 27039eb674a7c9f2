from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from jamroom.core.schemas import ApiModel
from jamroom.domains.identity.schemas import UserResponse
from jamroom.domains.presence import PresenceStatus
from jamroom.domains.rooms.entities import DEFAULT_BPM, DEFAULT_KEY_SIGNATURE


class RoomCreate(ApiModel):
    """Схема для создания комнаты; диапазоны проверяет сервис"""
    name: str = Field(..., max_length=255)
    bpm: int = DEFAULT_BPM
    key_signature: str = DEFAULT_KEY_SIGNATURE
    is_public: bool = True
    creator_id: int

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return v.strip()


class RoomResponse(ApiModel):
    id: int
    name: str
    creator_id: int
    bpm: int
    key_signature: str
    short_key: str
    is_public: bool
    created_at: datetime


class MembershipRequest(ApiModel):
    """Тело запросов join/leave/activity"""
    user_id: int = Field(..., gt=0)


class PresenceResponse(ApiModel):
    status: PresenceStatus
    minutes_ago: int
    label: str


class ParticipantResponse(ApiModel):
    id: int
    room_id: int
    user_id: int
    joined_at: datetime
    last_active_at: datetime


class ParticipantWithUserResponse(ParticipantResponse):
    user: UserResponse
    presence: Optional[PresenceResponse] = None


class RoomSnapshotResponse(RoomResponse):
    """Комната и ее участники; лупы запрашиваются через /loops"""
    participants: List[ParticipantWithUserResponse]


class LeaveResponse(ApiModel):
    success: bool


class ActivityResponse(ApiModel):
    success: bool = True


class RoomStatsResponse(ApiModel):
    room_id: int
    loops_count: int
    active_count: int
    total_duration: float
    participants_count: int
