from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from jamroom.core.schemas import ApiModel
from jamroom.domains.identity.schemas import UserResponse


class LoopCreate(ApiModel):
    """Схема для создания лупа"""
    name: str = Field(..., max_length=255)
    audio_data: str
    duration: float
    user_id: int = Field(..., gt=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return v.strip()


class LoopUpdate(ApiModel):
    """Частичное обновление микса: громкость и/или mute"""
    volume: Optional[float] = None
    is_active: Optional[bool] = None


class LoopResponse(ApiModel):
    id: int
    room_id: int
    user_id: int
    name: str
    audio_data: str
    duration: float
    volume: float
    is_active: bool
    created_at: datetime


class LoopWithUserResponse(LoopResponse):
    user: UserResponse


class DeleteResponse(ApiModel):
    success: bool = True


class BatchDeleteResponse(ApiModel):
    """Итог пакетного удаления: частичный успех не откатывается"""
    success: bool
    deleted_count: int
    failed_count: int


class ExportResponse(ApiModel):
    success: bool = True
    export_id: str
    loops_count: int
    total_duration: float
    download_url: str
