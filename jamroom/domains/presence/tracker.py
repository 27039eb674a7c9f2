"""Вычисление присутствия участника комнаты.

Статус не хранится в базе: он заново выводится из ``last_active_at`` при
каждом чтении. Участники никогда не удаляются по таймауту, они просто
переходят в ``idle``.
"""
import math
from datetime import datetime
from enum import Enum
from typing import Dict, Any

from jamroom.core.clock import as_utc
from jamroom.core.config import settings


class PresenceStatus(Enum):
    RECORDING = "recording"
    LISTENING = "listening"
    IDLE = "idle"


class Presence:
    """Производный статус активности участника"""

    def __init__(self, status: PresenceStatus, minutes_ago: int):
        self.status = status
        self.minutes_ago = minutes_ago

    @property
    def label(self) -> str:
        if self.status == PresenceStatus.RECORDING:
            return "Recording..."
        if self.status == PresenceStatus.LISTENING:
            return "Listening"
        return f"{self.minutes_ago}m ago"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "minutes_ago": self.minutes_ago,
            "label": self.label
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, Presence):
            return False
        return self.status == other.status and self.minutes_ago == other.minutes_ago

    def __repr__(self) -> str:
        return f"Presence({self.status.value}, {self.label!r})"


def classify_presence(
    now: datetime,
    last_active_at: datetime,
    recording_window: int = None,
    listening_window: int = None
) -> Presence:
    """Классификация участника по давности последнего heartbeat"""
    if recording_window is None:
        recording_window = settings.recording_window_seconds
    if listening_window is None:
        listening_window = settings.listening_window_seconds

    # Отрицательный возраст (рассинхрон часов) считаем нулевым
    age = max(0.0, (as_utc(now) - as_utc(last_active_at)).total_seconds())
    minutes_ago = math.floor(age / 60)

    if age < recording_window:
        return Presence(PresenceStatus.RECORDING, minutes_ago)
    if age < listening_window:
        return Presence(PresenceStatus.LISTENING, minutes_ago)
    return Presence(PresenceStatus.IDLE, minutes_ago)
