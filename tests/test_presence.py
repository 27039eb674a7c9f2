"""Классификация присутствия по давности heartbeat."""
from datetime import datetime, timedelta, timezone

import pytest

from jamroom.domains.presence import PresenceStatus, classify_presence

NOW = datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("seconds, status, label", [
    (0, PresenceStatus.RECORDING, "Recording..."),
    (90, PresenceStatus.RECORDING, "Recording..."),
    (119, PresenceStatus.RECORDING, "Recording..."),
    (120, PresenceStatus.LISTENING, "Listening"),
    (200, PresenceStatus.LISTENING, "Listening"),
    (299, PresenceStatus.LISTENING, "Listening"),
    (300, PresenceStatus.IDLE, "5m ago"),
    (400, PresenceStatus.IDLE, "6m ago"),
    (3 * 3600, PresenceStatus.IDLE, "180m ago"),
])
def test_classify_by_age(seconds, status, label):
    presence = classify_presence(NOW, NOW - timedelta(seconds=seconds))
    assert presence.status == status
    assert presence.label == label


def test_minutes_are_floored():
    presence = classify_presence(NOW, NOW - timedelta(seconds=359))
    assert presence.minutes_ago == 5
    assert presence.label == "5m ago"


def test_naive_timestamp_is_utc():
    last_active = (NOW - timedelta(seconds=200)).replace(tzinfo=None)
    assert classify_presence(NOW, last_active).status == PresenceStatus.LISTENING


def test_future_heartbeat_counts_as_now():
    presence = classify_presence(NOW, NOW + timedelta(minutes=3))
    assert presence.status == PresenceStatus.RECORDING
    assert presence.minutes_ago == 0


def test_custom_windows():
    presence = classify_presence(NOW, NOW - timedelta(seconds=30), recording_window=10, listening_window=20)
    assert presence.status == PresenceStatus.IDLE


def test_to_dict():
    presence = classify_presence(NOW, NOW - timedelta(seconds=400))
    assert presence.to_dict() == {"status": "idle", "minutes_ago": 6, "label": "6m ago"}
