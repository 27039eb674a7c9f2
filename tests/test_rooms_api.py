"""Комнаты: создание, членство, heartbeat и снимок состояния."""
import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select, update

from jamroom.core.clock import utcnow
from jamroom.db.models import RoomParticipant
from jamroom.db.repositories.participant_repository import ParticipantRepository
from jamroom.domains.rooms import Room
from jamroom.domains.rooms.services import RoomService


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def is_utc_instant(value: str) -> bool:
    return value.endswith("Z") or value.endswith("+00:00")


async def test_create_room_joins_creator(client, alice, room):
    assert room["name"] == "Jam"
    assert room["bpm"] == 140
    assert room["keySignature"] == "A Minor"
    assert room["shortKey"] == "Am"
    assert room["creatorId"] == alice["id"]

    response = await client.get(f"/api/rooms/{room['id']}")
    assert response.status_code == 200
    snapshot = response.json()
    assert snapshot["name"] == "Jam"
    assert [p["userId"] for p in snapshot["participants"]] == [alice["id"]]
    participant = snapshot["participants"][0]
    assert participant["user"] == {"id": alice["id"], "username": "alice"}
    assert participant["presence"]["status"] == "recording"
    assert participant["presence"]["label"] == "Recording..."


async def test_create_room_defaults(client, alice):
    response = await client.post("/api/rooms", json={"name": "Defaults", "creatorId": alice["id"]})
    assert response.status_code == 201
    body = response.json()
    assert body["bpm"] == 120
    assert body["keySignature"] == "C Major"
    assert body["isPublic"] is True


@pytest.mark.parametrize("overrides, detail", [
    ({"bpm": 59}, "BPM must be between 60 and 200"),
    ({"bpm": 201}, "BPM must be between 60 and 200"),
    ({"keySignature": "H Major"}, "Unknown key signature: H Major"),
    ({"name": "   "}, "Room name is required"),
])
async def test_create_room_rejects_invalid_fields(client, alice, overrides, detail):
    payload = {"name": "Jam", "creatorId": alice["id"], **overrides}
    response = await client.post("/api/rooms", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == detail


async def test_create_room_for_unknown_creator(client):
    response = await client.post("/api/rooms", json={"name": "Ghost", "creatorId": 9999})
    assert response.status_code == 404
    assert (await client.get("/api/rooms")).json() == []


async def test_list_public_rooms(client, alice, room):
    await client.post("/api/rooms", json={"name": "Private", "creatorId": alice["id"], "isPublic": False})

    names = [r["name"] for r in (await client.get("/api/rooms")).json()]
    assert names == ["Jam"]


async def test_join_is_idempotent(client, bob, room):
    url = f"/api/rooms/{room['id']}/join"
    first = await client.post(url, json={"userId": bob["id"]})
    second = await client.post(url, json={"userId": bob["id"]})
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["joinedAt"] == second.json()["joinedAt"]
    assert parse_instant(second.json()["lastActiveAt"]) >= parse_instant(first.json()["lastActiveAt"])

    snapshot = (await client.get(f"/api/rooms/{room['id']}")).json()
    bob_row = [p for p in snapshot["participants"] if p["userId"] == bob["id"]]
    assert len(bob_row) == 1
    assert bob_row[0]["lastActiveAt"] == second.json()["lastActiveAt"]

    snapshot = (await client.get(f"/api/rooms/{room['id']}")).json()
    assert sorted(p["user"]["username"] for p in snapshot["participants"]) == ["alice", "bob"]


async def test_join_unknown_room_or_user(client, bob, room):
    response = await client.post("/api/rooms/9999/join", json={"userId": bob["id"]})
    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found"

    response = await client.post(f"/api/rooms/{room['id']}/join", json={"userId": 9999})
    assert response.status_code == 404


async def test_leave(client, alice, bob, room):
    url = f"/api/rooms/{room['id']}/leave"
    response = await client.post(url, json={"userId": bob["id"]})
    assert response.json() == {"success": False}

    response = await client.post(url, json={"userId": alice["id"]})
    assert response.json() == {"success": True}
    snapshot = (await client.get(f"/api/rooms/{room['id']}")).json()
    assert snapshot["participants"] == []


async def test_heartbeat_from_non_participant_is_accepted(client, bob, room):
    response = await client.post(f"/api/rooms/{room['id']}/activity", json={"userId": bob["id"]})
    assert response.status_code == 200
    assert response.json() == {"success": True}

    snapshot = (await client.get(f"/api/rooms/{room['id']}")).json()
    assert bob["id"] not in [p["userId"] for p in snapshot["participants"]]


async def test_heartbeat_restores_recording_presence(client, db_session, alice, room):
    await db_session.execute(
        update(RoomParticipant)
        .where(RoomParticipant.room_id == room["id"])
        .values(last_active_at=utcnow() - timedelta(seconds=400))
    )
    await db_session.commit()

    participant = (await client.get(f"/api/rooms/{room['id']}")).json()["participants"][0]
    assert participant["presence"]["status"] == "idle"
    assert participant["presence"]["label"] == "6m ago"

    await client.post(f"/api/rooms/{room['id']}/activity", json={"userId": alice["id"]})
    participant = (await client.get(f"/api/rooms/{room['id']}")).json()["participants"][0]
    assert participant["presence"]["status"] == "recording"


@pytest.mark.parametrize("body", [{}, {"userId": "abc"}, {"userId": 0}])
async def test_membership_requires_user_id(client, room, body):
    response = await client.post(f"/api/rooms/{room['id']}/join", json=body)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid userId"


async def test_unknown_room_snapshot(client):
    response = await client.get("/api/rooms/9999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Room not found"}


async def test_room_stats(client, alice, bob, room, audio_data):
    await client.post(f"/api/rooms/{room['id']}/join", json={"userId": bob["id"]})
    for name, duration in (("Bass", 8.0), ("Drums", 12.5)):
        await client.post(f"/api/rooms/{room['id']}/loops", json={
            "name": name, "audioData": audio_data, "duration": duration, "userId": alice["id"],
        })

    response = await client.get(f"/api/rooms/{room['id']}/stats")
    assert response.json() == {
        "roomId": room["id"],
        "loopsCount": 2,
        "activeCount": 2,
        "totalDuration": 12.5,
        "participantsCount": 2,
    }


def test_short_key():
    assert Room.create_room("Jam", 1, key_signature="A Minor").short_key == "Am"
    assert Room.create_room("Jam", 1, key_signature="F# Major").short_key == "F#M"


async def test_wire_timestamps_are_utc_instants(client, alice, bob, room, audio_data):
    joined = (await client.post(f"/api/rooms/{room['id']}/join", json={"userId": bob["id"]})).json()
    await client.post(f"/api/rooms/{room['id']}/loops", json={
        "name": "Riff", "audioData": audio_data, "duration": 4.0, "userId": alice["id"],
    })
    snapshot = (await client.get(f"/api/rooms/{room['id']}")).json()
    loops = (await client.get(f"/api/rooms/{room['id']}/loops")).json()
    listed = (await client.get("/api/rooms")).json()

    stamps = [room["createdAt"], snapshot["createdAt"], joined["joinedAt"], joined["lastActiveAt"]]
    stamps += [listed[0]["createdAt"], loops[0]["createdAt"]]
    for participant in snapshot["participants"]:
        stamps += [participant["joinedAt"], participant["lastActiveAt"]]

    assert all(is_utc_instant(stamp) for stamp in stamps), stamps
    assert parse_instant(snapshot["createdAt"]) == parse_instant(room["createdAt"])


async def test_concurrent_joins_keep_one_row(session_factory, alice, bob, room):
    async def join():
        async with session_factory() as session:
            return await RoomService(session).join_room(room["id"], bob["id"])

    first, second = await asyncio.gather(join(), join())
    assert first.id == second.id

    async with session_factory() as session:
        rows = await session.execute(
            select(RoomParticipant).where(
                RoomParticipant.room_id == room["id"], RoomParticipant.user_id == bob["id"]
            )
        )
        assert len(rows.scalars().all()) == 1


async def test_upsert_losing_insert_race_updates_existing_row(session_factory, bob, room, monkeypatch):
    async with session_factory() as session:
        existing = await ParticipantRepository(session).upsert(room["id"], bob["id"], utcnow() - timedelta(minutes=10))

    original_refresh = ParticipantRepository._refresh_activity
    calls = []

    async def refresh_missing_once(self, room_id, user_id, now):
        # Первый UPDATE не видит строку, как если бы ее вставил параллельный запрос
        calls.append(now)
        if len(calls) == 1:
            return False
        return await original_refresh(self, room_id, user_id, now)

    monkeypatch.setattr(ParticipantRepository, "_refresh_activity", refresh_missing_once)

    now = utcnow()
    async with session_factory() as session:
        participant = await ParticipantRepository(session).upsert(room["id"], bob["id"], now)

    assert len(calls) == 2
    assert participant.id == existing.id
    assert participant.last_active_at == now
    assert participant.joined_at == existing.joined_at
