"""Клиентская синхронизация против ASGI-приложения."""
import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport

from jamroom.client import ApiError, JamRoomAPI, RoomSync, decode_audio, encode_audio
from jamroom.main import app


@pytest_asyncio.fixture
async def api(session_factory):
    async with JamRoomAPI(base_url="http://test", transport=ASGITransport(app=app)) as api:
        yield api


@pytest_asyncio.fixture
async def jam(api):
    """Комната alice и RoomSync для нее, без фоновых задач"""
    alice = await api.register("alice", "secret")
    room = await api.create_room("Jam", alice.id, bpm=140, key_signature="A Minor")
    sync = RoomSync(api, room.id, alice.id, poll_interval=0.05, heartbeat_interval=0.05)
    await sync.refresh()
    return sync


async def test_refresh_loads_room_state(jam):
    assert jam.room.name == "Jam"
    assert jam.room.key_signature == "A Minor"
    assert [p.user.username for p in jam.participants] == ["alice"]
    assert jam.loops == []
    assert jam.last_synced_at is not None


async def test_mutation_triggers_refetch(jam):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)

    assert [l.id for l in jam.loops] == [loop.id]
    assert decode_audio(jam.get_loop(loop.id).audio_data) == b"pcm"


async def test_optimistic_volume_is_confirmed(jam):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)

    seen = []
    jam.on_change = lambda sync: seen.append(sync.get_loop(loop.id).volume)
    await jam.set_volume(loop.id, 0.3)

    # Оптимистичное значение видно до ответа сервера
    assert seen[0] == 0.3
    assert jam.get_loop(loop.id).volume == 0.3


async def test_failed_update_reverts_to_server_value(jam, api):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)
    await api.delete_loop(loop.id)

    with pytest.raises(ApiError) as exc_info:
        await jam.set_muted(loop.id, True)

    assert exc_info.value.status_code == 404
    assert jam.get_loop(loop.id).is_active is True


async def test_rejected_volume_reverts(jam):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)

    with pytest.raises(ApiError) as exc_info:
        await jam.set_volume(loop.id, 2.0)

    assert exc_info.value.status_code == 400
    assert jam.get_loop(loop.id).volume == 1.0


async def test_toggle_mute(jam):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)

    await jam.toggle_mute(loop.id)
    assert jam.get_loop(loop.id).is_active is False
    await jam.toggle_mute(loop.id)
    assert jam.get_loop(loop.id).is_active is True


async def test_delete_all_refetches(jam):
    for name in ("Bass", "Drums"):
        await jam.add_loop(name, encode_audio(b"pcm"), 4.0)

    result = await jam.delete_all_loops()
    assert result.success is True
    assert result.deleted_count == 2
    assert jam.loops == []


async def test_heartbeat_failure_is_silent(api):
    sync = RoomSync(api, 9999, 1)
    assert await sync.send_heartbeat() is True

    async def broken_heartbeat(room_id, user_id):
        raise ApiError("connection refused")

    api.heartbeat = broken_heartbeat
    assert await sync.send_heartbeat() is False


async def test_poll_failure_is_logged_not_raised(api):
    sync = RoomSync(api, 9999, 1)
    assert await sync.poll_once() is False
    assert sync.room is None


async def test_background_poll_picks_up_other_clients(jam, api):
    bob = await api.register("bob", "secret")
    jam.user_id = bob.id
    await jam.start()
    try:
        assert jam.running
        await api.create_loop(jam.room_id, bob.id, "From bob", encode_audio(b"x"), 2.0)

        for _ in range(100):
            if jam.loops:
                break
            await asyncio.sleep(0.02)
        assert [l.name for l in jam.loops] == ["From bob"]
        assert sorted(p.user.username for p in jam.participants) == ["alice", "bob"]
    finally:
        await jam.stop()

    assert not jam.running
    snapshot = await api.get_room(jam.room_id)
    assert [p.user.username for p in snapshot.participants] == ["alice"]


async def test_poll_survives_unexpected_error(jam, api):
    await jam.start()
    original_list_loops = api.list_loops
    calls = []

    async def malformed_once(room_id):
        calls.append(room_id)
        if len(calls) == 1:
            raise ValueError("malformed response body")
        return await original_list_loops(room_id)

    api.list_loops = malformed_once
    try:
        await api.create_loop(jam.room_id, jam.user_id, "Late", encode_audio(b"x"), 2.0)
        for _ in range(100):
            if jam.loops:
                break
            await asyncio.sleep(0.02)
        assert len(calls) >= 2
        assert [l.name for l in jam.loops] == ["Late"]
        assert jam.running
    finally:
        await jam.stop()


async def test_heartbeat_survives_unexpected_error(api):
    sync = RoomSync(api, 9999, 1)

    async def broken_heartbeat(room_id, user_id):
        raise RuntimeError("decoder failure")

    api.heartbeat = broken_heartbeat
    assert await sync.send_heartbeat() is False


async def test_confirmed_update_kept_when_refetch_fails(jam, api):
    loop = await jam.add_loop("Riff", encode_audio(b"pcm"), 4.0)

    async def unavailable(room_id):
        raise ApiError("service unavailable", status_code=503)

    api.get_room = unavailable
    updated = await jam.set_volume(loop.id, 0.3)

    assert updated.volume == 0.3
    assert jam.get_loop(loop.id).volume == 0.3
    assert jam.get_loop(loop.id).user.username == "alice"
