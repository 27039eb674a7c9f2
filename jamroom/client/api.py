"""HTTP-клиент API джем-комнат на httpx."""
import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from jamroom.domains.identity.schemas import LoginResponse, UserResponse
from jamroom.domains.loops.schemas import (
    BatchDeleteResponse, ExportResponse, LoopResponse, LoopWithUserResponse
)
from jamroom.domains.rooms.schemas import (
    ParticipantResponse, RoomResponse, RoomSnapshotResponse
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Отказ сервера или транспорта; status_code=None для сетевых ошибок"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(f"{status_code}: {message}" if status_code else message)


def encode_audio(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def decode_audio(audio_data: str) -> bytes:
    return base64.b64decode(audio_data)


class JamRoomAPI:
    """Тонкая обертка над REST-эндпоинтами сервиса"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "JamRoomAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def register(self, username: str, password: str) -> UserResponse:
        data = await self._request("POST", "/api/users/register", json={"username": username, "password": password})
        return UserResponse.model_validate(data)

    async def login(self, username: str, password: str) -> LoginResponse:
        data = await self._request("POST", "/api/users/login", json={"username": username, "password": password})
        return LoginResponse.model_validate(data)

    async def list_rooms(self) -> List[RoomResponse]:
        data = await self._request("GET", "/api/rooms")
        return [RoomResponse.model_validate(item) for item in data]

    async def create_room(
        self,
        name: str,
        creator_id: int,
        bpm: int = 120,
        key_signature: str = "C Major",
        is_public: bool = True
    ) -> RoomResponse:
        data = await self._request("POST", "/api/rooms", json={
            "name": name,
            "bpm": bpm,
            "keySignature": key_signature,
            "isPublic": is_public,
            "creatorId": creator_id,
        })
        return RoomResponse.model_validate(data)

    async def get_room(self, room_id: int) -> RoomSnapshotResponse:
        data = await self._request("GET", f"/api/rooms/{room_id}")
        return RoomSnapshotResponse.model_validate(data)

    async def join_room(self, room_id: int, user_id: int) -> ParticipantResponse:
        data = await self._request("POST", f"/api/rooms/{room_id}/join", json={"userId": user_id})
        return ParticipantResponse.model_validate(data)

    async def leave_room(self, room_id: int, user_id: int) -> bool:
        data = await self._request("POST", f"/api/rooms/{room_id}/leave", json={"userId": user_id})
        return bool(data["success"])

    async def heartbeat(self, room_id: int, user_id: int) -> None:
        await self._request("POST", f"/api/rooms/{room_id}/activity", json={"userId": user_id})

    async def list_loops(self, room_id: int) -> List[LoopWithUserResponse]:
        data = await self._request("GET", f"/api/rooms/{room_id}/loops")
        return [LoopWithUserResponse.model_validate(item) for item in data]

    async def create_loop(
        self,
        room_id: int,
        user_id: int,
        name: str,
        audio_data: str,
        duration: float
    ) -> LoopResponse:
        data = await self._request("POST", f"/api/rooms/{room_id}/loops", json={
            "name": name,
            "audioData": audio_data,
            "duration": duration,
            "userId": user_id,
        })
        return LoopResponse.model_validate(data)

    async def update_loop(self, loop_id: int, **changes: Any) -> LoopResponse:
        payload = {}
        if "volume" in changes:
            payload["volume"] = changes["volume"]
        if "is_active" in changes:
            payload["isActive"] = changes["is_active"]
        data = await self._request("PATCH", f"/api/loops/{loop_id}", json=payload)
        return LoopResponse.model_validate(data)

    async def delete_loop(self, loop_id: int) -> None:
        await self._request("DELETE", f"/api/loops/{loop_id}")

    async def delete_all_loops(self, room_id: int) -> BatchDeleteResponse:
        data = await self._request("DELETE", f"/api/rooms/{room_id}/loops")
        return BatchDeleteResponse.model_validate(data)

    async def export_mixdown(self, room_id: int) -> ExportResponse:
        data = await self._request("POST", f"/api/rooms/{room_id}/export")
        return ExportResponse.model_validate(data)

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                message = response.json().get("detail", response.text)
            except ValueError:
                message = response.text
            raise ApiError(message, status_code=response.status_code)

        return response.json()
