from .api import ApiError, JamRoomAPI, decode_audio, encode_audio
from .sync import RoomSync

__all__ = [
    "ApiError",
    "JamRoomAPI",
    "RoomSync",
    "decode_audio",
    "encode_audio",
]
