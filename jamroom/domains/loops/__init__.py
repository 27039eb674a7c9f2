from jamroom.domains.loops.entities import Loop, is_base64
from jamroom.domains.loops.schemas import (
    LoopCreate, LoopUpdate, LoopResponse, LoopWithUserResponse,
    DeleteResponse, BatchDeleteResponse, ExportResponse
)

__all__ = [
    "Loop", "is_base64",
    "LoopCreate", "LoopUpdate", "LoopResponse", "LoopWithUserResponse",
    "DeleteResponse", "BatchDeleteResponse", "ExportResponse"
]
