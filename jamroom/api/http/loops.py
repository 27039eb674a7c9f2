from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jamroom.core.db import get_db
from jamroom.domains.loops.schemas import LoopUpdate, LoopResponse, DeleteResponse
from jamroom.domains.loops.services import LoopService

router = APIRouter(prefix="/api/loops", tags=["loops"])


@router.patch("/{loop_id}", response_model=LoopResponse)
async def update_loop(
    loop_id: int,
    update_data: LoopUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Изменение громкости или mute лупа"""
    loop_service = LoopService(db)
    loop = await loop_service.update_loop(loop_id, update_data)
    return LoopResponse.model_validate(loop)


@router.delete("/{loop_id}", response_model=DeleteResponse)
async def delete_loop(
    loop_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Удаление лупа"""
    loop_service = LoopService(db)
    await loop_service.delete_loop(loop_id)
    return DeleteResponse(success=True)
