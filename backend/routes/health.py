from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.infrastructure import EntityRepository
from backend.routes.dependencies import get_entity_repository

router = APIRouter(prefix="/healthcheck", tags=["health"])


@router.get("")
async def ping(repository: EntityRepository = Depends(get_entity_repository)) -> dict:
    repository.ping()
    return {"OK": True}
