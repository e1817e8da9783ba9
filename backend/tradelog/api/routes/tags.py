from typing import List

from fastapi import APIRouter, Depends

from tradelog.api.deps import get_tags
from tradelog.schemas.tag import TagCreate, TagRead
from tradelog.services.tags import TagService

router = APIRouter()


@router.get("", response_model=List[TagRead])
async def list_tags(service: TagService = Depends(get_tags)):
    """All tags, ordered by name"""
    return await service.list_tags()


@router.post("", response_model=TagRead, status_code=201)
async def create_tag(payload: TagCreate, service: TagService = Depends(get_tags)):
    return await service.create_tag(payload.name, payload.color)
