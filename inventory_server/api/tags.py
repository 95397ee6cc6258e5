"""
Inventory Server - Tags API
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.database import get_db
from inventory_server.models import Profile
from inventory_server.schemas import TagCreate, TagUpdate, TagResponse
from inventory_server.services.tags import TagService
from inventory_server.api.auth import get_current_profile

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=List[TagResponse])
async def list_tags(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Lista tags por nome"""
    return await TagService(db).list_tags()


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagCreate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    return await TagService(db).create_tag(request.name)


@router.put("/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: str,
    request: TagUpdate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    return await TagService(db).update_tag(tag_id, request.name)


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    await TagService(db).delete_tag(tag_id)
    return {"message": "Tag deleted successfully"}
