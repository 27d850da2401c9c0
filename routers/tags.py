"""
Tags API endpoints.

Tags are created implicitly with channels; clients list them to render
topic filters in their colors.
"""

from typing import List

from fastapi import APIRouter, Depends

from routers.channels import get_channel_store
from schemas.channels import TagOut
from services.message_store import ChannelStore

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("", response_model=List[TagOut])
async def list_tags(store: ChannelStore = Depends(get_channel_store)):
    """
    List every tag.

    Returns:
        list: Tags with id, name and hex color, sorted by name
    """
    tags = await store.list_tags()
    return [TagOut.model_validate(tag) for tag in tags]
