"""
Channels API endpoints.

Channels are topic-tagged containers for messages. Tags are created on
first use and colored from the academic palette.
"""

from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from middleware.rate_limit import rate_limited_identity
from schemas.channels import ChannelOut, CreateChannel
from schemas.identity import Identity
from services.errors import NotFoundError
from services.message_store import ChannelStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/channels", tags=["Channels"])


def get_channel_store(session: AsyncSession = Depends(get_db)) -> ChannelStore:
    return ChannelStore(session)


@router.get("", response_model=List[ChannelOut])
async def list_channels(
    tags: Optional[str] = Query(None, description="Comma-separated tag names, matches ANY"),
    store: ChannelStore = Depends(get_channel_store),
):
    """
    List channels, optionally filtered by tag names (case-insensitive).

    Args:
        tags: Comma-separated tag names

    Returns:
        list: Channels with their tags
    """
    tag_names = tags.split(",") if tags else None
    channels = await store.list_channels(tag_names)
    return [ChannelOut.model_validate(channel) for channel in channels]


@router.get("/{channel_id}", response_model=ChannelOut)
async def get_channel(channel_id: UUID, store: ChannelStore = Depends(get_channel_store)):
    channel = await store.get(channel_id)
    if channel is None:
        raise NotFoundError("Channel not found", {"channelId": str(channel_id)})
    return ChannelOut.model_validate(channel)


@router.post("", response_model=ChannelOut, status_code=status.HTTP_201_CREATED)
async def create_channel(
    request: CreateChannel,
    identity: Identity = Depends(rate_limited_identity),
    store: ChannelStore = Depends(get_channel_store),
):
    """
    Create a channel owned by the caller.

    Returns:
        dict: The created channel with its tags
    """
    async with store.transaction():
        channel = await store.create(
            title=request.title,
            description=request.description,
            creator_id=identity.id,
            tag_names=request.tags,
        )

    logger.info(f"Channel {channel.id} created by {identity.id} with tags {request.tags}")
    return ChannelOut.model_validate(channel)
