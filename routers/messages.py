"""
Messages API endpoints.

Listing, thread reconstruction, and the draft/publish/edit/delete
transitions. Mutations require an authenticated caller and are rate
limited per user.
"""

from typing import Annotated, List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from middleware.auth import optional_identity
from middleware.rate_limit import rate_limited_identity
from schemas.identity import Identity
from schemas.messages import (
    CreateRequest,
    DeleteMessageOut,
    MessageOut,
    Publish,
    SaveDraft,
    ThreadBlockOut,
    ThreadViewOut,
    UpdateDraft,
    UpdateRequest,
)
from services.deletion import DeletionPolicy
from services.errors import NotFoundError
from services.lifecycle import MessageLifecycle
from services.message_store import ChannelStore, MessageStore
from services.threads import ThreadBlock, ThreadView, reconstruct

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messages"])


def get_lifecycle(session: AsyncSession = Depends(get_db)) -> MessageLifecycle:
    return MessageLifecycle(MessageStore(session), ChannelStore(session))


def get_deletion_policy(session: AsyncSession = Depends(get_db)) -> DeletionPolicy:
    return DeletionPolicy(MessageStore(session))


def _block_out(block: ThreadBlock) -> ThreadBlockOut:
    return ThreadBlockOut(
        root=MessageOut.model_validate(block.root),
        children=[MessageOut.model_validate(child) for child in block.children],
    )


def thread_view_out(view: ThreadView, channel_id: Optional[UUID] = None) -> ThreadViewOut:
    """Serialize a reconstructed thread for the API."""
    return ThreadViewOut(
        channel_id=str(channel_id) if channel_id else None,
        primary=_block_out(view.primary) if view.primary else None,
        others=[_block_out(block) for block in view.others],
        replies={
            parent: [MessageOut.model_validate(reply) for reply in replies]
            for parent, replies in view.replies.items()
        },
    )


def _require_viewer_for_drafts(include_drafts: bool, viewer: Optional[Identity]) -> None:
    if include_drafts and viewer is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required to include drafts",
        )


@router.get("", response_model=List[MessageOut])
async def list_messages(
    channel_id: Optional[UUID] = Query(None, alias="channelId"),
    include_drafts: bool = Query(False, alias="includeDrafts"),
    viewer: Optional[Identity] = Depends(optional_identity),
    lifecycle: MessageLifecycle = Depends(get_lifecycle),
):
    """
    List messages visible to the caller, oldest first.

    Args:
        channel_id: Restrict to one channel
        include_drafts: Also return the caller's own drafts (requires auth)

    Returns:
        list: Flat list of messages sorted by createdAt
    """
    _require_viewer_for_drafts(include_drafts, viewer)
    messages = await lifecycle.visible_messages(channel_id, viewer, include_drafts)
    return [MessageOut.model_validate(m) for m in messages]


@router.get("/thread", response_model=ThreadViewOut)
async def get_thread(
    channel_id: UUID = Query(..., alias="channelId"),
    include_drafts: bool = Query(False, alias="includeDrafts"),
    viewer: Optional[Identity] = Depends(optional_identity),
    lifecycle: MessageLifecycle = Depends(get_lifecycle),
):
    """
    Reconstructed conversation of a channel.

    Returns the primary thread, the other root threads and the
    parent → replies map. Replies whose parent is gone hang under a
    "Deleted message" placeholder root.
    """
    _require_viewer_for_drafts(include_drafts, viewer)
    if not await lifecycle.channels.exists(channel_id):
        raise NotFoundError("Channel not found", {"channelId": str(channel_id)})

    messages = await lifecycle.visible_messages(channel_id, viewer, include_drafts)
    view = reconstruct(messages)
    logger.debug(f"Thread for channel {channel_id}: {len(view.threads)} root threads, {len(view.placeholders)} placeholders")
    return thread_view_out(view, channel_id)


@router.get("/{message_id}", response_model=MessageOut)
async def get_message(
    message_id: UUID,
    viewer: Optional[Identity] = Depends(optional_identity),
    lifecycle: MessageLifecycle = Depends(get_lifecycle),
):
    """Single message; drafts are only visible to their author."""
    message = await lifecycle.get_message(message_id, viewer)
    return MessageOut.model_validate(message)


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def create_message(
    request: Annotated[CreateRequest, Body(discriminator="action")],
    identity: Identity = Depends(rate_limited_identity),
    lifecycle: MessageLifecycle = Depends(get_lifecycle),
):
    """
    Create a message.

    ``{"action": "create"}`` posts a published message directly.
    ``{"action": "save_draft"}`` creates the caller's draft for the
    (channel, parent) scope, or updates it if one already exists.
    """
    if isinstance(request, SaveDraft):
        message = await lifecycle.save_draft(identity, request.channel_id, request.content, request.parent_id)
    else:
        message = await lifecycle.create_message(identity, request.channel_id, request.content, request.parent_id)
    return MessageOut.model_validate(message)


@router.patch("/{message_id}", response_model=MessageOut)
async def update_message(
    message_id: UUID,
    request: Annotated[UpdateRequest, Body(discriminator="action")],
    identity: Identity = Depends(rate_limited_identity),
    lifecycle: MessageLifecycle = Depends(get_lifecycle),
):
    """
    Update a message.

    - ``save_draft``: replace a draft's content (version unchanged)
    - ``publish``: publish a draft, optionally with final content
    - ``edit``: edit published content (version + 1)
    """
    if isinstance(request, UpdateDraft):
        message = await lifecycle.update_draft(identity, message_id, request.content)
    elif isinstance(request, Publish):
        message = await lifecycle.publish(identity, message_id, request.content)
    else:
        message = await lifecycle.edit_published(identity, message_id, request.content)
    return MessageOut.model_validate(message)


@router.delete("/{message_id}", response_model=DeleteMessageOut)
async def delete_message(
    message_id: UUID,
    identity: Identity = Depends(rate_limited_identity),
    policy: DeletionPolicy = Depends(get_deletion_policy),
):
    """
    Delete a message. Direct replies are kept and marked orphaned.

    Returns:
        dict: deletedId and the orphanedIds clients should stop replying to
    """
    result = await policy.delete_message(identity, message_id)
    return DeleteMessageOut(
        deleted_id=str(result.deleted_id),
        orphaned_ids=[str(i) for i in result.orphaned_ids],
    )
