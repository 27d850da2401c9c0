"""
Draft/publish lifecycle for messages.

Per (author, channel, parent scope) a message goes through:

    NoDraft --save_draft--> Draft --save_draft--> Draft (same id)
    Draft --publish--> Published --edit_published--> Published (version + 1)

``create_message`` is the direct "send" path that inserts a published
message without drafting. Every mutation runs inside one store
transaction; the conditional updates in MessageStore keep concurrent
publish/edit calls from applying twice.
"""

from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError

from models.message import Message, draft_scope_for, utcnow
from schemas.identity import Identity
from services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from services.message_store import ChannelStore, MessageStore
from services.sanitizer import is_empty, sanitize

logger = logging.getLogger(__name__)


def clean_content(content: Optional[str]) -> str:
    """
    Sanitize message content and reject it when nothing visible remains.

    Raises:
        ValidationError: If content is missing or empty after sanitizing
    """
    if content is None or not isinstance(content, str):
        raise ValidationError("Message content is required")
    sanitized = sanitize(content)
    if is_empty(sanitized):
        raise ValidationError("Message content cannot be empty")
    return sanitized


def ensure_author(message: Message, identity: Optional[Identity], action: str) -> None:
    if identity is None:
        raise AuthorizationError("Authentication required")
    if message.author_id != identity.id:
        logger.warning(f"User {identity.id} tried to {action} message {message.id} owned by {message.author_id}")
        raise AuthorizationError(f"You can only {action} your own messages")


class MessageLifecycle:
    """
    Creates, drafts, publishes and edits messages.

    Args:
        messages: Message repository bound to the request session
        channels: Channel repository (existence checks)
        clock: Source of "now", naive UTC
    """

    def __init__(
        self,
        messages: MessageStore,
        channels: ChannelStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.messages = messages
        self.channels = channels
        self.clock = clock

    # Reads

    async def get_message(self, message_id: UUID, viewer: Optional[Identity] = None) -> Message:
        """Load a message; drafts only resolve for their author."""
        message = await self.messages.find_by_id(message_id)
        if message is None or (message.is_draft and (viewer is None or viewer.id != message.author_id)):
            raise NotFoundError("Message not found", {"messageId": str(message_id)})
        return message

    async def visible_messages(
        self,
        channel_id: Optional[UUID],
        viewer: Optional[Identity] = None,
        include_drafts: bool = False,
    ) -> List[Message]:
        if include_drafts and viewer is None:
            raise AuthorizationError("Authentication required to include drafts")
        return await self.messages.visible_messages(
            channel_id=channel_id,
            viewer_id=viewer.id if viewer else None,
            include_drafts=include_drafts,
        )

    # Scope checks

    async def _require_channel(self, channel_id: UUID) -> None:
        if not await self.channels.exists(channel_id):
            raise NotFoundError("Channel not found", {"channelId": str(channel_id)})

    async def _resolve_parent(self, identity: Identity, channel_id: UUID, parent_id: Optional[UUID]) -> Optional[Message]:
        """
        Validate the parent scope of a new message.

        Replies may only target published, non-orphaned messages of the
        same channel. Someone else's draft does not exist for the caller.
        """
        if parent_id is None:
            return None

        parent = await self.messages.find_by_id(parent_id)
        if parent is None or (parent.is_draft and parent.author_id != identity.id):
            raise NotFoundError("Parent message not found", {"parentId": str(parent_id)})

        if parent.channel_id != channel_id:
            raise ValidationError("Parent message belongs to a different channel", {"parentId": str(parent_id)})

        if parent.is_draft:
            raise ConflictError("Cannot reply to an unpublished message", {"parentId": str(parent_id)})

        if parent.is_orphaned:
            raise ConflictError("Cannot reply to an orphaned message", {"parentId": str(parent_id)})

        return parent

    # Transitions

    async def create_message(
        self,
        identity: Identity,
        channel_id: UUID,
        content: str,
        parent_id: Optional[UUID] = None,
    ) -> Message:
        """
        Post a published message directly, skipping the draft state.

        Raises:
            ValidationError: Empty content or parent in another channel
            NotFoundError: Channel or parent missing
            ConflictError: Parent is a draft or orphaned
        """
        content = clean_content(content)

        async with self.messages.transaction():
            await self._require_channel(channel_id)
            await self._resolve_parent(identity, channel_id, parent_id)

            now = self.clock()
            message = await self.messages.insert(
                channel_id=channel_id,
                parent_id=parent_id,
                author_id=identity.id,
                author_name=identity.display_name,
                content=content,
                is_draft=False,
                is_orphaned=False,
                draft_scope=draft_scope_for(parent_id),
                version=0,
                created_at=now,
                updated_at=now,
            )

        logger.info(f"Message {message.id} posted in channel {channel_id} by {identity.id}")
        return message

    async def save_draft(
        self,
        identity: Identity,
        channel_id: UUID,
        content: str,
        parent_id: Optional[UUID] = None,
    ) -> Message:
        """
        Create the author's draft for a scope, or update it in place.

        Repeated calls for the same (author, channel, parent) return the
        same message id with the latest content.

        Args:
            identity: Author
            channel_id: Channel the draft belongs to
            content: Raw HTML content
            parent_id: Message being replied to, None for a root draft

        Returns:
            Message: The created or updated draft
        """
        content = clean_content(content)

        try:
            async with self.messages.transaction():
                message = await self._save_draft(identity, channel_id, content, parent_id)
        except IntegrityError:
            # A concurrent save created the draft first; update that one
            logger.info(f"Draft for {identity.id} in {channel_id}/{draft_scope_for(parent_id)} created concurrently, retrying as update")
            async with self.messages.transaction():
                message = await self._save_draft(identity, channel_id, content, parent_id)

        return message

    async def _save_draft(self, identity: Identity, channel_id: UUID, content: str, parent_id: Optional[UUID]) -> Message:
        await self._require_channel(channel_id)
        await self._resolve_parent(identity, channel_id, parent_id)

        scope = draft_scope_for(parent_id)
        now = self.clock()

        existing = await self.messages.find_draft(identity.id, channel_id, scope)
        if existing is not None:
            updated = await self.messages.update_by_id(
                existing.id,
                Message.is_draft.is_(True),
                content=content,
                updated_at=now,
            )
            if updated:
                logger.info(f"Draft {existing.id} updated by {identity.id}")
                return await self.messages.find_by_id(existing.id)
            # Published in the meantime; the scope is back to NoDraft

        message = await self.messages.insert(
            channel_id=channel_id,
            parent_id=parent_id,
            author_id=identity.id,
            author_name=identity.display_name,
            content=content,
            is_draft=True,
            is_orphaned=False,
            draft_scope=scope,
            version=0,
            created_at=now,
            updated_at=now,
        )
        logger.info(f"Draft {message.id} created by {identity.id} in channel {channel_id} ({scope})")
        return message

    async def update_draft(self, identity: Identity, message_id: UUID, content: str) -> Message:
        """Replace the content of an existing draft, addressed by id."""
        content = clean_content(content)

        async with self.messages.transaction():
            message = await self.get_message(message_id, identity)
            ensure_author(message, identity, "update")

            if not message.is_draft:
                raise ConflictError("Message is already published; edit it instead", {"messageId": str(message_id)})

            updated = await self.messages.update_by_id(
                message_id, Message.is_draft.is_(True), content=content, updated_at=self.clock()
            )
            if not updated:
                raise ConflictError("Message was published concurrently", {"messageId": str(message_id)})

            message = await self.messages.find_by_id(message_id)

        logger.info(f"Draft {message_id} updated by {identity.id}")
        return message

    async def publish(self, identity: Identity, message_id: UUID, content: Optional[str] = None) -> Message:
        """
        Publish a draft.

        created_at moves to the publication time so the message sorts by
        when it entered the conversation; version stays unchanged.

        Args:
            identity: Author
            message_id: Draft to publish
            content: Optional final content replacing the draft's

        Raises:
            ConflictError: Already published, or the parent was deleted,
                orphaned or is unpublished. The draft is left as it was.
        """
        override = clean_content(content) if content is not None else None

        async with self.messages.transaction():
            message = await self.get_message(message_id, identity)
            ensure_author(message, identity, "publish")

            if not message.is_draft:
                raise ConflictError("Message is already published", {"messageId": str(message_id)})

            conflict_context = {"messageId": str(message_id), "parentId": str(message.parent_id)}
            if message.is_orphaned:
                raise ConflictError("Cannot publish a reply to an orphaned message", conflict_context)

            if message.parent_id is not None:
                parent = await self.messages.find_by_id(message.parent_id)
                if parent is None:
                    raise ConflictError("Cannot publish a reply to a deleted message", conflict_context)
                if parent.is_orphaned:
                    raise ConflictError("Cannot publish a reply to an orphaned message", conflict_context)
                if parent.is_draft:
                    raise ConflictError("Cannot publish a reply to an unpublished message", conflict_context)

            now = self.clock()
            values = {"is_draft": False, "created_at": now, "updated_at": now}
            if override is not None:
                values["content"] = override

            updated = await self.messages.update_by_id(message_id, Message.is_draft.is_(True), **values)
            if not updated:
                raise ConflictError("Message is already published", {"messageId": str(message_id)})

            message = await self.messages.find_by_id(message_id)

        logger.info(f"Message {message_id} published by {identity.id}")
        return message

    async def edit_published(self, identity: Identity, message_id: UUID, content: str) -> Message:
        """
        Edit a published message, bumping its version by one.

        Raises:
            AuthorizationError: Caller is not the author
            ConflictError: Message is still a draft
        """
        content = clean_content(content)

        async with self.messages.transaction():
            message = await self.get_message(message_id, identity)
            ensure_author(message, identity, "edit")

            if message.is_draft:
                raise ConflictError("Drafts are updated, not edited; publish it first", {"messageId": str(message_id)})

            if not await self.messages.increment_version(message_id, content, updated_at=self.clock()):
                raise NotFoundError("Message not found", {"messageId": str(message_id)})

            message = await self.messages.find_by_id(message_id)

        logger.info(f"Message {message_id} edited by {identity.id}, now version {message.version}")
        return message
