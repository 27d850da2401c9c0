"""
Message deletion.

Deleting a message never cascades: the row is removed and its direct
replies are flagged orphaned in the same transaction. Orphaned replies
keep their content and timestamps, stay editable by their authors, and
can no longer be replied to.
"""

from dataclasses import dataclass, field
from typing import List
from uuid import UUID
import logging

from models.message import Message
from schemas.identity import Identity
from services.errors import NotFoundError
from services.lifecycle import ensure_author
from services.message_store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    """Outcome of a delete; clients close any composer targeting these ids."""

    deleted_id: UUID
    orphaned_ids: List[UUID] = field(default_factory=list)


class DeletionPolicy:
    def __init__(self, messages: MessageStore):
        self.messages = messages

    async def delete_message(self, identity: Identity, message_id: UUID) -> DeletionResult:
        """
        Delete a message and orphan its direct replies.

        Args:
            identity: Caller, must be the author
            message_id: Message to delete

        Returns:
            DeletionResult: Deleted id and the ids of newly orphaned replies

        Raises:
            NotFoundError: Message missing (including an already deleted one),
                or a draft of another author
            AuthorizationError: Caller is not the author
        """
        async with self.messages.transaction():
            message = await self.messages.find_by_id(message_id)
            if message is None or (message.is_draft and message.author_id != identity.id):
                raise NotFoundError("Message not found", {"messageId": str(message_id)})

            ensure_author(message, identity, "delete")

            if not await self.messages.delete_by_id(message_id):
                # Deleted by a concurrent request between the read and the write
                raise NotFoundError("Message not found", {"messageId": str(message_id)})

            orphaned_ids = await self.messages.child_ids(message_id)
            if orphaned_ids:
                await self.messages.update_many(Message.parent_id == message_id, is_orphaned=True)

        logger.info(f"Message {message_id} deleted by {identity.id}, {len(orphaned_ids)} replies orphaned")
        return DeletionResult(deleted_id=message_id, orphaned_ids=orphaned_ids)
