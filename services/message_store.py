"""
SQLAlchemy persistence for messages and channels.

Thin async repositories over one AsyncSession. Mutating services group
their calls inside ``transaction()`` so each operation commits or rolls
back as a unit.
"""

from contextlib import asynccontextmanager
from typing import Any, Iterable, List, Optional, Sequence
from uuid import UUID
import logging
import random

from sqlalchemy import select, update, delete, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from models.channel import Channel, Tag
from models.message import Message, utcnow

logger = logging.getLogger(__name__)

# Academic field colors matching the frontend theme
ACADEMIC_TAG_COLORS = {
    "biology": "#10b981",
    "physics": "#fbbf24",
    "mathematics": "#60a5fa",
    "philosophy": "#a78bfa",
    "psychology": "#7e22ce",
    "literature": "#ec4899",
    "chemistry": "#06b6d4",
    "history": "#ef4444",
}


def tag_color(name: str) -> str:
    """Palette color for known academic fields, random hex otherwise."""
    color = ACADEMIC_TAG_COLORS.get(name.strip().lower())
    if color:
        return color
    return f"#{random.randint(0, 0xFFFFFF):06x}"


class _SessionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self):
        """Commit on success, roll back and re-raise on any error."""
        try:
            yield self.session
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class MessageStore(_SessionRepository):
    """
    Message persistence.

    Mirrors the document-store contract the lifecycle code relies on:
    find_by_id, find_many, insert, update_by_id, delete_by_id, update_many.
    """

    async def find_by_id(self, message_id: UUID) -> Optional[Message]:
        """
        Load a message by id.

        Always reads the row: conditional updates bypass the identity map,
        so a cached instance may be stale.

        Args:
            message_id: Message identifier

        Returns:
            Message or None if not found
        """
        return await self.session.get(Message, message_id, populate_existing=True)

    async def find_many(self, *criteria, **filters) -> List[Message]:
        """Messages matching all criteria and column=value filters, oldest first."""
        query = select(Message).filter_by(**filters)
        if criteria:
            query = query.where(*criteria)
        query = query.order_by(Message.created_at.asc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_draft(self, author_id: str, channel_id: UUID, draft_scope: str) -> Optional[Message]:
        """The author's open draft in a scope, if any."""
        result = await self.session.execute(
            select(Message).where(
                Message.author_id == author_id,
                Message.channel_id == channel_id,
                Message.draft_scope == draft_scope,
                Message.is_draft.is_(True),
            )
        )
        return result.scalars().first()

    async def visible_messages(
        self,
        channel_id: Optional[UUID] = None,
        viewer_id: Optional[str] = None,
        include_drafts: bool = False,
    ) -> List[Message]:
        """
        Messages a viewer may see: every published message plus, when asked
        for, the viewer's own drafts.

        Args:
            channel_id: Restrict to one channel (all channels if None)
            viewer_id: Authenticated viewer, required for include_drafts
            include_drafts: Include the viewer's drafts

        Returns:
            List of messages sorted by created_at
        """
        visibility = Message.is_draft.is_(False)
        if include_drafts and viewer_id:
            visibility = or_(
                visibility,
                and_(Message.is_draft.is_(True), Message.author_id == viewer_id),
            )

        criteria = [visibility]
        if channel_id is not None:
            criteria.append(Message.channel_id == channel_id)
        return await self.find_many(*criteria)

    async def insert(self, **values: Any) -> Message:
        message = Message(**values)
        self.session.add(message)
        await self.session.flush()
        logger.debug(f"Inserted message {message.id}")
        return message

    async def update_by_id(self, message_id: UUID, *conditions, **values: Any) -> int:
        """
        Conditionally update one message.

        Extra conditions make the write atomic (e.g. ``Message.is_draft.is_(True)``).

        Returns:
            int: Number of rows updated (0 if missing or a condition failed)
        """
        values.setdefault("updated_at", utcnow())
        result = await self.session.execute(
            update(Message)
            .where(Message.id == message_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def increment_version(self, message_id: UUID, content: str, **values: Any) -> int:
        """Replace published content and bump version in one statement."""
        return await self.update_by_id(
            message_id,
            Message.is_draft.is_(False),
            content=content,
            version=Message.version + 1,
            **values,
        )

    async def delete_by_id(self, message_id: UUID) -> int:
        result = await self.session.execute(
            delete(Message)
            .where(Message.id == message_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def update_many(self, *criteria, **values: Any) -> int:
        """Update every matching message. updated_at is only changed when given."""
        values.setdefault("updated_at", Message.updated_at)
        result = await self.session.execute(
            update(Message)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def child_ids(self, parent_id: UUID) -> List[UUID]:
        result = await self.session.execute(select(Message.id).where(Message.parent_id == parent_id))
        return list(result.scalars().all())


class ChannelStore(_SessionRepository):
    """Channel and tag persistence."""

    async def exists(self, channel_id: UUID) -> bool:
        result = await self.session.execute(select(Channel.id).where(Channel.id == channel_id))
        return result.scalar_one_or_none() is not None

    async def get(self, channel_id: UUID) -> Optional[Channel]:
        return await self.session.get(Channel, channel_id)

    async def list_channels(self, tag_names: Optional[Sequence[str]] = None) -> List[Channel]:
        """
        List channels, optionally keeping those with ANY of the given tags.

        Tag names match case-insensitively. When none of the names matches
        an existing tag the filter is ignored.
        """
        query = select(Channel).order_by(Channel.created_at.asc())

        names = [name.strip().lower() for name in (tag_names or []) if name.strip()]
        if names:
            result = await self.session.execute(select(Tag.id).where(func.lower(Tag.name).in_(names)))
            tag_ids = list(result.scalars().all())
            if tag_ids:
                query = query.where(Channel.tags.any(Tag.id.in_(tag_ids)))

        result = await self.session.execute(query)
        return list(result.scalars().unique().all())

    async def list_tags(self) -> List[Tag]:
        """Every tag with its color, alphabetically."""
        result = await self.session.execute(select(Tag).order_by(func.lower(Tag.name).asc()))
        return list(result.scalars().all())

    async def get_or_create_tags(self, names: Iterable[str]) -> List[Tag]:
        tags: List[Tag] = []
        for name in names:
            name = name.strip()
            if not name or any(t.name == name for t in tags):
                continue
            result = await self.session.execute(select(Tag).where(Tag.name == name))
            tag = result.scalar_one_or_none()
            if tag is None:
                tag = Tag(name=name, color=tag_color(name))
                self.session.add(tag)
                logger.info(f"Created tag '{name}' with color {tag.color}")
            tags.append(tag)
        return tags

    async def create(self, title: str, description: str, creator_id: str, tag_names: Sequence[str]) -> Channel:
        tags = await self.get_or_create_tags(tag_names)
        channel = Channel(title=title, description=description, creator_id=creator_id, tags=tags)
        self.session.add(channel)
        await self.session.flush()
        return channel
