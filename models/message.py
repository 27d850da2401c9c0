"""
Message model - Represents a single post or reply inside a channel.
"""

from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.types import Uuid
from database import Base

ROOT_SCOPE = "root"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def draft_scope_for(parent_id) -> str:
    """Scope key shared by every message posted under the same parent."""
    return str(parent_id) if parent_id is not None else ROOT_SCOPE


class Message(Base):
    """
    Message model.

    Attributes:
        id: Unique message identifier (UUID)
        channel_id: Owning channel (references channels table)
        parent_id: Message replied to, NULL for a root message. Not a foreign
            key: replies outlive their parent and get orphaned instead.
        author_id: Identity-provider user id of the author
        author_name: Display name snapshot taken at creation
        content: Sanitized HTML content
        is_draft: Only visible to the author while True
        is_orphaned: Parent was deleted; no further replies accepted
        draft_scope: "root" or the parent id, keys the one-draft-per-scope index
        version: Number of edits made after publication
        created_at: Creation timestamp (reset when a draft is published)
        updated_at: Last write timestamp
    """

    __tablename__ = "messages"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
    )
    channel_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    author_id = Column(String(128), nullable=False, index=True)
    author_name = Column(String(255), nullable=False, default="Anonymous")
    content = Column(Text, nullable=False)
    is_draft = Column(Boolean, nullable=False, default=False, index=True)
    is_orphaned = Column(Boolean, nullable=False, default=False, index=True)
    draft_scope = Column(String(64), nullable=False, default=ROOT_SCOPE)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Constraints
    __table_args__ = (
        CheckConstraint("LENGTH(content) > 0", name="chk_messages_content_nonempty"),
        CheckConstraint("version >= 0", name="chk_messages_version_positive"),
        Index("ix_messages_channel_parent_draft_created", "channel_id", "parent_id", "is_draft", "created_at"),
        # At most one open draft per (author, channel, parent scope)
        Index(
            "uq_messages_open_draft",
            "author_id",
            "channel_id",
            "draft_scope",
            unique=True,
            postgresql_where=text("is_draft"),
            sqlite_where=text("is_draft"),
        ),
    )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return (
            f"<Message(id={self.id}, channel_id={self.channel_id}, parent_id={self.parent_id}, "
            f"draft={self.is_draft}, orphaned={self.is_orphaned}, v={self.version})>"
        )
