"""
Channel and Tag models - Topic-tagged discussion channels.
"""

from uuid import uuid4
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Table
from sqlalchemy.types import Uuid
from sqlalchemy.orm import relationship
from database import Base
from models.message import utcnow


channel_tags = Table(
    "channel_tags",
    Base.metadata,
    Column("channel_id", Uuid(as_uuid=True), ForeignKey("channels.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid(as_uuid=True), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """
    Topic tag shared between channels.

    Attributes:
        id: Unique tag identifier (UUID)
        name: Unique tag name as first entered
        color: Hex color used by clients to render the tag
    """

    __tablename__ = "tags"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, nullable=False)
    name = Column(String(64), nullable=False, unique=True)
    color = Column(String(7), nullable=False)

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}', color='{self.color}')>"


class Channel(Base):
    """
    Discussion channel.

    Attributes:
        id: Unique channel identifier (UUID)
        title: Channel title
        description: Short description shown in listings
        creator_id: Identity-provider user id of the creator
        created_at: Creation timestamp
        tags: Topic tags (many-to-many)
    """

    __tablename__ = "channels"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    creator_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    tags = relationship("Tag", secondary=channel_tags, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, title='{self.title}')>"
