"""
Database models for the forum backend.
"""

from database import Base
from models.channel import Channel, Tag, channel_tags
from models.message import Message

__all__ = ["Base", "Channel", "Tag", "channel_tags", "Message"]
