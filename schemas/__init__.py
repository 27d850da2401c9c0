"""
Pydantic schemas for the forum API.
"""

from schemas.identity import Identity
from schemas.messages import (
    CreateMessage,
    SaveDraft,
    UpdateDraft,
    Publish,
    Edit,
    MessageOut,
    ThreadViewOut,
    DeleteMessageOut,
)
from schemas.channels import CreateChannel, ChannelOut, TagOut

__all__ = [
    "Identity",
    "CreateMessage",
    "SaveDraft",
    "UpdateDraft",
    "Publish",
    "Edit",
    "MessageOut",
    "ThreadViewOut",
    "DeleteMessageOut",
    "CreateChannel",
    "ChannelOut",
    "TagOut",
]
