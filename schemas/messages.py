"""
Request and response schemas for the messages API.

Mutating requests are a tagged union on ``action`` so each operation is
validated at the boundary with exactly the fields it accepts.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field, field_validator
from pydantic.alias_generators import to_camel

from config import settings


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class _ContentMixin(RequestModel):
    @field_validator("content", check_fields=False)
    @classmethod
    def content_within_limit(cls, value):
        if value is not None and len(value) > settings.max_content_length:
            raise ValueError(f"content exceeds maximum length of {settings.max_content_length} characters")
        return value


class CreateMessage(_ContentMixin):
    """Post a published message directly."""

    action: Literal["create"]
    channel_id: UUID
    parent_id: Optional[UUID] = None
    content: str


class SaveDraft(_ContentMixin):
    """Create or update the caller's draft for (channel, parent)."""

    action: Literal["save_draft"]
    channel_id: UUID
    parent_id: Optional[UUID] = None
    content: str


class UpdateDraft(_ContentMixin):
    action: Literal["save_draft"]
    content: str


class Publish(_ContentMixin):
    """Publish a draft, optionally replacing its content."""

    action: Literal["publish"]
    content: Optional[str] = None


class Edit(_ContentMixin):
    """Edit published content (bumps version)."""

    action: Literal["edit"]
    content: str


# Discriminated on "action" at the route boundary
CreateRequest = Union[CreateMessage, SaveDraft]
UpdateRequest = Union[UpdateDraft, Publish, Edit]


class MessageOut(CamelModel):
    """Message as returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    channel_id: Optional[str] = None
    parent_id: Optional[str] = None
    author_id: Optional[str] = None
    author_name: str
    content: str
    is_draft: bool
    is_orphaned: bool
    is_placeholder: bool = False
    version: int
    created_at: datetime
    updated_at: datetime

    @field_validator("id", "channel_id", "parent_id", mode="before")
    @classmethod
    def stringify_ids(cls, value):
        return None if value is None else str(value)

    @computed_field
    @property
    def edited(self) -> bool:
        return self.version > 0


class ThreadBlockOut(CamelModel):
    root: MessageOut
    children: List[MessageOut] = []


class ThreadViewOut(CamelModel):
    channel_id: Optional[str] = None
    primary: Optional[ThreadBlockOut] = None
    others: List[ThreadBlockOut] = []
    replies: Dict[str, List[MessageOut]] = {}


class DeleteMessageOut(CamelModel):
    deleted_id: str
    orphaned_ids: List[str] = []
