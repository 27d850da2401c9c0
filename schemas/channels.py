"""
Request and response schemas for the channels API.
"""

from datetime import datetime
from typing import List

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from schemas.messages import CamelModel, RequestModel


class CreateChannel(RequestModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    tags: List[str] = []

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        return [tag.strip() for tag in value if tag.strip()]


class TagOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    color: str

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)


class ChannelOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    description: str
    creator_id: str
    created_at: datetime
    tags: List[TagOut] = []

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)
