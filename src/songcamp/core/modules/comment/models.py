"""Comment records and the scope they belong to."""

from datetime import datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, field_serializer, field_validator

from songcamp.core.db import RowModel
from songcamp.utils import PLACEHOLDER_PREFIX, as_utc, now


class EntityType(StrEnum):
    """Content items that can carry a comment thread."""

    SONG = "song"
    PROMPT = "prompt"
    ASSIGNMENT = "assignment"


class ScopeKey(BaseModel):
    """Identifies the comments that belong together in one dataset."""

    dataset_id: str
    entity_type: EntityType
    entity_id: str


class EntityRef(BaseModel):
    """The commented-on item as the view knows it."""

    entity_type: EntityType
    entity_id: str
    title: str | None = None
    owner_email: str | None = None  # Song owner, notified about new top-level comments


class CommentDraft(BaseModel):
    """Comment content before the remote store assigns an id."""

    entity_type: EntityType
    entity_id: str
    parent_id: str | None = None  # None marks a top-level comment
    author: str
    author_email: str
    text: str
    timestamp: datetime = Field(default_factory=now)
    reactions: dict[str, set[str]] = Field(default_factory=dict)  # emoji -> emails of members who reacted
    edited_at: datetime | None = None

    @field_validator("timestamp", "edited_at")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @field_validator("reactions")
    @classmethod
    def _drop_empty_reactions(cls, reactions: dict[str, set[str]]) -> dict[str, set[str]]:
        return {emoji: users for emoji, users in reactions.items() if users}

    @field_serializer("reactions")
    def _serialize_reactions(self, reactions: dict[str, set[str]]) -> dict[str, list[str]]:
        return {emoji: sorted(users) for emoji, users in reactions.items()}


class Comment(RowModel, CommentDraft):
    """Remark attached to exactly one entity, optionally replying to another comment."""

    @property
    def is_placeholder(self) -> bool:
        """Whether the id is still a local one awaiting remote confirmation."""
        return self.id.startswith(PLACEHOLDER_PREFIX)

    @classmethod
    def from_draft(cls, comment_id: str, draft: CommentDraft) -> Self:
        data: dict[str, Any] = draft.model_dump()
        return cls(id=comment_id, **data)
