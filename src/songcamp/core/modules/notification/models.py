"""Notification records and the trigger that fans them out."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from songcamp.core.db import RowModel
from songcamp.core.modules.comment.models import Comment, EntityRef, EntityType
from songcamp.utils import as_utc, now


class NotificationType(StrEnum):
    """Kinds of notifications stored in the inbox.

    The first four are produced by comment fan-out. The rest are written by
    other parts of the portal and only read here.
    """

    COMMENT_ON_SONG = "comment_on_song"
    REPLY_TO_COMMENT = "reply_to_comment"
    REACTION_ON_COMMENT = "reaction_on_comment"
    MENTION_IN_COMMENT = "mention_in_comment"
    BOCA_RECEIVED = "boca_received"
    NEW_ASSIGNMENT = "new_assignment"
    DEADLINE_REMINDER = "deadline_reminder"


class NotificationDraft(BaseModel):
    """Notification content before the remote store assigns an id."""

    recipient_email: str
    type: NotificationType
    trigger_user_email: str
    trigger_user_name: str
    entity_type: EntityType
    entity_id: str
    reference_id: str  # Id of the comment that caused the notification
    message: str
    read: bool = False
    created_at: datetime = Field(default_factory=now)

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Notification(RowModel, NotificationDraft):
    """One fan-out event directed at one recipient."""


class FanoutKind(StrEnum):
    """User actions that can trigger comment notifications."""

    COMMENT = "comment"
    REPLY = "reply"
    REACTION = "reaction"


class FanoutTrigger(BaseModel):
    """Everything fan-out needs to know about one completed action."""

    kind: FanoutKind
    actor_email: str
    actor_name: str
    comment: Comment  # New comment, new reply, or the comment reacted to
    entity: EntityRef
    parent: Comment | None = None  # Only for replies
    emoji: str | None = None  # Only for reactions
    mentions: list[str] = Field(default_factory=list)  # Verified mention emails
