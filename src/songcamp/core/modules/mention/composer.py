from collections.abc import Sequence
from enum import StrEnum

from pydantic import BaseModel, Field

from songcamp.core.modules.member.models import Member
from songcamp.core.modules.mention.parser import (
    DEFAULT_SUGGESTION_LIMIT,
    detect_mention,
    filter_suggestions,
    insert_mention,
    verify_mentions,
)
from songcamp.errors import ValidationError


class Key(StrEnum):
    """Keys the composer reacts to while a mention is in progress."""

    UP = "ArrowUp"
    DOWN = "ArrowDown"
    ENTER = "Enter"
    TAB = "Tab"
    ESCAPE = "Escape"


class Submission(BaseModel):
    """Final comment text and the mentions that survived editing."""

    text: str
    mentions: list[str] = Field(default_factory=list)


class MentionComposer:
    """State of one comment form: text, cursor, suggestion list and pending mentions."""

    def __init__(self, candidates: Sequence[Member], limit: int = DEFAULT_SUGGESTION_LIMIT) -> None:
        self._candidates = list(candidates)
        self._limit = limit
        self.text = ""
        self.cursor = 0
        self.query: str | None = None
        self.highlighted = 0
        self._pending: dict[str, None] = {}  # Insertion-ordered set of mentioned emails

    @property
    def active(self) -> bool:
        return self.query is not None

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    @property
    def suggestions(self) -> list[Member]:
        if self.query is None:
            return []
        return filter_suggestions(self.query, self._candidates, self._limit)

    def update(self, text: str, cursor: int) -> None:
        """Record an edit or cursor move and re-detect the mention at the cursor."""
        self.text = text
        self.cursor = max(0, min(cursor, len(text)))
        match = detect_mention(self.text, self.cursor)
        self.query = match.query if match else None
        self.highlighted = 0

    def handle_key(self, key: str) -> bool:
        """Handle navigation keys; returns True when the key was consumed."""
        suggestions = self.suggestions
        if not suggestions:
            return False

        if key == Key.DOWN:
            self.highlighted = min(self.highlighted + 1, len(suggestions) - 1)
        elif key == Key.UP:
            self.highlighted = max(self.highlighted - 1, 0)
        elif key in (Key.ENTER, Key.TAB):
            self.insert(suggestions[self.highlighted])
        elif key == Key.ESCAPE:
            self.cancel()
        else:
            return False
        return True

    def insert(self, member: Member) -> bool:
        """Replace the in-progress @query with the member's name."""
        result = insert_mention(self.text, self.cursor, member)
        if result is None:
            return False
        self.text, self.cursor = result
        self.query = None
        self._pending[member.email] = None
        return True

    def cancel(self) -> None:
        """Close the suggestion list without touching the text."""
        self.query = None

    def submit(self) -> Submission:
        text = self.text.strip()
        if not text:
            raise ValidationError("Comment text cannot be empty")
        return Submission(text=text, mentions=verify_mentions(text, self._pending, self._candidates))

    def reset(self) -> None:
        self.text = ""
        self.cursor = 0
        self.query = None
        self.highlighted = 0
        self._pending.clear()
