"""Cursor-relative @mention detection and resolution."""

import re
from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from songcamp.core.modules.member.models import Member

# An @ at the start of the text or after whitespace, followed by the query up to the cursor
MENTION_RE = re.compile(r"(?:^|\s)@([^\s@]*)\Z")

DEFAULT_SUGGESTION_LIMIT = 8


class MentionMatch(BaseModel):
    """An in-progress mention ending at the cursor."""

    query: str
    start: int  # Index of the "@"
    end: int  # Cursor position


def detect_mention(text: str, cursor: int) -> MentionMatch | None:
    """Find the mention being typed at the cursor, if any."""
    cursor = max(0, min(cursor, len(text)))
    match = MENTION_RE.search(text[:cursor])
    if match is None:
        return None
    return MentionMatch(query=match.group(1), start=match.start(1) - 1, end=cursor)


def filter_suggestions(query: str, candidates: Iterable[Member], limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[Member]:
    """Members whose name contains the query (case-insensitive), in source order."""
    needle = query.casefold()
    matches = [member for member in candidates if member.name and needle in member.name.casefold()]
    return matches[:limit]


def insert_mention(text: str, cursor: int, member: Member) -> tuple[str, int] | None:
    """Replace the @query at the cursor with "@Name " and return the new text and cursor."""
    match = detect_mention(text, cursor)
    if match is None:
        return None
    before = text[: match.start]
    after = text[match.end :]
    insertion = f"@{member.name} "
    return before + insertion + after, len(before) + len(insertion)


def verify_mentions(text: str, pending: Iterable[str], candidates: Sequence[Member]) -> list[str]:
    """Keep the pending mention emails whose "@Name" is still in the final text.

    Order follows pending; unknown emails are dropped.
    """
    by_email = {member.email: member for member in candidates}
    verified: list[str] = []
    for email in pending:
        member = by_email.get(email)
        if member is not None and f"@{member.name}" in text and email not in verified:
            verified.append(email)
    return verified
