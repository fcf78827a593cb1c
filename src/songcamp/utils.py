from datetime import UTC, datetime
from uuid import uuid4

PLACEHOLDER_PREFIX = "local-"


def now() -> datetime:
    return datetime.now(UTC)


def new_row_id() -> str:
    return uuid4().hex


def new_placeholder_id() -> str:
    """Id for an optimistic entry that the remote store has not confirmed yet."""
    return PLACEHOLDER_PREFIX + uuid4().hex


def same_identity(left: str, right: str) -> bool:
    """Compare two member emails case-insensitively."""
    return left.casefold() == right.casefold()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes, as stored rows return them, as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
