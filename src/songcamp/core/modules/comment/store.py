"""In-memory comment collection for one scope, with threaded views derived on demand."""

import structlog
from pydantic import BaseModel, Field

from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.comment.models import Comment, ScopeKey
from songcamp.errors import FetchError, NotFoundError

logger = structlog.get_logger(__name__)


class ThreadView(BaseModel):
    """Read-only snapshot of a thread as the view renders it."""

    top_level: list[Comment] = Field(..., description="Top-level comments, newest first")
    replies: dict[str, list[Comment]] = Field(..., description="Replies keyed by parent id, in store order")
    total: int = Field(..., description="Number of comments in the scope", ge=0)
    stale: bool = Field(False, description="Whether the last refresh failed")

    def replies_of(self, parent_id: str) -> list[Comment]:
        return self.replies.get(parent_id, [])


class CommentStore:
    """Flat comment collection keyed by id; parent/child views come from parent_id lookups.

    The dict keeps insertion order, which is the store order replies are
    rendered in.
    """

    def __init__(self, collaborator: Collaborator, scope: ScopeKey) -> None:
        self._collaborator = collaborator
        self.scope = scope
        self._comments: dict[str, Comment] = {}
        self.loading = True  # Until the first load completes
        self.stale = False

    def __len__(self) -> int:
        return len(self._comments)

    def __contains__(self, comment_id: object) -> bool:
        return comment_id in self._comments

    @property
    def comments(self) -> list[Comment]:
        return list(self._comments.values())

    async def load(self) -> None:
        """Replace the local list with the remote one, keeping the old list on failure."""
        try:
            fetched = await self._fetch()
        except FetchError as e:
            self.stale = True
            logger.warning(
                "comments_load_failed",
                entity_type=self.scope.entity_type,
                entity_id=self.scope.entity_id,
                kept=len(self._comments),
                error=str(e.__cause__),
            )
            return
        finally:
            self.loading = False

        self._comments = {comment.id: comment for comment in fetched}
        self.stale = False
        logger.debug("comments_loaded", entity_type=self.scope.entity_type, entity_id=self.scope.entity_id, count=len(fetched))

    async def _fetch(self) -> list[Comment]:
        try:
            return await self._collaborator.fetch_comments(self.scope)
        except Exception as e:
            raise FetchError(f"Failed to load comments for {self.scope.entity_type} {self.scope.entity_id}") from e

    def get(self, comment_id: str) -> Comment:
        if comment_id not in self._comments:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        return self._comments[comment_id]

    def top_level(self) -> list[Comment]:
        """Comments without a parent, newest first."""
        roots = [c for c in self._comments.values() if c.parent_id is None]
        return sorted(roots, key=lambda c: c.timestamp, reverse=True)

    def replies_of(self, parent_id: str) -> list[Comment]:
        """Direct replies to a comment in store order."""
        return [c for c in self._comments.values() if c.parent_id == parent_id]

    def apply(self, comment: Comment) -> None:
        """Insert a comment or replace the one with the same id in place."""
        self._comments[comment.id] = comment

    def replace(self, old_id: str, comment: Comment) -> None:
        """Swap the entry stored under old_id for comment, keeping its position."""
        if old_id not in self._comments or comment.id in self._comments:
            # A refresh already dropped the placeholder or fetched the confirmed row
            self._comments.pop(old_id, None)
            self.apply(comment)
            return
        self._comments = {
            (comment.id if key == old_id else key): (comment if key == old_id else value)
            for key, value in self._comments.items()
        }

    def thread(self) -> ThreadView:
        replies: dict[str, list[Comment]] = {}
        for comment in self._comments.values():
            if comment.parent_id is not None:
                replies.setdefault(comment.parent_id, []).append(comment)
        return ThreadView(top_level=self.top_level(), replies=replies, total=len(self._comments), stale=self.stale)
