from collections.abc import Sequence
from types import TracebackType
from typing import Self

import structlog

from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.comment.models import Comment, EntityRef, ScopeKey
from songcamp.core.modules.comment.store import CommentStore, ThreadView
from songcamp.core.modules.gateway.service import MutationGateway, can_edit
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.mention.composer import MentionComposer
from songcamp.core.modules.mention.parser import DEFAULT_SUGGESTION_LIMIT
from songcamp.core.modules.notification.service import NotificationService
from songcamp.core.modules.reaction.toggle import ReactionCount, is_storable_emoji, summarize_reactions
from songcamp.core.modules.refresh.scheduler import DEFAULT_POLL_INTERVAL, RefreshScheduler
from songcamp.errors import AuthorizationError, ValidationError

logger = structlog.get_logger(__name__)


class CommentThread:
    """Comment section of one entity as seen by one member.

    Owns the store, mutation gateway and refresh scheduler for the lifetime of
    the view. Use as an async context manager: entering loads the comments and
    starts polling, leaving stops the timer.
    """

    def __init__(
        self,
        collaborator: Collaborator,
        dataset_id: str,
        entity: EntityRef,
        viewer: Member,
        notifications: NotificationService,
        members: Sequence[Member] = (),
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
    ) -> None:
        self.entity = entity
        self.viewer = viewer
        self.scope = ScopeKey(dataset_id=dataset_id, entity_type=entity.entity_type, entity_id=entity.entity_id)
        self.store = CommentStore(collaborator, self.scope)
        self.gateway = MutationGateway(self.store, collaborator, notifications, entity, viewer)
        self.scheduler = RefreshScheduler(self.store.load, poll_interval)
        self._members = list(members)
        self._suggestion_limit = suggestion_limit

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        self.close()

    async def open(self, visible: bool = True) -> None:
        await self.store.load()
        self.scheduler.start(visible)
        logger.debug("thread_opened", entity_type=self.entity.entity_type, entity_id=self.entity.entity_id)

    def close(self) -> None:
        self.scheduler.stop()
        logger.debug("thread_closed", entity_type=self.entity.entity_type, entity_id=self.entity.entity_id)

    def set_visible(self, visible: bool) -> None:
        self.scheduler.set_visible(visible)

    def thread(self) -> ThreadView:
        return self.store.thread()

    def composer(self) -> MentionComposer:
        """New mention-aware composer for a comment or reply form."""
        return MentionComposer(self._members, self._suggestion_limit)

    def reactions(self, comment_id: str) -> list[ReactionCount]:
        return summarize_reactions(self.store.get(comment_id).reactions, self.viewer.email)

    def can_edit(self, comment_id: str) -> bool:
        return can_edit(self.store.get(comment_id), self.viewer.email)

    async def post_comment(self, text: str, mentions: Sequence[str] | None = None) -> Comment:
        return await self.gateway.create_comment(_clean_text(text), mentions or ())

    async def post_reply(self, parent_id: str, text: str, mentions: Sequence[str] | None = None) -> Comment:
        return await self.gateway.create_reply(parent_id, _clean_text(text), mentions or ())

    async def edit_comment(self, comment_id: str, text: str) -> Comment:
        """Edit one of the viewer's own comments.

        Raises:
            AuthorizationError: If the viewer is not the author
            WriteError: If the remote update failed; the old text is restored
        """
        if not self.can_edit(comment_id):
            raise AuthorizationError
        return await self.gateway.edit_comment(comment_id, _clean_text(text))

    async def toggle_reaction(self, comment_id: str, emoji: str) -> Comment:
        if not emoji:
            raise ValidationError("Emoji is required")
        if not is_storable_emoji(emoji):
            raise ValidationError(f"Invalid reaction '{emoji}'")
        return await self.gateway.toggle_reaction(comment_id, emoji)


def _clean_text(text: str) -> str:
    cleaned = text.strip()
    if not cleaned:
        raise ValidationError("Comment text cannot be empty")
    return cleaned
