"""Optimistic mutations of a comment thread.

Every operation applies its local effect to the comment store before the
remote write is awaited, so the view never waits on the network. What happens
when the write fails depends on the operation:

- edit and reaction toggle put the previous comment back and raise WriteError;
- comment and reply creation keep the optimistic entry and only log the error.

Rollback restores the operation's own prior value, never a snapshot of the
whole store, so overlapping operations do not undo each other.
"""

from collections.abc import Sequence

import structlog

from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.comment.models import Comment, CommentDraft, EntityRef
from songcamp.core.modules.comment.store import CommentStore
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.notification.models import FanoutKind, FanoutTrigger
from songcamp.core.modules.notification.service import NotificationService
from songcamp.core.modules.reaction.toggle import has_reacted, toggle_reaction
from songcamp.errors import WriteError
from songcamp.utils import new_placeholder_id, now, same_identity

logger = structlog.get_logger(__name__)


def can_edit(comment: Comment, identity: str) -> bool:
    """Only the author may edit a comment; callers check this before edit_comment."""
    return same_identity(comment.author_email, identity)


class MutationGateway:
    """Applies comment mutations locally first, then confirms them remotely."""

    def __init__(
        self,
        store: CommentStore,
        collaborator: Collaborator,
        notifications: NotificationService,
        entity: EntityRef,
        actor: Member,
    ) -> None:
        self._store = store
        self._collaborator = collaborator
        self._notifications = notifications
        self._entity = entity
        self._actor = actor

    async def create_comment(self, text: str, mentions: Sequence[str] = ()) -> Comment:
        """Post a top-level comment."""
        return await self._create(self._draft(text, parent_id=None), parent=None, mentions=mentions)

    async def create_reply(self, parent_id: str, text: str, mentions: Sequence[str] = ()) -> Comment:
        """Post a reply to an existing comment of the thread."""
        parent = self._store.get(parent_id)
        return await self._create(self._draft(text, parent_id=parent.id), parent=parent, mentions=mentions)

    async def edit_comment(self, comment_id: str, text: str) -> Comment:
        previous = self._store.get(comment_id)
        edited = previous.model_copy(update={"text": text, "edited_at": now()})
        self._store.apply(edited)

        try:
            await self._collaborator.update_comment(self._store.scope, edited)
        except Exception as e:
            self._store.apply(previous)
            logger.warning("comment_edit_failed", comment_id=comment_id, error=str(e))
            raise WriteError from e

        return edited

    async def toggle_reaction(self, comment_id: str, emoji: str) -> Comment:
        """Toggle the actor's reaction; a newly added reaction notifies the comment author."""
        previous = self._store.get(comment_id)
        user_email = self._actor.email
        self._store.apply(previous.model_copy(update={"reactions": toggle_reaction(previous.reactions, emoji, user_email)}))

        try:
            confirmed = await self._collaborator.toggle_reaction(self._store.scope, comment_id, emoji, user_email)
        except Exception as e:
            self._store.apply(previous)
            logger.warning("reaction_toggle_failed", comment_id=comment_id, emoji=emoji, error=str(e))
            raise WriteError from e

        self._store.apply(confirmed)

        added = not has_reacted(previous.reactions, emoji, user_email) and has_reacted(confirmed.reactions, emoji, user_email)
        if added:
            self._notify(FanoutKind.REACTION, confirmed, emoji=emoji)
        return confirmed

    async def _create(self, draft: CommentDraft, parent: Comment | None, mentions: Sequence[str]) -> Comment:
        placeholder = Comment.from_draft(new_placeholder_id(), draft)
        self._store.apply(placeholder)

        try:
            created = await self._insert(draft)
        except WriteError as e:
            # Creation is never rolled back: the placeholder stays in the store
            logger.warning(
                "comment_create_failed",
                placeholder_id=placeholder.id,
                parent_id=draft.parent_id,
                error=str(e.__cause__),
            )
            return placeholder

        self._store.replace(placeholder.id, created)
        kind = FanoutKind.COMMENT if parent is None else FanoutKind.REPLY
        self._notify(kind, created, parent=parent, mentions=list(mentions))
        return created

    async def _insert(self, draft: CommentDraft) -> Comment:
        try:
            return await self._collaborator.create_comment(self._store.scope, draft)
        except Exception as e:
            raise WriteError("Failed to post comment, please try again.") from e

    def _draft(self, text: str, parent_id: str | None) -> CommentDraft:
        return CommentDraft(
            entity_type=self._entity.entity_type,
            entity_id=self._entity.entity_id,
            parent_id=parent_id,
            author=self._actor.name,
            author_email=self._actor.email,
            text=text,
        )

    def _notify(
        self,
        kind: FanoutKind,
        comment: Comment,
        parent: Comment | None = None,
        emoji: str | None = None,
        mentions: list[str] | None = None,
    ) -> None:
        trigger = FanoutTrigger(
            kind=kind,
            actor_email=self._actor.email,
            actor_name=self._actor.name,
            comment=comment,
            entity=self._entity,
            parent=parent,
            emoji=emoji,
            mentions=mentions or [],
        )
        self._notifications.dispatch(self._store.scope, trigger)
