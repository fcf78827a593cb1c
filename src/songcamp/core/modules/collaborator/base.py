"""Contract of the remote row store the engine synchronizes with."""

from typing import Protocol

from songcamp.core.modules.comment.models import Comment, CommentDraft, ScopeKey
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.notification.models import Notification, NotificationDraft


class Collaborator(Protocol):
    """Remote persistence service, the durable source of truth across sessions.

    Every call may be slow or fail. Implementations assign ids on creation and
    apply last-write-wins; no transactions or locks are assumed.
    """

    async def fetch_comments(self, scope: ScopeKey) -> list[Comment]: ...

    async def create_comment(self, scope: ScopeKey, draft: CommentDraft) -> Comment: ...

    async def update_comment(self, scope: ScopeKey, comment: Comment) -> None: ...

    async def toggle_reaction(self, scope: ScopeKey, comment_id: str, emoji: str, user_email: str) -> Comment:
        """Toggle the reaction remotely and return the authoritative comment."""
        ...

    async def create_notification(self, scope: ScopeKey, draft: NotificationDraft) -> Notification: ...

    async def create_notifications(self, scope: ScopeKey, drafts: list[NotificationDraft]) -> list[Notification]: ...

    async def fetch_notifications(self, dataset_id: str, recipient_email: str) -> list[Notification]: ...

    async def mark_notifications_read(self, dataset_id: str, notification_ids: list[str]) -> None: ...

    async def fetch_members(self, dataset_id: str) -> list[Member]: ...
