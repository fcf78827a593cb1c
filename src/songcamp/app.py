from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from songcamp.config import Config
from songcamp.core.core import Core
from songcamp.core.modules.comment.models import EntityRef
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.notification.models import Notification
from songcamp.core.modules.thread.context import CommentThread


class App:
    """Facade the view layer talks to: opens comment threads and serves the inbox."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def _dataset_id(self) -> str:
        return self._core.config.dataset_id

    @asynccontextmanager
    async def open_thread(self, viewer: Member, entity: EntityRef, visible: bool = True) -> AsyncGenerator[CommentThread]:
        """Open the comment section of an entity for the lifetime of a view."""
        config = self._core.config
        thread = CommentThread(
            collaborator=self._core.collaborator,
            dataset_id=self._dataset_id,
            entity=entity,
            viewer=viewer,
            notifications=self._core.services.notification,
            members=self._core.services.member.get_members(self._dataset_id),
            poll_interval=config.poll_interval_seconds,
            suggestion_limit=config.mention_suggestion_limit,
        )
        await thread.open(visible)
        try:
            yield thread
        finally:
            thread.close()

    def get_members(self) -> list[Member]:
        """Get mention candidates in source order."""
        return self._core.services.member.get_members(self._dataset_id)

    async def reload_members(self) -> list[Member]:
        return await self._core.services.member.update_members_cache(self._dataset_id)

    def get_member(self, email: str) -> Member:
        """Resolve a signed-in email to its member profile. Raises NotFoundError if not found."""
        return self._core.services.member.get_member_by_email(self._dataset_id, email)

    # === Notification inbox ===
    async def get_inbox(self, viewer: Member) -> list[Notification]:
        """Get the viewer's newest notifications."""
        return await self._core.services.notification.get_inbox(
            self._dataset_id, viewer.email, self._core.config.inbox_limit
        )

    async def get_unread_count(self, viewer: Member) -> int:
        return await self._core.services.notification.get_unread_count(self._dataset_id, viewer.email)

    async def mark_notification_read(self, viewer: Member, notification_id: str) -> None:
        await self._core.services.notification.mark_read(self._dataset_id, viewer.email, notification_id)

    async def mark_all_notifications_read(self, viewer: Member) -> int:
        return await self._core.services.notification.mark_all_read(self._dataset_id, viewer.email)
