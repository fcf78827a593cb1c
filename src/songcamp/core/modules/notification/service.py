import asyncio

import structlog

from songcamp.core.core import Service
from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.comment.models import ScopeKey
from songcamp.core.modules.notification.fanout import compute_fanout
from songcamp.core.modules.notification.models import FanoutTrigger, Notification, NotificationDraft
from songcamp.errors import NotFoundError, NotificationDeliveryError

logger = structlog.get_logger(__name__)

DEFAULT_INBOX_LIMIT = 50


class NotificationService(Service):
    """Fans out comment activity to recipients and serves the notification inbox."""

    def __init__(self, collaborator: Collaborator) -> None:
        super().__init__(collaborator)
        self._dispatch_tasks: set[asyncio.Task[None]] = set()

    async def on_stop(self) -> None:
        await self.wait_idle()

    def dispatch(self, scope: ScopeKey, trigger: FanoutTrigger) -> None:
        """Compute and write the notifications for a completed action in the background.

        Delivery is best-effort: failures are logged and never reach the
        caller, and the comment or reaction that triggered them stays as is.
        """
        task = asyncio.create_task(self._dispatch_async(scope, trigger))
        self._dispatch_tasks.add(task)
        task.add_done_callback(self._dispatch_tasks.discard)

    async def wait_idle(self) -> None:
        """Wait until every dispatched fan-out has finished."""
        while self._dispatch_tasks:
            await asyncio.gather(*self._dispatch_tasks)

    async def _dispatch_async(self, scope: ScopeKey, trigger: FanoutTrigger) -> None:
        try:
            drafts = compute_fanout(trigger)
            if not drafts:
                return
            notifications = await self._deliver(scope, drafts)
            logger.info(
                "notifications_sent",
                kind=trigger.kind,
                comment_id=trigger.comment.id,
                recipients=[n.recipient_email for n in notifications],
            )
        except NotificationDeliveryError as e:
            logger.warning("notification_delivery_failed", kind=trigger.kind, comment_id=trigger.comment.id, error=str(e))
        except Exception as e:
            logger.exception("notification_error", kind=trigger.kind, comment_id=trigger.comment.id, error=str(e))

    async def _deliver(self, scope: ScopeKey, drafts: list[NotificationDraft]) -> list[Notification]:
        try:
            if len(drafts) == 1:
                return [await self.collaborator.create_notification(scope, drafts[0])]
            return await self.collaborator.create_notifications(scope, drafts)
        except Exception as e:
            raise NotificationDeliveryError(f"Failed to write {len(drafts)} notification(s): {e}") from e

    async def get_inbox(self, dataset_id: str, recipient_email: str, limit: int = DEFAULT_INBOX_LIMIT) -> list[Notification]:
        """Get the newest notifications for a recipient."""
        notifications = await self.collaborator.fetch_notifications(dataset_id, recipient_email)
        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications[:limit]

    async def get_unread_count(self, dataset_id: str, recipient_email: str) -> int:
        notifications = await self.collaborator.fetch_notifications(dataset_id, recipient_email)
        return sum(1 for n in notifications if not n.read)

    async def mark_read(self, dataset_id: str, recipient_email: str, notification_id: str) -> None:
        """Mark one of the recipient's notifications as read."""
        notifications = await self.collaborator.fetch_notifications(dataset_id, recipient_email)
        notification = next((n for n in notifications if n.id == notification_id), None)
        if notification is None:
            raise NotFoundError(f"Notification '{notification_id}' not found")
        if not notification.read:
            await self.collaborator.mark_notifications_read(dataset_id, [notification_id])

    async def mark_all_read(self, dataset_id: str, recipient_email: str) -> int:
        """Mark every unread notification of the recipient as read and return how many changed."""
        notifications = await self.collaborator.fetch_notifications(dataset_id, recipient_email)
        unread_ids = [n.id for n in notifications if not n.read]
        if unread_ids:
            await self.collaborator.mark_notifications_read(dataset_id, unread_ids)
        logger.debug("notifications_marked_read", recipient_email=recipient_email, count=len(unread_ids))
        return len(unread_ids)
