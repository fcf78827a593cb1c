from typing import Any

import structlog
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from songcamp.core.modules.comment.models import Comment, CommentDraft, ScopeKey
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.notification.models import Notification, NotificationDraft
from songcamp.errors import NotFoundError
from songcamp.utils import new_row_id

logger = structlog.get_logger(__name__)


class MongoCollaborator:
    """Collaborator backed by MongoDB, one database per dataset."""

    def __init__(self, client: AsyncMongoClient[dict[str, Any]]) -> None:
        self._client = client

    def _collection(self, dataset_id: str, name: str) -> AsyncCollection[dict[str, Any]]:
        return self._client.get_database(dataset_id).get_collection(name)

    async def ensure_indexes(self, dataset_id: str) -> None:
        """Create indexes for scope and inbox lookups."""
        comments = self._collection(dataset_id, "comments")
        await comments.create_index([("entity_type", 1), ("entity_id", 1)])
        notifications = self._collection(dataset_id, "notifications")
        await notifications.create_index([("recipient_email", 1), ("created_at", -1)])
        members = self._collection(dataset_id, "members")
        await members.create_index([("email", 1)], unique=True)
        logger.debug("collaborator_indexes_ready", dataset_id=dataset_id)

    async def fetch_comments(self, scope: ScopeKey) -> list[Comment]:
        """Get all comments of the scope in natural (append) order."""
        cursor = self._collection(scope.dataset_id, "comments").find(
            {"entity_type": scope.entity_type, "entity_id": scope.entity_id}
        )
        return await Comment.list_cursor(cursor)

    async def create_comment(self, scope: ScopeKey, draft: CommentDraft) -> Comment:
        comment = Comment.from_draft(new_row_id(), draft)
        await self._collection(scope.dataset_id, "comments").insert_one(comment.to_row())
        return comment

    async def update_comment(self, scope: ScopeKey, comment: Comment) -> None:
        """Write the mutable text fields only, leaving reactions to toggle_reaction."""
        result = await self._collection(scope.dataset_id, "comments").update_one(
            {"_id": comment.id}, {"$set": {"text": comment.text, "edited_at": comment.edited_at}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"Comment '{comment.id}' not found")

    async def toggle_reaction(self, scope: ScopeKey, comment_id: str, emoji: str, user_email: str) -> Comment:
        collection = self._collection(scope.dataset_id, "comments")
        doc = await collection.find_one({"_id": comment_id})
        if doc is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")

        path = f"reactions.{emoji}"
        if user_email in doc.get("reactions", {}).get(emoji, []):
            update = {"$pull": {path: user_email}}
        else:
            update = {"$addToSet": {path: user_email}}
        doc = await collection.find_one_and_update({"_id": comment_id}, update, return_document=ReturnDocument.AFTER)
        if doc is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")

        # Drop the emoji key once nobody reacts with it anymore
        if not doc.get("reactions", {}).get(emoji):
            emptied = await collection.find_one_and_update(
                {"_id": comment_id, path: {"$size": 0}}, {"$unset": {path: ""}}, return_document=ReturnDocument.AFTER
            )
            doc = emptied or doc

        return Comment.model_validate(doc)

    async def create_notification(self, scope: ScopeKey, draft: NotificationDraft) -> Notification:
        notification = Notification(id=new_row_id(), **draft.model_dump())
        await self._collection(scope.dataset_id, "notifications").insert_one(notification.to_row())
        return notification

    async def create_notifications(self, scope: ScopeKey, drafts: list[NotificationDraft]) -> list[Notification]:
        notifications = [Notification(id=new_row_id(), **draft.model_dump()) for draft in drafts]
        if notifications:
            await self._collection(scope.dataset_id, "notifications").insert_many([n.to_row() for n in notifications])
        return notifications

    async def fetch_notifications(self, dataset_id: str, recipient_email: str) -> list[Notification]:
        cursor = self._collection(dataset_id, "notifications").find({"recipient_email": recipient_email}).sort("created_at", -1)
        return await Notification.list_cursor(cursor)

    async def mark_notifications_read(self, dataset_id: str, notification_ids: list[str]) -> None:
        await self._collection(dataset_id, "notifications").update_many(
            {"_id": {"$in": notification_ids}}, {"$set": {"read": True}}
        )

    async def fetch_members(self, dataset_id: str) -> list[Member]:
        cursor = self._collection(dataset_id, "members").find()
        return [Member.model_validate(doc) async for doc in cursor]
