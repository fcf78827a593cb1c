"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

from songcamp.core.modules.comment.models import Comment, CommentDraft, EntityRef, EntityType, ScopeKey
from songcamp.core.modules.member.models import Member
from songcamp.core.modules.notification.models import Notification, NotificationDraft
from songcamp.core.modules.reaction.toggle import toggle_reaction
from songcamp.errors import NotFoundError

DATASET_ID = "test-dataset"


class FakeCollaborator:
    """In-memory collaborator with switchable failures per operation."""

    def __init__(self) -> None:
        self.comments: dict[str, Comment] = {}
        self.notifications: dict[str, Notification] = {}
        self.members: list[Member] = []
        self.fail: set[str] = set()  # Operation names that raise ConnectionError
        self.calls: list[str] = []
        self._ids = count(1)

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail:
            raise ConnectionError(f"{operation} unavailable")

    async def fetch_comments(self, scope: ScopeKey) -> list[Comment]:
        self._check("fetch_comments")
        return [
            c for c in self.comments.values() if c.entity_type == scope.entity_type and c.entity_id == scope.entity_id
        ]

    async def create_comment(self, scope: ScopeKey, draft: CommentDraft) -> Comment:
        self._check("create_comment")
        comment = Comment.from_draft(f"c{next(self._ids)}", draft)
        self.comments[comment.id] = comment
        return comment

    async def update_comment(self, scope: ScopeKey, comment: Comment) -> None:
        self._check("update_comment")
        if comment.id not in self.comments:
            raise NotFoundError
        stored = self.comments[comment.id]
        self.comments[comment.id] = stored.model_copy(update={"text": comment.text, "edited_at": comment.edited_at})

    async def toggle_reaction(self, scope: ScopeKey, comment_id: str, emoji: str, user_email: str) -> Comment:
        self._check("toggle_reaction")
        stored = self.comments[comment_id]
        updated = stored.model_copy(update={"reactions": toggle_reaction(stored.reactions, emoji, user_email)})
        self.comments[comment_id] = updated
        return updated

    async def create_notification(self, scope: ScopeKey, draft: NotificationDraft) -> Notification:
        self._check("create_notification")
        notification = Notification(id=f"n{next(self._ids)}", **draft.model_dump())
        self.notifications[notification.id] = notification
        return notification

    async def create_notifications(self, scope: ScopeKey, drafts: list[NotificationDraft]) -> list[Notification]:
        self._check("create_notifications")
        created = [Notification(id=f"n{next(self._ids)}", **draft.model_dump()) for draft in drafts]
        for notification in created:
            self.notifications[notification.id] = notification
        return created

    async def fetch_notifications(self, dataset_id: str, recipient_email: str) -> list[Notification]:
        self._check("fetch_notifications")
        return [n for n in self.notifications.values() if n.recipient_email == recipient_email]

    async def mark_notifications_read(self, dataset_id: str, notification_ids: list[str]) -> None:
        self._check("mark_notifications_read")
        for notification_id in notification_ids:
            self.notifications[notification_id] = self.notifications[notification_id].model_copy(update={"read": True})

    async def fetch_members(self, dataset_id: str) -> list[Member]:
        self._check("fetch_members")
        return list(self.members)

    def seed(self, comment: Comment) -> Comment:
        self.comments[comment.id] = comment
        return comment


@pytest.fixture
def collaborator():
    return FakeCollaborator()


@pytest.fixture
def alice():
    return Member(name="Alice Wong", email="alice@camp.test")


@pytest.fixture
def bob():
    return Member(name="Bob Dylan", email="bob@camp.test")


@pytest.fixture
def carol():
    return Member(name="Carol King", email="carol@camp.test")


@pytest.fixture
def members(alice, bob, carol):
    return [alice, bob, carol]


@pytest.fixture
def song(bob):
    """Song owned by Bob."""
    return EntityRef(entity_type=EntityType.SONG, entity_id="song-1", title="Midnight Train", owner_email=bob.email)


@pytest.fixture
def scope(song):
    return ScopeKey(dataset_id=DATASET_ID, entity_type=song.entity_type, entity_id=song.entity_id)


@pytest.fixture
def make_comment(song):
    """Build comments on the song with increasing timestamps."""
    base = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    ids = count(1)

    def factory(author: Member, text: str = "Nice", parent_id: str | None = None, **extra) -> Comment:
        number = next(ids)
        return Comment(
            id=extra.pop("id", f"seed-{number}"),
            entity_type=song.entity_type,
            entity_id=song.entity_id,
            parent_id=parent_id,
            author=author.name,
            author_email=author.email,
            text=text,
            timestamp=base + timedelta(minutes=number),
            **extra,
        )

    return factory
