"""Tests for the in-memory comment store."""

import pytest

from songcamp.core.modules.comment.store import CommentStore
from songcamp.errors import NotFoundError


@pytest.fixture
def store(collaborator, scope):
    return CommentStore(collaborator, scope)


@pytest.fixture
def seeded(collaborator, make_comment, alice, bob, carol):
    """Two top-level comments with replies, seeded remotely."""
    first = collaborator.seed(make_comment(alice, "First"))
    second = collaborator.seed(make_comment(bob, "Second"))
    reply_b = collaborator.seed(make_comment(carol, "Reply to first", parent_id=first.id))
    reply_a = collaborator.seed(make_comment(bob, "Reply to second", parent_id=second.id))
    nested = collaborator.seed(make_comment(alice, "Reply to reply", parent_id=reply_b.id))
    return [first, second, reply_b, reply_a, nested]


class TestLoad:
    """Tests for loading from the collaborator."""

    @pytest.mark.asyncio
    async def test_load_replaces_local_list(self, store, seeded, make_comment, alice):
        """Test that load replaces local comments wholesale."""
        store.apply(make_comment(alice, "Local only", id="local-x"))
        await store.load()

        assert [c.id for c in store.comments] == [c.id for c in seeded]
        assert "local-x" not in store
        assert store.loading is False
        assert store.stale is False

    @pytest.mark.asyncio
    async def test_failed_load_keeps_previous_comments(self, store, seeded, collaborator):
        """Test that a failed load keeps the 5 comments already loaded and does not raise."""
        await store.load()
        assert len(store) == 5

        collaborator.fail.add("fetch_comments")
        await store.load()

        assert len(store) == 5
        assert [c.id for c in store.comments] == [c.id for c in seeded]
        assert store.stale is True

    @pytest.mark.asyncio
    async def test_next_successful_load_clears_stale(self, store, seeded, collaborator):
        """Test that a later successful load recovers from a failure."""
        collaborator.fail.add("fetch_comments")
        await store.load()
        assert store.stale is True
        assert len(store) == 0

        collaborator.fail.clear()
        await store.load()
        assert store.stale is False
        assert len(store) == 5

    @pytest.mark.asyncio
    async def test_load_only_includes_scope(self, store, collaborator, make_comment, alice):
        """Test that comments on other entities are not loaded."""
        other = make_comment(alice, "Elsewhere").model_copy(update={"entity_id": "song-2"})
        collaborator.seed(other)
        await store.load()
        assert len(store) == 0


class TestThreading:
    """Tests for tree assembly from flat records."""

    @pytest.mark.asyncio
    async def test_top_level_newest_first(self, store, seeded):
        """Test that top-level comments are sorted by timestamp descending."""
        await store.load()
        first, second = seeded[0], seeded[1]
        assert [c.id for c in store.top_level()] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_replies_in_store_order(self, store, collaborator, make_comment, alice, bob):
        """Test that replies keep store order even when it is not chronological."""
        parent = collaborator.seed(make_comment(alice, "Parent"))
        early = make_comment(bob, "Early", parent_id=parent.id)
        late = make_comment(bob, "Late", parent_id=parent.id)
        collaborator.seed(late)
        collaborator.seed(early)
        await store.load()

        assert [c.id for c in store.replies_of(parent.id)] == [late.id, early.id]

    @pytest.mark.asyncio
    async def test_every_comment_is_top_level_xor_reply(self, store, seeded):
        """Test that top_level and replies_of partition the comments."""
        await store.load()
        top_ids = {c.id for c in store.top_level()}
        reply_ids: list[str] = []
        for comment in store.comments:
            replies = store.replies_of(comment.id)
            assert {r.id for r in replies} == {c.id for c in store.comments if c.parent_id == comment.id}
            reply_ids.extend(r.id for r in replies)

        assert len(reply_ids) == len(set(reply_ids))
        assert top_ids.isdisjoint(reply_ids)
        assert top_ids | set(reply_ids) == {c.id for c in store.comments}

    @pytest.mark.asyncio
    async def test_thread_view(self, store, seeded):
        """Test the read accessor exposed to the view."""
        await store.load()
        view = store.thread()

        assert view.total == 5
        assert [c.id for c in view.top_level] == [seeded[1].id, seeded[0].id]
        assert [c.id for c in view.replies_of(seeded[0].id)] == [seeded[2].id]
        assert [c.id for c in view.replies_of(seeded[2].id)] == [seeded[4].id]
        assert view.replies_of("missing") == []
        assert view.stale is False


class TestApply:
    """Tests for local insertion and replacement."""

    def test_apply_inserts_and_replaces_in_place(self, store, make_comment, alice, bob):
        """Test that apply replaces by id without moving the entry."""
        first = make_comment(alice, "One")
        second = make_comment(bob, "Two")
        store.apply(first)
        store.apply(second)
        store.apply(first.model_copy(update={"text": "One, edited"}))

        assert [c.text for c in store.comments] == ["One, edited", "Two"]

    def test_replace_swaps_placeholder_in_position(self, store, make_comment, alice, bob):
        """Test that a confirmed comment takes the placeholder's place."""
        placeholder = make_comment(alice, "Pending", id="local-1")
        store.apply(placeholder)
        store.apply(make_comment(bob, "After"))
        confirmed = placeholder.model_copy(update={"id": "c99"})

        store.replace("local-1", confirmed)

        assert [c.id for c in store.comments] == ["c99", "seed-2"]
        assert "local-1" not in store

    def test_replace_when_confirmed_row_already_loaded(self, store, make_comment, alice):
        """Test that replace drops the placeholder when a refresh already brought the row."""
        placeholder = make_comment(alice, "Pending", id="local-1")
        confirmed = placeholder.model_copy(update={"id": "c99"})
        store.apply(placeholder)
        store.apply(confirmed)

        store.replace("local-1", confirmed)

        assert [c.id for c in store.comments] == ["c99"]

    def test_get_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.get("nope")
