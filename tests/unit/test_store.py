"""
Tests for the SQLAlchemy-backed comment store on in-memory SQLite.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from models.database import db, Comments, SubComments, Users
from models.store import CommentStore, store_operation
from services.access_policy import VisibilityFilter
from utils.errors import StoreError


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def store(ctx):
    return CommentStore()


def make_user(store, name, email):
    user = Users(name=name, email=email)
    user.set_password("secret123")
    return store.save_user(user)


def make_comment(store, user, created_at, **overrides):
    values = {
        "title": "Export fails",
        "description": "CSV export returns 500",
        "record_id": "rec-42",
        "user_id": user.id,
        "created_at": created_at,
        "updated_at": created_at,
    }
    values.update(overrides)
    return store.save_comment(Comments(**values))


class TestComments:
    def test_find_comments_newest_first_and_visibility(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        bob = make_user(store, "Bob", "bob@example.com")
        base = datetime(2024, 1, 1)
        first = make_comment(store, alice, base)
        second = make_comment(store, bob, base + timedelta(hours=1))
        third = make_comment(store, alice, base + timedelta(hours=2), status="RESOLVED")

        everything = store.find_comments(VisibilityFilter())
        mine = store.find_comments(VisibilityFilter(owner_id=alice.id))
        resolved = store.find_comments(VisibilityFilter(), status="RESOLVED")

        assert [c.id for c in everything] == [third.id, second.id, first.id]
        assert [c.id for c in mine] == [third.id, first.id]
        assert [c.id for c in resolved] == [third.id]

    def test_defaults_applied_on_insert(self, store):
        alice = make_user(store, "Alice", "alice@example.com")

        comment = make_comment(store, alice, datetime(2024, 1, 1))

        assert comment.category == "GENERAL_FEEDBACK"
        assert comment.status == "OPEN"
        assert comment.priority == "MEDIUM"
        assert comment.version == 1

    def test_sub_comment_order_survives_reload(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        comment = make_comment(store, alice, datetime(2024, 1, 1))
        now = datetime.utcnow()
        for content in ("first", "second", "third"):
            comment.sub_comments.append(
                SubComments(content=content, user_id=alice.id, created_at=now, updated_at=now)
            )
        store.save_comment(comment)
        comment_id = comment.id
        db.session.expunge_all()

        reloaded = store.find_comment_by_id(comment_id)

        assert [s.content for s in reloaded.sub_comments] == ["first", "second", "third"]
        assert [s.position for s in reloaded.sub_comments] == [0, 1, 2]

    def test_delete_removes_sub_comments(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        comment = make_comment(store, alice, datetime(2024, 1, 1))
        now = datetime.utcnow()
        for content in ("a", "b", "c"):
            comment.sub_comments.append(
                SubComments(content=content, user_id=alice.id, created_at=now, updated_at=now)
            )
        store.save_comment(comment)
        comment_id = comment.id

        store.delete_comment(comment)

        assert store.find_comment_by_id(comment_id) is None
        assert SubComments.query.filter_by(comment_id=comment_id).count() == 0

    def test_concurrent_modification_raises_store_error(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        comment = make_comment(store, alice, datetime(2024, 1, 1))
        loaded = store.find_comment_by_id(comment.id)

        # another writer bumps the version behind this session's back
        db.session.execute(
            text("UPDATE comments SET version = version + 1 WHERE id = :id"),
            {"id": loaded.id},
        )
        loaded.title = "Changed"

        with pytest.raises(StoreError, match="modified concurrently"):
            store.save_comment(loaded)


class TestSnapshot:
    def test_snapshot_counts_sub_comments_and_joins_author(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        with_replies = make_comment(store, alice, datetime(2024, 1, 1), priority="HIGH")
        make_comment(store, alice, datetime(2024, 1, 2))
        now = datetime.utcnow()
        for content in ("a", "b"):
            with_replies.sub_comments.append(
                SubComments(content=content, user_id=alice.id, created_at=now, updated_at=now)
            )
        store.save_comment(with_replies)

        snapshots = {s.id: s for s in store.load_snapshot()}

        assert snapshots[with_replies.id].sub_comments_count == 2
        assert snapshots[with_replies.id].priority == "HIGH"
        assert snapshots[with_replies.id].author_name == "Alice"
        assert sum(s.sub_comments_count for s in snapshots.values()) == 2

    def test_aggregate_comments_runs_pipeline(self, store):
        alice = make_user(store, "Alice", "alice@example.com")
        make_comment(store, alice, datetime(2024, 1, 1))

        assert store.aggregate_comments(len) == 1


class TestUsers:
    def test_find_user_by_email_is_case_insensitive(self, store):
        alice = make_user(store, "Alice", "alice@example.com")

        assert store.find_user_by_email("  ALICE@example.COM ").id == alice.id
        assert store.find_user_by_email("") is None
        assert store.count_users() == 1
        assert store.find_user_by_id(alice.id).name == "Alice"


class TestStoreOperation:
    def test_sqlalchemy_errors_become_opaque_store_errors(self, ctx):
        @store_operation("testing")
        def failing():
            raise OperationalError("SELECT 1", {}, Exception("database is gone"))

        with pytest.raises(StoreError) as exc_info:
            failing()

        assert exc_info.value.code == 500
        assert "database is gone" not in exc_info.value.message
