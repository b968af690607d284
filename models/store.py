"""
Comment store
=============
Persistence boundary used by the comment and statistics services.

Every SQLAlchemy failure is rolled back, logged and re-raised as StoreError;
nothing here retries. Sub-comment mutations go through
``find_comment_by_id(..., for_update=True)`` followed by ``save_comment`` so the
whole aggregate is written in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from typing import Callable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from models.database import db, Comments, SubComments, Users
from utils.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommentSnapshot:
    """Read-only view of a comment joined with its author, fed to aggregations"""

    id: int
    title: str
    category: str
    status: str
    priority: str
    user_id: int
    author_name: Optional[str]
    author_email: Optional[str]
    sub_comments_count: int
    created_at: datetime
    updated_at: datetime


def store_operation(action):
    """Translate SQLAlchemy failures of a store method into StoreError"""

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except StaleDataError as e:
                db.session.rollback()
                logger.error(f"❌ Concurrent modification while {action}: {e}")
                raise StoreError(
                    "Comment was modified concurrently, request was not applied"
                ) from e
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"❌ Store failure while {action}: {e}", exc_info=True)
                raise StoreError() from e

        return decorated_function

    return decorator


class CommentStore:
    """Comments and users backed by the Flask-SQLAlchemy session"""

    # =====================================================================
    # COMMENTS
    # =====================================================================

    @store_operation("listing comments")
    def find_comments(self, visibility, category=None, status=None) -> List[Comments]:
        """Comments matching the visibility filter, newest first.

        The owner restriction is part of the SQL query so rows the actor may
        not see never leave the database.
        """
        query = Comments.query
        criterion = visibility.criterion(Comments.user_id)
        if criterion is not None:
            query = query.filter(criterion)
        if category:
            query = query.filter(Comments.category == category)
        if status:
            query = query.filter(Comments.status == status)

        return query.order_by(Comments.created_at.desc(), Comments.id.desc()).all()

    @store_operation("loading comment")
    def find_comment_by_id(self, comment_id, for_update=False) -> Optional[Comments]:
        query = Comments.query.filter(Comments.id == comment_id)
        if for_update:
            query = query.with_for_update(of=Comments).populate_existing()
        return query.first()

    @store_operation("saving comment")
    def save_comment(self, comment):
        db.session.add(comment)
        db.session.commit()
        return comment

    @store_operation("deleting comment")
    def delete_comment(self, comment):
        # sub-comments go with the parent through the delete-orphan cascade
        db.session.delete(comment)
        db.session.commit()

    @store_operation("aggregating comments")
    def load_snapshot(self) -> List[CommentSnapshot]:
        sub_counts = (
            db.session.query(
                SubComments.comment_id.label("comment_id"),
                func.count(SubComments.id).label("total"),
            )
            .group_by(SubComments.comment_id)
            .subquery()
        )

        rows = (
            db.session.query(
                Comments.id,
                Comments.title,
                Comments.category,
                Comments.status,
                Comments.priority,
                Comments.user_id,
                Users.name,
                Users.email,
                func.coalesce(sub_counts.c.total, 0),
                Comments.created_at,
                Comments.updated_at,
            )
            .outerjoin(Users, Users.id == Comments.user_id)
            .outerjoin(sub_counts, sub_counts.c.comment_id == Comments.id)
            .all()
        )

        return [
            CommentSnapshot(
                id=row[0],
                title=row[1],
                category=row[2],
                status=row[3],
                priority=row[4],
                user_id=row[5],
                author_name=row[6],
                author_email=row[7],
                sub_comments_count=int(row[8] or 0),
                created_at=row[9],
                updated_at=row[10],
            )
            for row in rows
        ]

    def aggregate_comments(self, pipeline: Callable[[Sequence[CommentSnapshot]], object]):
        """Run a pure reduction over a fresh snapshot of every comment"""
        return pipeline(self.load_snapshot())

    def rollback(self):
        db.session.rollback()

    # =====================================================================
    # USERS
    # =====================================================================

    @store_operation("loading user")
    def find_user_by_id(self, user_id) -> Optional[Users]:
        return db.session.get(Users, user_id)

    @store_operation("loading user")
    def find_user_by_email(self, email) -> Optional[Users]:
        if not email:
            return None
        return Users.query.filter(
            func.lower(Users.email) == email.strip().lower()
        ).first()

    @store_operation("saving user")
    def save_user(self, user):
        db.session.add(user)
        db.session.commit()
        return user

    @store_operation("counting users")
    def count_users(self) -> int:
        return Users.query.count()
