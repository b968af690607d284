"""
Comment operations
==================
Every operation runs validate -> load -> authorize -> mutate -> persist, so a
validation or policy rejection never leaves a partial write behind.
"""

import logging
from datetime import datetime

from models.database import Comments, SubComments
from models.store import CommentStore
from services.access_policy import (
    Operation,
    authorize,
    can_access,
    require_admin,
    visibility_filter,
)
from services.stats_aggregator import category_issue_stats
from utils.errors import ApiError, ForbiddenError, NotFoundError
from utils.helpers import (
    validate_comment_payload,
    validate_list_filters,
    validate_sub_comment_content,
)

logger = logging.getLogger(__name__)


def _authorize(actor, operation, resource, label):
    try:
        authorize(actor, operation, resource)
    except ForbiddenError:
        logger.warning(
            f"Access denied: user {actor.user_id} (role: {actor.role}) "
            f"may not {operation} {label} {resource.id} (owner: {resource.user_id})"
        )
        raise


def _load_comment(store, comment_id, for_update=False):
    comment = store.find_comment_by_id(comment_id, for_update=for_update)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def _load_sub_comment(comment, sub_comment_id):
    sub_comment = comment.find_sub_comment(sub_comment_id)
    if sub_comment is None:
        raise NotFoundError("Sub-comment not found")
    return sub_comment


# ============================================================================
# COMMENTS
# ============================================================================


def create_comment(actor, data, store=None):
    """Create a comment owned by ``actor``; a client-supplied owner is ignored"""
    store = store or CommentStore()
    fields = validate_comment_payload(data)

    now = datetime.utcnow()
    comment = Comments(user_id=actor.user_id, created_at=now, updated_at=now, **fields)
    store.save_comment(comment)

    logger.info(f"✅ Comment {comment.id} created by user {actor.user_id}")
    return comment


def list_comments(actor, filters=None, store=None):
    store = store or CommentStore()
    filters = validate_list_filters(filters or {})
    return store.find_comments(visibility_filter(actor), **filters)


def get_comment(actor, comment_id, store=None):
    store = store or CommentStore()
    comment = _load_comment(store, comment_id)
    _authorize(actor, Operation.READ, comment, "comment")
    return comment


def update_comment(actor, comment_id, patch, store=None):
    store = store or CommentStore()
    fields = validate_comment_payload(patch, partial=True)

    try:
        comment = _load_comment(store, comment_id, for_update=True)
        _authorize(actor, Operation.UPDATE, comment, "comment")
    except ApiError:
        store.rollback()
        raise

    for name, value in fields.items():
        setattr(comment, name, value)
    comment.updated_at = datetime.utcnow()
    store.save_comment(comment)

    logger.info(
        f"Comment {comment_id} updated by user {actor.user_id}: {sorted(fields)}"
    )
    return comment


def delete_comment(actor, comment_id, store=None):
    store = store or CommentStore()

    try:
        comment = _load_comment(store, comment_id, for_update=True)
        _authorize(actor, Operation.DELETE, comment, "comment")
    except ApiError:
        store.rollback()
        raise

    sub_comments_count = len(comment.sub_comments)
    store.delete_comment(comment)

    logger.info(
        f"Comment {comment_id} deleted by user {actor.user_id} "
        f"with {sub_comments_count} sub-comments"
    )


def get_comment_stats(actor, store=None):
    """Open/resolved issue counts per category, admin only"""
    require_admin(actor)
    store = store or CommentStore()
    return store.aggregate_comments(category_issue_stats)


# ============================================================================
# SUB-COMMENTS
# ============================================================================


def add_sub_comment(actor, comment_id, data, store=None):
    """Append a reply; any authenticated actor may reply to any comment"""
    store = store or CommentStore()
    content = validate_sub_comment_content(data)

    try:
        comment = _load_comment(store, comment_id, for_update=True)
        if not can_access(actor, Operation.CREATE, comment):
            raise ForbiddenError("Not authorized")
    except ApiError:
        store.rollback()
        raise

    now = datetime.utcnow()
    sub_comment = SubComments(
        content=content, user_id=actor.user_id, created_at=now, updated_at=now
    )
    comment.sub_comments.append(sub_comment)
    comment.updated_at = now
    store.save_comment(comment)

    logger.info(
        f"✅ Sub-comment {sub_comment.id} added to comment {comment_id} "
        f"by user {actor.user_id}"
    )
    return comment, sub_comment


def update_sub_comment(actor, comment_id, sub_comment_id, data, store=None):
    """Edit a reply; only its own author or an ADMIN may do so"""
    store = store or CommentStore()
    content = validate_sub_comment_content(data)

    try:
        comment = _load_comment(store, comment_id, for_update=True)
        sub_comment = _load_sub_comment(comment, sub_comment_id)
        _authorize(actor, Operation.UPDATE, sub_comment, "sub-comment")
    except ApiError:
        store.rollback()
        raise

    now = datetime.utcnow()
    sub_comment.content = content
    sub_comment.updated_at = now
    comment.updated_at = now
    store.save_comment(comment)

    logger.info(
        f"Sub-comment {sub_comment_id} of comment {comment_id} "
        f"updated by user {actor.user_id}"
    )
    return comment, sub_comment


def delete_sub_comment(actor, comment_id, sub_comment_id, store=None):
    store = store or CommentStore()

    try:
        comment = _load_comment(store, comment_id, for_update=True)
        sub_comment = _load_sub_comment(comment, sub_comment_id)
        _authorize(actor, Operation.DELETE, sub_comment, "sub-comment")
    except ApiError:
        store.rollback()
        raise

    comment.sub_comments.remove(sub_comment)
    comment.updated_at = datetime.utcnow()
    store.save_comment(comment)

    logger.info(
        f"Sub-comment {sub_comment_id} removed from comment {comment_id} "
        f"by user {actor.user_id}"
    )
    return comment
