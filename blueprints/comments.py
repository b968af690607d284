"""
Comments Blueprint - Feedback comments and sub-comments
=======================================================
Routes are thin: parse the request, call services.comment_service, render
the standard envelope. Authorization lives in services.access_policy.
"""

import logging

from flask import Blueprint, request

from models.database import db
from services import comment_service
from utils.auth import login_required, get_current_actor
from utils.errors import ApiError
from utils.helpers import (
    create_success_response,
    create_error_response,
    create_api_error_response,
    get_json_body,
)

logger = logging.getLogger(__name__)
comments_bp = Blueprint("comments", __name__)


def _unexpected_error(action, error):
    db.session.rollback()
    logger.error(f"❌ Failed to {action}: {error}", exc_info=True)
    return create_error_response(f"Failed to {action}", 500)


# ============================================================================
# CREATE / LIST
# ============================================================================
@comments_bp.route("/", methods=["POST"])
@comments_bp.route("", methods=["POST"])
@login_required
def create_comment():
    """
    Create a feedback comment owned by the authenticated user.

    <b>Method:</b> POST</br>
    <b>URL:</b> /api/comments</br>
    <b>Authorization:</b> Bearer token</br></br>

    <b>Request body:</b></br>
    - <code>title</code> [STRING] - required, up to 200 characters</br>
    - <code>description</code> [STRING] - required</br>
    - <code>recordId</code> [STRING] - required, the record being discussed</br>
    - <code>category</code> [STRING] - GENERAL_FEEDBACK (default), FEATURE_REQUEST, INTEGRATION, BUG_REPORT</br>
    - <code>status</code> [STRING] - OPEN (default), IN_PROGRESS, RESOLVED, CLOSED</br>
    - <code>priority</code> [STRING] - LOW, MEDIUM (default), HIGH, CRITICAL</br>
    - <code>metadata</code> [OBJECT] - optional browser / os / version</br></br>

    <code>
    curl -X POST "http://localhost:5000/api/comments" \\
      -H "Authorization: Bearer YOUR_TOKEN" -H "Content-Type: application/json" \\
      -d '{"title": "Export fails", "description": "CSV export returns 500", "recordId": "rec-42", "category": "BUG_REPORT", "priority": "HIGH"}'
    </code></br></br>

    Status codes: 201 created, 400 validation error, 401 not authenticated.
    """
    try:
        comment = comment_service.create_comment(get_current_actor(), get_json_body())
        return create_success_response(comment.to_dict(), 201)
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error("create comment", e)


@comments_bp.route("/", methods=["GET"])
@comments_bp.route("", methods=["GET"])
@login_required
def list_comments():
    """
    List comments visible to the caller, newest first.

    Administrators see every comment, other users only their own.
    Query params: <code>category</code>, <code>status</code>.
    """
    try:
        comments = comment_service.list_comments(get_current_actor(), request.args)
        return create_success_response(
            [comment.to_dict() for comment in comments], meta={"total": len(comments)}
        )
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error("retrieve comments", e)


@comments_bp.route("/stats", methods=["GET"])
@login_required
def get_statistics():
    """Per-category counts of open and resolved issues (ADMIN only)"""
    try:
        stats = comment_service.get_comment_stats(get_current_actor())
        return create_success_response(stats)
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error("get comment statistics", e)


# ============================================================================
# SINGLE COMMENT
# ============================================================================
@comments_bp.route("/<int:comment_id>", methods=["GET"])
@login_required
def get_comment(comment_id):
    """
    Get one comment with its sub-comments and authors.

    404 when the comment does not exist, 403 when it belongs to someone else
    and the caller is not an administrator.
    """
    try:
        comment = comment_service.get_comment(get_current_actor(), comment_id)
        return create_success_response(comment.to_dict())
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"retrieve comment {comment_id}", e)


@comments_bp.route("/<int:comment_id>", methods=["PUT", "PATCH"])
@login_required
def update_comment(comment_id):
    """
    Update a comment (owner or ADMIN).

    Accepts any subset of title, description, recordId, category, status,
    priority and metadata. Ownership cannot be changed.
    """
    try:
        comment = comment_service.update_comment(
            get_current_actor(), comment_id, get_json_body()
        )
        return create_success_response(comment.to_dict())
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"update comment {comment_id}", e)


@comments_bp.route("/<int:comment_id>", methods=["DELETE"])
@login_required
def delete_comment(comment_id):
    """Delete a comment together with all of its sub-comments"""
    try:
        comment_service.delete_comment(get_current_actor(), comment_id)
        return create_success_response({"message": "Comment deleted successfully"})
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"delete comment {comment_id}", e)


# ============================================================================
# SUB-COMMENTS
# ============================================================================
@comments_bp.route("/<int:comment_id>/subcomments", methods=["POST"])
@login_required
def add_sub_comment(comment_id):
    """
    Reply to a comment. Any authenticated user may reply.

    <code>
    curl -X POST "http://localhost:5000/api/comments/7/subcomments" \\
      -H "Authorization: Bearer YOUR_TOKEN" -H "Content-Type: application/json" \\
      -d '{"content": "Reproduced on Firefox too"}'
    </code>
    """
    try:
        comment, _ = comment_service.add_sub_comment(
            get_current_actor(), comment_id, get_json_body()
        )
        return create_success_response(comment.to_dict(), 201)
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"add sub-comment to comment {comment_id}", e)


@comments_bp.route(
    "/<int:comment_id>/subcomments/<int:sub_comment_id>", methods=["PUT", "PATCH"]
)
@login_required
def update_sub_comment(comment_id, sub_comment_id):
    """
    Edit a sub-comment. Only its author or an administrator may edit it;
    owning the parent comment is not enough.
    """
    try:
        comment, _ = comment_service.update_sub_comment(
            get_current_actor(), comment_id, sub_comment_id, get_json_body()
        )
        return create_success_response(comment.to_dict())
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"update sub-comment {sub_comment_id}", e)


@comments_bp.route(
    "/<int:comment_id>/subcomments/<int:sub_comment_id>", methods=["DELETE"]
)
@login_required
def delete_sub_comment(comment_id, sub_comment_id):
    try:
        comment_service.delete_sub_comment(
            get_current_actor(), comment_id, sub_comment_id
        )
        return create_success_response({"message": "Sub-comment deleted successfully"})
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        return _unexpected_error(f"delete sub-comment {sub_comment_id}", e)
