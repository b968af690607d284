"""
=============================================================================
STATISTICS BLUEPRINT
TG Feedbacks API
=============================================================================

Statistics endpoints (administrators only):
- /stats/general  - overview, category, priority, status stats and recent activity
- /stats/users    - per-user rollup
- /stats/timeline - activity per day, ISO week or month (?period=daily|weekly|monthly)

Every response is recomputed from the current comments; a store failure
aborts the whole response.
"""

import logging

from flask import Blueprint, request, current_app

from services import stats_service
from services.stats_aggregator import RECENT_ACTIVITY_LIMIT
from utils.auth import admin_required, get_current_actor
from utils.errors import ApiError
from utils.helpers import (
    create_success_response,
    create_error_response,
    create_api_error_response,
)

logger = logging.getLogger(__name__)

statistics_bp = Blueprint("statistics", __name__)


@statistics_bp.route("/general", methods=["GET"])
@admin_required
def get_general_statistics():
    """
    General comment statistics.

    <b>Method:</b> GET</br>
    <b>URL:</b> /api/stats/general</br>
    <b>Authorization:</b> Bearer token, role ADMIN</br></br>

    <b>Successful response (HTTP 200):</b></br>
    <pre>{
  "success": true,
  "code": 200,
  "data": {
    "overview": {
      "totalComments": 12,
      "totalUsers": 4,
      "totalSubComments": 30,
      "averageSubCommentsPerPost": 2.5
    },
    "categoryStats": [
      {"category": "BUG_REPORT", "count": 5, "subCommentsCount": 14,
       "averagePriority": 3.2, "percentage": 41.66}
    ],
    "priorityStats": [
      {"priority": "HIGH", "count": 4, "averageSubComments": 3.0, "uniqueCategories": 2}
    ],
    "statusStats": [
      {"status": "OPEN", "count": 7, "averageSubComments": 2.1,
       "priorityDistribution": {"LOW": 1, "MEDIUM": 3, "HIGH": 2, "CRITICAL": 1}}
    ],
    "recentActivity": [
      {"id": 12, "title": "Export fails", "category": "BUG_REPORT", "status": "OPEN",
       "priority": "HIGH", "updatedAt": "2025-10-21T21:34:55", "authorName": "Alice",
       "subCommentsCount": 3}
    ]
  }
}</pre>
    """
    try:
        recent_limit = current_app.config.get(
            "RECENT_ACTIVITY_LIMIT", RECENT_ACTIVITY_LIMIT
        )
        stats = stats_service.get_general_stats(
            get_current_actor(), recent_limit=recent_limit
        )
        return create_success_response(stats)
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        logger.error(f"❌ Failed to generate general statistics: {e}", exc_info=True)
        return create_error_response("Failed to retrieve general statistics", 500)


@statistics_bp.route("/users", methods=["GET"])
@admin_required
def get_user_statistics():
    """Comments, sub-comments, category spread and average priority per author"""
    try:
        return create_success_response(stats_service.get_user_stats(get_current_actor()))
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        logger.error(f"❌ Failed to generate user statistics: {e}", exc_info=True)
        return create_error_response("Failed to retrieve user statistics", 500)


@statistics_bp.route("/timeline", methods=["GET"])
@admin_required
def get_timeline_statistics():
    """
    Activity over time

    Query params:
        period: str - daily (default), weekly or monthly

    Returns:
        JSON: [{period, comments, subComments, uniqueUsers, uniqueCategories}]
        sorted by period ascending
    """
    try:
        period = request.args.get("period")
        timeline = stats_service.get_time_series_stats(get_current_actor(), period)
        logger.info(f"✅ Generated {len(timeline)} timeline buckets ({period or 'daily'})")
        return create_success_response(timeline)
    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        logger.error(f"❌ Failed to retrieve timeline statistics: {e}", exc_info=True)
        return create_error_response("Failed to retrieve timeline statistics", 500)
