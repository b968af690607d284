"""
Statistics operations, admin only.
The role check runs before the store is touched.
"""

import logging

from models.store import CommentStore
from services.access_policy import require_admin
from services.stats_aggregator import (
    PERIOD_DAILY,
    RECENT_ACTIVITY_LIMIT,
    TIME_SERIES_PERIODS,
    general_stats,
    time_series,
    user_stats,
)
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


def get_general_stats(actor, store=None, recent_limit=RECENT_ACTIVITY_LIMIT):
    require_admin(actor)
    store = store or CommentStore()

    total_users = store.count_users()
    stats = store.aggregate_comments(
        lambda comments: general_stats(comments, total_users, recent_limit)
    )

    logger.info(
        f"📊 General statistics generated: {stats['overview']['totalComments']} comments"
    )
    return stats


def get_user_stats(actor, store=None):
    require_admin(actor)
    store = store or CommentStore()
    return store.aggregate_comments(user_stats)


def get_time_series_stats(actor, period=None, store=None):
    require_admin(actor)

    period = period or PERIOD_DAILY
    if period not in TIME_SERIES_PERIODS:
        raise ValidationError(
            "Validation failed",
            {"period": f"Period must be one of: {', '.join(TIME_SERIES_PERIODS)}"},
        )

    store = store or CommentStore()
    return store.aggregate_comments(lambda comments: time_series(comments, period))
