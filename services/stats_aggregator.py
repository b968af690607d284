"""
Statistics aggregation over comment snapshots
=============================================
Pure reductions: every function takes the full sequence of comments (anything
exposing the CommentSnapshot attributes) and returns JSON-ready structures.
Each request recomputes from scratch; nothing is cached.
"""

from collections import OrderedDict
from typing import Callable, Dict, List, Sequence

from models.database import COMMENT_CATEGORIES, COMMENT_PRIORITIES, COMMENT_STATUSES

# =============================================================================
# PRIORITY WEIGHTS
# =============================================================================

PRIORITY_WEIGHTS = {"LOW": 1, "MEDIUM": 2, "HIGH": 3, "CRITICAL": 4}

# Values outside the enumeration count as LOW instead of being excluded
DEFAULT_PRIORITY_WEIGHT = 1

RECENT_ACTIVITY_LIMIT = 10

PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
TIME_SERIES_PERIODS = (PERIOD_DAILY, PERIOD_WEEKLY, PERIOD_MONTHLY)


def priority_weight(priority) -> int:
    return PRIORITY_WEIGHTS.get(priority, DEFAULT_PRIORITY_WEIGHT)


def _mean(values) -> float:
    values = list(values)
    if not values:
        return 0
    return sum(values) / len(values)


def _isoformat(value):
    return value.isoformat() if value else None


def _group_by(comments, key: Callable, order=()) -> "OrderedDict[str, list]":
    """Group comments by ``key``; known values first in ``order``, then the rest sorted"""
    groups = {}
    for comment in comments:
        groups.setdefault(key(comment), []).append(comment)

    ordered = OrderedDict()
    for value in order:
        if value in groups:
            ordered[value] = groups.pop(value)
    for value in sorted(groups, key=str):
        ordered[value] = groups[value]
    return ordered


# =============================================================================
# OVERVIEW
# =============================================================================


def overview(comments: Sequence, total_users: int) -> Dict:
    total_comments = len(comments)
    total_sub_comments = sum(c.sub_comments_count for c in comments)

    return {
        "totalComments": total_comments,
        "totalUsers": total_users,
        "totalSubComments": total_sub_comments,
        "averageSubCommentsPerPost": (
            total_sub_comments / total_comments if total_comments else 0
        ),
    }


# =============================================================================
# GROUPED STATISTICS
# =============================================================================


def category_stats(comments: Sequence) -> List[Dict]:
    groups = _group_by(comments, lambda c: c.category, COMMENT_CATEGORIES)
    # denominator is the grand total across every category group
    total = sum(len(group) for group in groups.values())

    return [
        {
            "category": category,
            "count": len(group),
            "subCommentsCount": sum(c.sub_comments_count for c in group),
            "averagePriority": _mean(priority_weight(c.priority) for c in group),
            "percentage": 100.0 * len(group) / total,
        }
        for category, group in groups.items()
    ]


def priority_stats(comments: Sequence) -> List[Dict]:
    groups = _group_by(comments, lambda c: c.priority, COMMENT_PRIORITIES)

    return [
        {
            "priority": priority,
            "count": len(group),
            "averageSubComments": _mean(c.sub_comments_count for c in group),
            "uniqueCategories": len({c.category for c in group}),
        }
        for priority, group in groups.items()
    ]


def status_stats(comments: Sequence) -> List[Dict]:
    groups = _group_by(comments, lambda c: c.status, COMMENT_STATUSES)

    results = []
    for status, group in groups.items():
        distribution = OrderedDict((priority, 0) for priority in COMMENT_PRIORITIES)
        for comment in group:
            if comment.priority in distribution:
                distribution[comment.priority] += 1

        results.append(
            {
                "status": status,
                "count": len(group),
                "averageSubComments": _mean(c.sub_comments_count for c in group),
                "priorityDistribution": dict(distribution),
            }
        )
    return results


def category_issue_stats(comments: Sequence) -> List[Dict]:
    """Per-category count of open and resolved issues"""
    groups = _group_by(comments, lambda c: c.category, COMMENT_CATEGORIES)

    return [
        {
            "category": category,
            "count": len(group),
            "openIssues": sum(1 for c in group if c.status == "OPEN"),
            "resolvedIssues": sum(1 for c in group if c.status == "RESOLVED"),
            "totalSubComments": sum(c.sub_comments_count for c in group),
        }
        for category, group in groups.items()
    ]


# =============================================================================
# RECENT ACTIVITY
# =============================================================================


def recent_activity(comments: Sequence, limit: int = RECENT_ACTIVITY_LIMIT) -> List[Dict]:
    ordered = sorted(comments, key=lambda c: c.id)
    # stable sort keeps ascending id order between equal timestamps
    ordered.sort(key=lambda c: c.updated_at, reverse=True)

    return [
        {
            "id": c.id,
            "title": c.title,
            "category": c.category,
            "status": c.status,
            "priority": c.priority,
            "updatedAt": _isoformat(c.updated_at),
            "authorName": c.author_name,
            "subCommentsCount": c.sub_comments_count,
        }
        for c in ordered[:limit]
    ]


# =============================================================================
# TIME SERIES
# =============================================================================


def time_bucket(created_at, period: str) -> str:
    if period == PERIOD_DAILY:
        return created_at.strftime("%Y-%m-%d")
    if period == PERIOD_WEEKLY:
        # calendar year paired with the ISO week number, e.g. 2024-W05. Days
        # at a year boundary share a key with the same week number at the
        # other end of that year (2023-01-01 and 2023-12-28 are both 2023-W52).
        return f"{created_at.year:04d}-W{created_at.isocalendar()[1]:02d}"
    if period == PERIOD_MONTHLY:
        return created_at.strftime("%Y-%m")
    raise ValueError(f"Unknown period: {period}")


def time_series(comments: Sequence, period: str = PERIOD_DAILY) -> List[Dict]:
    if period not in TIME_SERIES_PERIODS:
        raise ValueError(f"Unknown period: {period}")

    buckets = {}
    for comment in comments:
        buckets.setdefault(time_bucket(comment.created_at, period), []).append(comment)

    return [
        {
            "period": key,
            "comments": len(group),
            "subComments": sum(c.sub_comments_count for c in group),
            "uniqueUsers": len({c.user_id for c in group}),
            "uniqueCategories": len({c.category for c in group}),
        }
        for key, group in sorted(buckets.items())
    ]


# =============================================================================
# PER-USER ROLLUP
# =============================================================================


def user_stats(comments: Sequence) -> List[Dict]:
    groups = {}
    for comment in comments:
        groups.setdefault(comment.user_id, []).append(comment)

    results = []
    for user_id in sorted(groups):
        group = groups[user_id]
        author = group[0]
        # comments whose author row is gone have nothing to join with
        if author.author_name is None and author.author_email is None:
            continue

        results.append(
            {
                "userId": user_id,
                "userName": author.author_name,
                "userEmail": author.author_email,
                "totalComments": len(group),
                "totalSubComments": sum(c.sub_comments_count for c in group),
                "categoriesCount": len({c.category for c in group}),
                "averagePriority": _mean(priority_weight(c.priority) for c in group),
            }
        )

    results.sort(key=lambda row: row["totalComments"], reverse=True)
    return results


# =============================================================================
# COMPOSITE
# =============================================================================


def general_stats(
    comments: Sequence, total_users: int, recent_limit: int = RECENT_ACTIVITY_LIMIT
) -> Dict:
    return {
        "overview": overview(comments, total_users),
        "categoryStats": category_stats(comments),
        "priorityStats": priority_stats(comments),
        "statusStats": status_stats(comments),
        "recentActivity": recent_activity(comments, recent_limit),
    }
