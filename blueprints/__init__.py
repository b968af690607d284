"""
Blueprints package initialization
"""

from .comments import comments_bp
from .statistics import statistics_bp
from .users import users_bp

__all__ = [
    "comments_bp",
    "statistics_bp",
    "users_bp",
]
