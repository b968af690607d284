"""
Access policy for comments and sub-comments
===========================================
Pure decisions, no database and no Flask: callers load the resource and ask.

Rules:
    - ADMIN may read, update and delete any comment or sub-comment.
    - A comment is readable/mutable by its owner.
    - A sub-comment is mutable by its own author, never by the parent comment's owner.
    - Any authenticated actor may create a comment or reply to an existing one.
    - Listings only return the actor's own comments unless the actor is ADMIN.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from models.database import ROLE_ADMIN
from utils.errors import ForbiddenError


class Operation:
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


OWNER_OPERATIONS = (Operation.READ, Operation.UPDATE, Operation.DELETE)


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation"""

    user_id: int
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class VisibilityFilter:
    """Predicate over comments; ``owner_id`` None means every comment is visible"""

    owner_id: Optional[int] = None

    def __call__(self, comment) -> bool:
        return self.owner_id is None or comment.user_id == self.owner_id

    def apply(self, comments: Iterable) -> List:
        return [comment for comment in comments if self(comment)]

    def criterion(self, owner_column):
        """SQL form of the predicate for ``query.filter``, or None when unrestricted"""
        if self.owner_id is None:
            return None
        return owner_column == self.owner_id


def visibility_filter(actor: Actor) -> VisibilityFilter:
    if actor.is_admin:
        return VisibilityFilter()
    return VisibilityFilter(owner_id=actor.user_id)


def is_owner(actor: Actor, resource) -> bool:
    owner_id = getattr(resource, "user_id", None)
    return owner_id is not None and owner_id == actor.user_id


def can_access(actor: Optional[Actor], operation: str, resource=None) -> bool:
    """Decide whether ``actor`` may perform ``operation`` on ``resource``.

    ``resource`` is a comment or a sub-comment; ownership is always read from
    the resource itself, so a sub-comment is judged by its own author.
    """
    if actor is None:
        return False

    if operation == Operation.CREATE:
        return True

    if operation not in OWNER_OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")

    return actor.is_admin or is_owner(actor, resource)


def authorize(actor: Optional[Actor], operation: str, resource=None):
    if not can_access(actor, operation, resource):
        raise ForbiddenError("Not authorized")


def require_admin(actor: Optional[Actor]):
    """Admin-only endpoints have no ownership fallback"""
    if actor is None or not actor.is_admin:
        raise ForbiddenError("Administrator privileges required")
