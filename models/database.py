"""
Database models for the TG Feedbacks API
Comments own their sub-comments: a Comment row and its SubComment rows form
one aggregate that is persisted and deleted together.
"""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.ext.orderinglist import ordering_list
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


# =========================================================================
# ENUMERATIONS
# =========================================================================

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)

COMMENT_CATEGORIES = (
    "GENERAL_FEEDBACK",
    "FEATURE_REQUEST",
    "INTEGRATION",
    "BUG_REPORT",
)
COMMENT_STATUSES = ("OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED")
COMMENT_PRIORITIES = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

DEFAULT_CATEGORY = "GENERAL_FEEDBACK"
DEFAULT_STATUS = "OPEN"
DEFAULT_PRIORITY = "MEDIUM"

METADATA_FIELDS = ("browser", "os", "version")
TITLE_MAX_LENGTH = 200


class Users(db.Model):
    """Users model"""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(*USER_ROLES, name="user_role"), default=ROLE_USER)
    created_at = db.Column(db.TIMESTAMP, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(
            password, method="pbkdf2:sha256:600000"
        )

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_author_dict(self):
        """Public projection used when a user is embedded in a comment"""
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class UserSessions(db.Model):
    """User sessions backing the issued bearer tokens"""

    __tablename__ = "user_sessions"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    session_token = db.Column(db.String(255), nullable=False, unique=True, index=True)
    expires_at = db.Column(db.TIMESTAMP, nullable=False)
    ip_address = db.Column(db.String(45))  # IPv4 или IPv6
    user_agent = db.Column(db.Text)
    last_activity = db.Column(
        db.TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.TIMESTAMP, default=datetime.utcnow)

    user = db.relationship("Users", backref="sessions")

    def is_expired(self, now=None):
        return (now or datetime.utcnow()) > self.expires_at

    def __repr__(self):
        return f"<UserSessions(id={self.id}, user_id={self.user_id}, is_active={self.is_active})>"


class Comments(db.Model):
    """Feedback comment, the aggregate root for its sub-comments"""

    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description = db.Column(db.Text, nullable=False)
    record_id = db.Column(db.String(255), nullable=False, index=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    category = db.Column(
        db.Enum(*COMMENT_CATEGORIES, name="comment_category"),
        nullable=False,
        default=DEFAULT_CATEGORY,
        index=True,
    )
    status = db.Column(
        db.Enum(*COMMENT_STATUSES, name="comment_status"),
        nullable=False,
        default=DEFAULT_STATUS,
        index=True,
    )
    priority = db.Column(
        db.Enum(*COMMENT_PRIORITIES, name="comment_priority"),
        nullable=False,
        default=DEFAULT_PRIORITY,
    )
    # 'metadata' is reserved by SQLAlchemy declarative models
    comment_metadata = db.Column("metadata", db.JSON)
    created_at = db.Column(
        db.TIMESTAMP, default=datetime.utcnow, nullable=False, index=True
    )
    updated_at = db.Column(
        db.TIMESTAMP, default=datetime.utcnow, nullable=False, index=True
    )
    version = db.Column(db.Integer, nullable=False)

    author = db.relationship("Users", lazy="joined", innerjoin=True)
    sub_comments = db.relationship(
        "SubComments",
        back_populates="comment",
        order_by="SubComments.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Concurrent writers on the same comment fail instead of overwriting each other
    __mapper_args__ = {"version_id_col": version}

    def find_sub_comment(self, sub_comment_id):
        for sub_comment in self.sub_comments:
            if sub_comment.id == sub_comment_id:
                return sub_comment
        return None

    def to_dict(self, include_sub_comments=True):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "recordId": self.record_id,
            "userId": self.user_id,
            "user": self.author.to_author_dict() if self.author else None,
            "category": self.category,
            "status": self.status,
            "priority": self.priority,
            "metadata": self.comment_metadata or {},
            "subCommentsCount": len(self.sub_comments),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_sub_comments:
            data["subComments"] = [sub.to_dict() for sub in self.sub_comments]

        return data

    def __repr__(self):
        return f"<Comments(id={self.id}, user_id={self.user_id}, category={self.category})>"


class SubComments(db.Model):
    """Reply stored inside its parent comment's ordered sequence"""

    __tablename__ = "sub_comments"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    comment_id = db.Column(
        db.Integer,
        db.ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    content = db.Column(db.Text, nullable=False)
    position = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.TIMESTAMP, default=datetime.utcnow, nullable=False)

    comment = db.relationship("Comments", back_populates="sub_comments")
    author = db.relationship("Users", lazy="joined", innerjoin=True)

    def to_dict(self):
        return {
            "id": self.id,
            "content": self.content,
            "userId": self.user_id,
            "user": self.author.to_author_dict() if self.author else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
