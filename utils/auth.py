"""
========================================
AUTHENTICATION UTILITIES - SESSION TOKEN
========================================
Bearer tokens are HS256 JWTs that point at a row in user_sessions:
the signature proves the token was issued here, the session row lets
logout revoke it before it expires.
"""

import logging
import secrets
from datetime import datetime, timedelta
from functools import wraps

import jwt
from flask import request, g, current_app

from models.database import db, UserSessions, Users
from services.access_policy import Actor
from utils.helpers import create_error_response

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


# ========================================
# TOKENS
# ========================================


def extract_token_from_request():
    """Извлечь токен из заголовка Authorization"""
    auth_header = request.headers.get("Authorization")

    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip()
    return auth_header.strip()


def issue_token(user, session_token, expires_at):
    payload = {
        "sub": str(user.id),
        "sid": session_token,
        "role": user.role,
        "iat": datetime.utcnow(),
        "exp": expires_at,
    }
    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm=JWT_ALGORITHM)


def decode_token(token):
    """Decoded claims, or None when the token is forged, malformed or expired"""
    try:
        return jwt.decode(
            token, current_app.config["SECRET_KEY"], algorithms=[JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        logger.warning("❌ Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"❌ Invalid token: {e}")
    return None


# ========================================
# СЕССИИ
# ========================================


def create_session(user, ip_address=None, user_agent=None):
    """Create a session row for ``user`` and return ``(bearer_token, expires_at)``"""
    session_token = secrets.token_urlsafe(43)
    hours = current_app.config.get("SESSION_TOKEN_EXPIRES_HOURS", 24)
    expires_at = datetime.utcnow() + timedelta(hours=hours)

    session = UserSessions(
        user_id=user.id,
        session_token=session_token,
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
        is_active=True,
    )
    db.session.add(session)
    db.session.commit()

    logger.info(f"✅ Session created for user {user.id}: {session_token[:8]}...")

    return issue_token(user, session_token, expires_at), expires_at


def revoke_session(session_token):
    """Deactivate a session; returns True when an active session was found"""
    session = UserSessions.query.filter_by(
        session_token=session_token, is_active=True
    ).first()
    if not session:
        return False

    session.is_active = False
    db.session.commit()
    logger.info(f"✅ Session revoked: {session_token[:8]}...")
    return True


# ========================================
# ДЕКОРАТОРЫ АУТЕНТИФИКАЦИИ
# ========================================


def login_required(f):
    """
    Декоратор для защиты эндпоинтов, требующих аутентификации

    Authorization: Bearer <token>
    Sets g.user, g.user_id, g.role and g.session_token for the request.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_token_from_request()
        if not token:
            logger.warning("❌ Authorization token is missing")
            return create_error_response(
                "Authorization token is missing", 401, kind="AuthenticationError"
            )

        claims = decode_token(token)
        if not claims or not claims.get("sid"):
            return create_error_response(
                "Invalid or expired token", 401, kind="AuthenticationError"
            )

        session = UserSessions.query.filter_by(
            session_token=claims["sid"], is_active=True
        ).first()
        if not session or str(session.user_id) != claims.get("sub"):
            logger.warning(f"❌ Session not found for token sid={claims['sid'][:8]}...")
            return create_error_response(
                "Invalid or expired token", 401, kind="AuthenticationError"
            )

        if session.is_expired():
            logger.warning(f"❌ Session {session.id} expired at {session.expires_at}")
            session.is_active = False
            db.session.commit()
            return create_error_response(
                "Token has expired", 401, kind="AuthenticationError"
            )

        user = db.session.get(Users, session.user_id)
        if not user:
            logger.error(f"❌ User not found: {session.user_id}")
            return create_error_response("User not found", 401, kind="AuthenticationError")

        g.user_id = user.id
        g.user = user
        g.role = user.role
        g.session_token = session.session_token

        return f(*args, **kwargs)

    return decorated_function


def admin_required(f):
    """Декоратор для эндпоинтов, требующих права администратора"""

    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not get_current_actor().is_admin:
            return create_error_response(
                "Administrator privileges required", 403, kind="ForbiddenError"
            )
        return f(*args, **kwargs)

    return decorated_function


# ========================================
# ВСПОМОГАТЕЛЬНЫЕ ФУНКЦИИ
# ========================================


def get_current_user():
    return getattr(g, "user", None)


def get_current_user_id():
    return getattr(g, "user_id", None)


def get_current_user_role():
    return getattr(g, "role", None)


def get_current_actor():
    """Actor for the authenticated request, or None outside login_required"""
    user_id = get_current_user_id()
    if user_id is None:
        return None
    return Actor(user_id=user_id, role=get_current_user_role())


__all__ = [
    "login_required",
    "admin_required",
    "get_current_user",
    "get_current_user_id",
    "get_current_user_role",
    "get_current_actor",
    "extract_token_from_request",
    "issue_token",
    "decode_token",
    "create_session",
    "revoke_session",
]
