"""
Users Blueprint - Registration + Authentication
Issues the bearer tokens consumed by utils.auth.login_required
"""

import logging

from flask import Blueprint, current_app, g

from models.database import db, Users, ROLE_ADMIN, ROLE_USER
from models.store import CommentStore
from utils.auth import (
    login_required,
    create_session,
    revoke_session,
    get_current_user,
)
from utils.errors import ApiError, AuthenticationError, ValidationError
from utils.helpers import (
    create_success_response,
    create_error_response,
    create_api_error_response,
    get_client_ip,
    get_json_body,
    get_user_agent,
    validate_registration,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)


def _session_response(user, code):
    token, expires_at = create_session(
        user, ip_address=get_client_ip(), user_agent=get_user_agent()
    )
    return create_success_response(
        {"user": user.to_dict(), "token": token, "expiresAt": expires_at.isoformat()},
        code,
    )


# ============================================================================
# AUTHENTICATION ENDPOINTS
# ============================================================================


@users_bp.route("/register", methods=["POST"])
def register():
    """
    Register a user and open a session.

    <b>Request body:</b> name, email, password (6+ characters)</br>
    The address configured as ADMIN_EMAIL registers with role ADMIN.
    """
    try:
        store = CommentStore()
        data = validate_registration(
            get_json_body(), current_app.config.get("PASSWORD_MIN_LENGTH", 6)
        )

        if store.find_user_by_email(data["email"]):
            raise ValidationError("Validation failed", {"email": "User already exists"})

        admin_email = (current_app.config.get("ADMIN_EMAIL") or "").strip().lower()
        role = ROLE_ADMIN if admin_email and data["email"] == admin_email else ROLE_USER

        user = Users(name=data["name"], email=data["email"], role=role)
        user.set_password(data["password"])
        store.save_user(user)

        logger.info(f"✅ User registered: {user.email} (role: {user.role})")
        return _session_response(user, 201)

    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"❌ Registration failed: {e}", exc_info=True)
        return create_error_response("Registration failed. Please try again.", 500)


@users_bp.route("/login", methods=["POST"])
def login():
    """Exchange email + password for a bearer token"""
    try:
        data = get_json_body()
        is_valid, message = validate_required_fields(data, ["email", "password"])
        if not is_valid:
            raise ValidationError(message)

        user = CommentStore().find_user_by_email(str(data["email"]))
        if not user or not user.check_password(str(data["password"])):
            logger.warning(f"❌ Failed login attempt for {data['email']}")
            raise AuthenticationError("Invalid credentials")

        logger.info(f"✅ LOGIN SUCCESSFUL: {user.email}")
        return _session_response(user, 200)

    except ApiError as e:
        return create_api_error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"❌ LOGIN ERROR: {type(e).__name__}: {e}", exc_info=True)
        return create_error_response("Login failed. Please try again.", 500)


@users_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """Deactivate the session behind the presented token"""
    try:
        revoke_session(g.session_token)
        return create_success_response({"message": "Logout successful"})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Logout error: {e}", exc_info=True)
        return create_error_response("Logout failed", 500)


@users_bp.route("/me", methods=["GET"])
@login_required
def get_profile():
    return create_success_response(get_current_user().to_dict())
