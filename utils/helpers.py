"""
Utility helper functions for the TG Feedbacks API
Responses, request helpers and input validation
"""

import re
import secrets
from datetime import datetime

from flask import request, jsonify

from models.database import (
    COMMENT_CATEGORIES,
    COMMENT_PRIORITIES,
    COMMENT_STATUSES,
    METADATA_FIELDS,
    TITLE_MAX_LENGTH,
)
from utils.errors import ValidationError


# ========================================
# ID GENERATION
# ========================================


def generate_request_id():
    """Generate request ID"""
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    unique = secrets.token_hex(4)
    return f"req_{timestamp}_{unique}"


# ========================================
# REQUEST HELPERS
# ========================================


def get_client_ip():
    """Get client IP address from request"""
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")

    if request.headers.get("X-Forwarded-For"):
        ips = request.headers.get("X-Forwarded-For").split(",")
        return ips[0].strip()

    return request.remote_addr or "0.0.0.0"


def get_user_agent():
    """Get user agent from request"""
    return request.headers.get("User-Agent", "Unknown")


def get_json_body():
    """JSON object from the request body, or an empty dict when absent"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object required", {"body": "Expected a JSON object"})
    return data


# ========================================
# RESPONSE HELPERS
# ========================================


def create_success_response(data=None, code=200, meta=None):
    """Create standardized success response"""
    response = {
        "success": True,
        "code": code,
        "data": data,
        "timestamp": datetime.utcnow().isoformat(),
    }

    if meta:
        response["meta"] = meta

    return jsonify(response), code


def create_error_response(message, code=500, details=None, kind=None):
    """Create standardized error response"""
    response = {
        "success": False,
        "error": {
            "message": message,
            "code": code,
            "timestamp": datetime.utcnow().isoformat(),
        },
    }

    if kind:
        response["error"]["kind"] = kind

    if details:
        response["error"]["details"] = details

    return jsonify(response), code


def create_api_error_response(error):
    """Render an ApiError with its stable kind and field-level details"""
    return create_error_response(error.message, error.code, error.details, error.kind)


# ========================================
# VALIDATION
# ========================================


def validate_email(email):
    """Validate email format"""
    if not email:
        return False

    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return re.match(pattern, email) is not None


def validate_required_fields(data, required_fields):
    """Validate that required fields are present in data"""
    missing_fields = []

    for field in required_fields:
        if field not in data or data[field] is None or data[field] == "":
            missing_fields.append(field)

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_enum_value(value, enum_values, default=None):
    """Validate enum value"""
    if value in enum_values:
        return value
    return default


def _clean_text(value):
    if not isinstance(value, str):
        return None
    return value.strip()


def validate_comment_payload(data, partial=False):
    """Validate a comment create (or, with ``partial``, patch) payload.

    Returns model attributes keyed by column name; raises ValidationError with
    one message per offending field. Fields outside the schema are ignored,
    ownership included.
    """
    if not isinstance(data, dict):
        raise ValidationError("JSON object required", {"body": "Expected a JSON object"})

    errors = {}
    fields = {}

    if "title" in data or not partial:
        title = _clean_text(data.get("title"))
        if not title:
            errors["title"] = "Title is required"
        elif len(title) > TITLE_MAX_LENGTH:
            errors["title"] = f"Title cannot exceed {TITLE_MAX_LENGTH} characters"
        else:
            fields["title"] = title

    if "description" in data or not partial:
        description = _clean_text(data.get("description"))
        if not description:
            errors["description"] = "Description is required"
        else:
            fields["description"] = description

    if "recordId" in data or not partial:
        record_id = data.get("recordId")
        if isinstance(record_id, int) and not isinstance(record_id, bool):
            record_id = str(record_id)
        record_id = _clean_text(record_id)
        if not record_id:
            errors["recordId"] = "Record ID is required"
        else:
            fields["record_id"] = record_id

    for field, allowed in (
        ("category", COMMENT_CATEGORIES),
        ("status", COMMENT_STATUSES),
        ("priority", COMMENT_PRIORITIES),
    ):
        if field not in data:
            continue
        value = validate_enum_value(data.get(field), allowed)
        if value is None:
            errors[field] = f"{field.capitalize()} must be one of: {', '.join(allowed)}"
        else:
            fields[field] = value

    if "metadata" in data and data["metadata"] is not None:
        metadata = data["metadata"]
        if not isinstance(metadata, dict):
            errors["metadata"] = "Metadata must be an object"
        else:
            cleaned = {}
            for key in METADATA_FIELDS:
                value = metadata.get(key)
                if value is None:
                    continue
                if not isinstance(value, str):
                    errors[f"metadata.{key}"] = f"{key} must be a string"
                else:
                    cleaned[key] = value.strip()
            fields["comment_metadata"] = cleaned

    if errors:
        raise ValidationError("Validation failed", errors)

    return fields


def validate_sub_comment_content(data):
    """Trimmed, non-empty sub-comment content"""
    content = _clean_text(data.get("content")) if isinstance(data, dict) else None
    if not content:
        raise ValidationError("Validation failed", {"content": "Content is required"})
    return content


def validate_list_filters(args):
    """Optional ``category``/``status`` filters of a comment listing"""
    errors = {}
    filters = {}

    for field, allowed in (("category", COMMENT_CATEGORIES), ("status", COMMENT_STATUSES)):
        value = args.get(field)
        if not value:
            continue
        if value not in allowed:
            errors[field] = f"{field.capitalize()} must be one of: {', '.join(allowed)}"
        else:
            filters[field] = value

    if errors:
        raise ValidationError("Validation failed", errors)

    return filters


def validate_registration(data, min_password_length=6):
    errors = {}

    name = _clean_text(data.get("name"))
    if not name:
        errors["name"] = "Name is required"

    email = _clean_text(data.get("email"))
    if not validate_email(email):
        errors["email"] = "Please include a valid email"

    password = data.get("password")
    if not isinstance(password, str) or len(password) < min_password_length:
        errors["password"] = (
            f"Password must be {min_password_length} or more characters"
        )

    if errors:
        raise ValidationError("Validation failed", errors)

    return {"name": name, "email": email.lower(), "password": password}
