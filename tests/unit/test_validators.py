"""
Tests for request payload validation.
"""

import pytest

from utils.errors import ValidationError
from utils.helpers import (
    validate_comment_payload,
    validate_email,
    validate_list_filters,
    validate_registration,
    validate_sub_comment_content,
)


def comment_payload(**overrides):
    payload = {
        "title": "  Export fails  ",
        "description": "CSV export returns 500",
        "recordId": "rec-42",
    }
    payload.update(overrides)
    return payload


class TestCommentPayload:
    def test_minimal_create_payload(self):
        fields = validate_comment_payload(comment_payload())

        assert fields == {
            "title": "Export fails",
            "description": "CSV export returns 500",
            "record_id": "rec-42",
        }

    def test_numeric_record_id_is_stringified(self):
        assert validate_comment_payload(comment_payload(recordId=42))["record_id"] == "42"

    def test_missing_required_fields_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_comment_payload({})

        assert exc_info.value.details == {
            "title": "Title is required",
            "description": "Description is required",
            "recordId": "Record ID is required",
        }

    def test_title_length_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_comment_payload(comment_payload(title="x" * 201))

        assert exc_info.value.details["title"] == "Title cannot exceed 200 characters"
        assert validate_comment_payload(comment_payload(title="x" * 200))["title"]

    @pytest.mark.parametrize(
        "field, value",
        [("category", "SPAM"), ("status", "DONE"), ("priority", "URGENT")],
    )
    def test_values_outside_enumerations_rejected(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_comment_payload(comment_payload(**{field: value}))

        assert field in exc_info.value.details

    def test_metadata_keeps_known_string_fields(self):
        fields = validate_comment_payload(
            comment_payload(metadata={"browser": "Firefox", "os": "Linux", "extra": 1})
        )

        assert fields["comment_metadata"] == {"browser": "Firefox", "os": "Linux"}

    def test_metadata_must_be_object_of_strings(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_comment_payload(comment_payload(metadata=["Firefox"]))
        assert exc_info.value.details == {"metadata": "Metadata must be an object"}

        with pytest.raises(ValidationError) as exc_info:
            validate_comment_payload(comment_payload(metadata={"version": 3}))
        assert "metadata.version" in exc_info.value.details

    def test_partial_patch_only_validates_present_fields(self):
        assert validate_comment_payload({"status": "RESOLVED"}, partial=True) == {
            "status": "RESOLVED"
        }

    def test_partial_patch_rejects_blank_title(self):
        with pytest.raises(ValidationError):
            validate_comment_payload({"title": "   "}, partial=True)

    def test_ownership_fields_are_ignored(self):
        fields = validate_comment_payload(comment_payload(userId=7, user_id=7))

        assert "user_id" not in fields
        assert "userId" not in fields


class TestSubCommentContent:
    def test_content_is_trimmed(self):
        assert validate_sub_comment_content({"content": "  +1  "}) == "+1"

    @pytest.mark.parametrize("data", [{}, {"content": "   "}, {"content": 5}, None])
    def test_blank_content_rejected(self, data):
        with pytest.raises(ValidationError) as exc_info:
            validate_sub_comment_content(data)

        assert exc_info.value.details == {"content": "Content is required"}


class TestListFilters:
    def test_known_values_pass(self):
        assert validate_list_filters({"category": "BUG_REPORT", "status": ""}) == {
            "category": "BUG_REPORT"
        }

    def test_unknown_values_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_list_filters({"status": "ARCHIVED"})

        assert "status" in exc_info.value.details


class TestRegistration:
    def test_email_is_lowercased(self):
        data = validate_registration(
            {"name": "Alice", "email": "Alice@Example.com", "password": "secret123"}
        )

        assert data["email"] == "alice@example.com"

    def test_all_problems_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_registration({"email": "nope", "password": "123"})

        assert set(exc_info.value.details) == {"name", "email", "password"}
        assert exc_info.value.details["email"] == "Please include a valid email"

    @pytest.mark.parametrize(
        "email, valid",
        [("user@example.com", True), ("user@example", False), ("", False), (None, False)],
    )
    def test_validate_email(self, email, valid):
        assert validate_email(email) is valid
