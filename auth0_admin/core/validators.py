"""Input validation helpers for request payloads."""
from __future__ import annotations
from typing import Any, Optional
from urllib.parse import urlparse

EMAIL_MAX_LENGTH = 254
NAME_MAX_LENGTH = 128
DESCRIPTION_MAX_LENGTH = 140


class ValidationError(ValueError):
    """Request payload failed validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": "Bad Request", "message": self.message, "field": self.field}


def validate_email(email: str) -> str:
    """Validate email address.

    Returns:
        Normalized email address

    Raises:
        ValidationError: If email is invalid
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("email", "Invalid email format")

    local, domain = email.rsplit("@", 1)
    if not local or not domain or "." not in domain:
        raise ValidationError("email", "Invalid email format")
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValidationError("email", "Email exceeds maximum length")

    return email


def validate_connection(connection: str) -> str:
    connection = (connection or "").strip()
    if not connection:
        raise ValidationError("connection", "connection is required")
    return connection


def validate_result_url(url: Optional[str]) -> Optional[str]:
    """Validate the optional post-reset redirect URL (absolute http/https)."""
    if url is None or url == "":
        return None
    if not isinstance(url, str):
        raise ValidationError("resultUrl", "resultUrl must be a string")

    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("resultUrl", "resultUrl must be an absolute http(s) URL")
    return url.strip()


def validate_id_list(values: Any, field: str) -> list[str]:
    """Validate a list of non-empty string identifiers; None means empty."""
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValidationError(field, f"{field} must be a list")

    cleaned = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(field, f"{field} must contain non-empty strings")
        cleaned.append(value.strip())
    return cleaned


def validate_optional_text(value: Any, field: str, max_length: int = NAME_MAX_LENGTH) -> Optional[str]:
    """Validate optional free-text fields (role name, description)."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(field, f"{field} exceeds maximum length")

    # Prevent injection attacks
    if any(char in value for char in "<>"):
        raise ValidationError(field, f"{field} contains invalid characters")
    return value


def validate_role_name(name: Any) -> str:
    name = validate_optional_text(name, "name")
    if not name:
        raise ValidationError("name", "name is required")
    return name
