"""
Input validation utilities for the quality extraction.

Provides reusable validation functions for command-line inputs like
Application ids, name filters, HTTP headers and durations.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_application_id(application_id: str, field_name: str = "application_id") -> str:
    """
    Validate an Application id.

    Application ids are UUIDs; any identifier made of alphanumeric characters
    and hyphens is accepted so that ids of other formats still resolve.

    Args:
        application_id: The Application id to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated id (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_application_id(" 8a4f6c3e-0d2b-4c55-8f6c-3e0d2b4c55aa ")
        '8a4f6c3e-0d2b-4c55-8f6c-3e0d2b4c55aa'
        >>> validate_application_id("../users")  # doctest: +SKIP
        ValidationError: application_id contains invalid characters
    """
    if not application_id or not isinstance(application_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    application_id = application_id.strip()

    if not application_id:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    # Ids end up in URL paths
    if not re.match(r'^[a-zA-Z0-9\-]+$', application_id):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Only alphanumeric characters and hyphens are allowed."
        )

    if len(application_id) > 64:
        raise ValidationError(f"{field_name} exceeds maximum length of 64 characters")

    return application_id


def validate_name_filter(name_filter: str, field_name: str = "filter_by_name") -> str:
    """
    Validate a name filter, a case-insensitive regular expression.

    Raises:
        ValidationError: If the expression does not compile
    """
    if not isinstance(name_filter, str) or not name_filter:
        raise ValidationError(f"{field_name} must be a non-empty string")

    try:
        re.compile(name_filter, re.IGNORECASE)
    except re.error as e:
        raise ValidationError(f"{field_name} is not a valid regular expression: {e}")

    return name_filter


def parse_http_header(header: str, field_name: str = "header") -> tuple[str, str]:
    """
    Parse a "Name: value" HTTP header.

    Returns:
        (name, value) tuple

    Raises:
        ValidationError: If the header is malformed

    Examples:
        >>> parse_http_header("Authorization: Basic dXNlcjpwYXNz")
        ('Authorization', 'Basic dXNlcjpwYXNz')
    """
    if not isinstance(header, str) or ":" not in header:
        raise ValidationError(f"{field_name} must be formatted as 'Name: value', got {header!r}")

    name, value = header.split(":", 1)
    name = name.strip()
    if not re.match(r"^[A-Za-z0-9!#$%&'*+.^_`|~-]+$", name):
        raise ValidationError(f"{field_name} has an invalid name: {name!r}")

    return name, value.strip()


def parse_http_headers(headers: list[str] | None, field_name: str = "headers") -> dict[str, str]:
    """Parse a list of "Name: value" HTTP headers into a dict."""
    return dict(parse_http_header(header, field_name) for header in headers or [])


def validate_duration_ms(duration: str | int, field_name: str = "duration", allow_zero: bool = True) -> int:
    """
    Validate a duration expressed in milliseconds.

    Raises:
        ValidationError: If the duration is not an integer or out of range
    """
    try:
        value = int(duration)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer number of milliseconds, got {duration!r}")

    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"{field_name} must be {'>= 0' if allow_zero else '> 0'}, got {value}")

    return value
