"""
Validation utilities for request input.
"""
import re
from typing import Any
from fastapi import HTTPException

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..models.status import ApplicationStatus


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules. Blank optional values become None."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_length} characters"
        )

    if pattern and not re.match(pattern, value):
        raise HTTPException(status_code=400, detail=f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_value}"
        )

    if max_value is not None and value > max_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_value}"
        )

    return value


def validate_application_status(raw: Any) -> ApplicationStatus:
    """Accept a status name ("Screening") or its integer code."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise HTTPException(status_code=400, detail="Target status is required")
    try:
        return ApplicationStatus.parse(raw)
    except ValueError:
        valid = ", ".join(s.value for s in ApplicationStatus)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {valid}"
        )


def validate_pagination(page: Any, page_size: Any) -> tuple[int, int]:
    page_n = validate_integer_field(page, "Page", min_value=1, required=False) or 1
    size_n = validate_integer_field(
        page_size, "Page size", min_value=1, max_value=MAX_PAGE_SIZE, required=False
    ) or DEFAULT_PAGE_SIZE
    return page_n, size_n


def normalize_organization_id(value: Any) -> str:
    """GUIDs compare case-insensitively; stored and token forms may differ in case."""
    return str(value or "").strip().lower()


def validate_organization_id(value: Any) -> str:
    """Organization ids are GUID strings."""
    org = validate_string_field(value, "Organization", min_length=1, max_length=36, required=True)
    pattern = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
    if not re.match(pattern, org):
        raise HTTPException(status_code=400, detail="Organization format is invalid")
    return normalize_organization_id(org)
