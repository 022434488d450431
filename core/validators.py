"""
Shared validation helpers for MemoryGraph services.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from core.errors import ValidationIssue


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_list(values: Optional[Sequence], field: str, max_items: int) -> None:
    if values is None:
        raise ValidationIssue(f"{field} is required", field=field, error_type="required")
    if isinstance(values, (str, bytes, dict)) or not isinstance(values, Sequence):
        raise ValidationIssue(f"{field} must be a list", field=field, error_type="invalid_type")
    if len(values) > max_items:
        raise ValidationIssue(f"{field} exceeds max items {max_items}", field=field, error_type="max_items")


def validate_string_list(
    values: Optional[Sequence[str]],
    field: str,
    max_items: int,
    max_item_length: int,
) -> None:
    validate_list(values, field, max_items)
    for item in values:
        if not isinstance(item, str):
            raise ValidationIssue(f"{field} must contain only strings", field=field, error_type="invalid_type")
        if len(item) > max_item_length:
            raise ValidationIssue(
                f"{field} item exceeds max length {max_item_length}",
                field=field,
                error_type="max_length",
            )


def validate_mapping(value: Any, field: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationIssue(f"{field} must be an object", field=field, error_type="invalid_type")
    return value
