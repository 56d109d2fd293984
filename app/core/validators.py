"""Reusable pydantic validator bodies for partial-update payloads."""

from typing import Any, Optional


def reject_null(value: Optional[Any]) -> Any:
    """Omitted is fine on a PATCH; an explicit null on a required column is not."""
    if value is None:
        raise ValueError("Field may not be null")
    return value
