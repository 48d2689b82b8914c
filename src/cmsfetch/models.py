"""Typed response models for server payloads the client inspects."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class _NoContent(enum.Enum):
    """Sentinel for successful responses without a usable body."""

    NO_CONTENT = "no-content"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CONTENT"


NO_CONTENT = _NoContent.NO_CONTENT


class CmsFetchModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorEnvelope(CmsFetchModel):
    """Error body returned by the backend for non-success responses.

    Validation failures that report a list of messages do not carry a usable
    ``message`` and parse as an envelope without one.
    """

    message: str | None = None
    error: str | None = None
    status_code: int | None = Field(default=None, alias="statusCode")

    @field_validator("message", "error", mode="before")
    @classmethod
    def _strings_only(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


def parse_error_envelope(payload: Any) -> ErrorEnvelope | None:
    if not isinstance(payload, dict):
        return None
    try:
        return ErrorEnvelope.model_validate(payload)
    except ValidationError:
        return None
