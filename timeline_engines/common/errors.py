"""Canonical error taxonomy for the timeline engines.

Every error carries a machine-readable ``code`` and can render itself as an
``ErrorDetail``:
{
  "code": "string",
  "message": "string",
  "resource_kind": "layer | keyframe | tween | scene | group | frame | null",
  "details": {}
}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


def build_error_detail(
    code: str,
    message: str,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorDetail:
    """Construct an ErrorDetail (without raising)."""
    return ErrorDetail(
        code=code,
        message=message,
        resource_kind=resource_kind,
        details=details or {},
    )


class TimelineError(Exception):
    """Base timeline error."""

    code = "timeline_error"
    resource_kind: Optional[str] = None

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def detail(self) -> ErrorDetail:
        return build_error_detail(
            code=self.code,
            message=self.message,
            resource_kind=self.resource_kind,
            details=self.details,
        )


class NotFoundError(TimelineError, KeyError):
    """Raised when an operation references an id that does not exist."""

    code = "not_found"

    def __init__(self, kind: str, entity_id: str, scope: Optional[str] = None) -> None:
        message = f"{kind} {entity_id} not found"
        if scope:
            message = f"{message} in {scope}"
        super().__init__(message, {"id": entity_id, "scope": scope})
        self.resource_kind = kind
        self.entity_id = entity_id


class DuplicateIdError(TimelineError, ValueError):
    """Raised when creation reuses an id that is already taken."""

    code = "duplicate_id"

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} with ID {entity_id} already exists", {"id": entity_id})
        self.resource_kind = kind
        self.entity_id = entity_id


class CircularReferenceError(TimelineError, ValueError):
    """Raised when a reparent would make a layer its own ancestor."""

    code = "circular_reference"
    resource_kind = "group"

    def __init__(self, layer_id: str, group_id: str) -> None:
        super().__init__(
            f"Moving layer {layer_id} under {group_id} would create a cycle",
            {"layer_id": layer_id, "group_id": group_id},
        )
        self.layer_id = layer_id
        self.group_id = group_id


class InvalidRangeError(TimelineError, ValueError):
    """Raised when a frame range spans two different layers."""

    code = "invalid_range"
    resource_kind = "frame"

    def __init__(self, start_frame_id: str, end_frame_id: str) -> None:
        super().__init__(
            "Range selection only works on the same layer",
            {"start": start_frame_id, "end": end_frame_id},
        )


class InvalidTweenError(TimelineError, ValueError):
    """Raised when tween endpoints are identical or out of time order."""

    code = "invalid_tween"
    resource_kind = "tween"


class TimelineValidationError(TimelineError, ValueError):
    """Raised when persisted timeline data is malformed."""

    code = "validation_error"
