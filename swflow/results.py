"""Interpretation of the values returned by activity callbacks."""

from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from .engine import RETRY

MAX_DETAIL_BYTES = 1000
"""Ceiling for error texts embedded in task reports."""


def truncate(value: Any, limit: int = MAX_DETAIL_BYTES) -> str:
    """Return ``value`` as text of at most ``limit`` UTF-8 bytes."""
    text = "" if value is None else str(value)
    encoded = text.encode("utf-8")[:limit]
    return encoded.decode("utf-8", errors="ignore")


class ErrorResult(BaseModel):
    kind: Literal["error"] = "error"
    message: Any
    retry: bool = False


class OutcomeResult(BaseModel):
    kind: Literal["outcome"] = "outcome"
    value: Any
    payload: Dict[str, Any] = Field(default_factory=dict)


class RetryAfter(BaseModel):
    kind: Literal["retry_after"] = "retry_after"
    seconds: Any
    payload: Dict[str, Any] = Field(default_factory=dict)


class NoResult(BaseModel):
    kind: Literal["none"] = "none"
    payload: Dict[str, Any] = Field(default_factory=dict)


ActivityResult = Union[ErrorResult, OutcomeResult, RetryAfter, NoResult]


def classify(value: Any) -> ActivityResult:
    """Decode a callback's return value, by precedence ``error`` > ``outcome`` > retry."""
    if not isinstance(value, dict):
        return NoResult()
    if "error" in value:
        return ErrorResult(
            message=value["error"], retry=value.get("seconds_until_retry") is not None
        )
    if "outcome" in value:
        return OutcomeResult(value=value["outcome"], payload=value)
    if "seconds_until_retry" in value:
        return RetryAfter(seconds=value["seconds_until_retry"], payload=value)
    return NoResult(payload=value)


class ActivityReport(BaseModel):
    """What an activity task is reported as: completed, or failed with a reason."""

    status: Literal["completed", "failed"]
    result: Optional[str] = None
    reason: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def completed(cls, result: str) -> "ActivityReport":
        return cls(status="completed", result=result)

    @classmethod
    def failed(cls, reason: str, details: Dict[str, Any]) -> "ActivityReport":
        return cls(status="failed", reason=reason, details=json.dumps(details))


def interpret(value: Any) -> ActivityReport:
    """Map a callback's return value to the report for its activity task."""
    result = classify(value)
    match result:
        case ErrorResult(retry=True):
            return ActivityReport.failed(RETRY, {"error": truncate(result.message)})
        case ErrorResult():
            return ActivityReport.failed("Error", {"error": truncate(result.message)})
        case OutcomeResult() | RetryAfter() | NoResult():
            return ActivityReport.completed(json.dumps(result.payload))


def interpret_exception(exception: BaseException) -> ActivityReport:
    """Map a fault raised while running a callback to a failure report."""
    return ActivityReport.failed(
        "Exception",
        {
            "error": truncate(exception),
            "exception": truncate(type(exception).__name__),
        },
    )
