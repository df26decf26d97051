"""Exception hierarchy for swflow."""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "AlreadyStarted",
    "InvalidConfiguration",
    "MalformedInput",
    "MissingConfiguration",
    "NotFound",
    "SwflowError",
    "UnresolvedUnit",
]


class SwflowError(Exception):
    """Base exception for all swflow errors."""


class MalformedInput(SwflowError):
    """Raised when a task's input is not valid JSON at all.

    An input of the wrong shape is tolerated and normalized; this error is
    reserved for text that cannot be parsed.
    """

    def __init__(self, raw_input: Any, cause: Optional[Exception] = None) -> None:
        self.raw_input = raw_input
        self.cause = cause
        msg = f"Malformed task input: {raw_input!r}"
        if cause:
            msg += f" ({cause})"
        super().__init__(msg)


class MissingConfiguration(SwflowError):
    """Raised when no task list is configured for a unit."""

    def __init__(self, unit: Optional[str], kind: str = "activity") -> None:
        self.unit = unit
        self.kind = kind
        super().__init__(f"Missing {kind} task list configuration for unit {unit!r}")


class InvalidConfiguration(SwflowError):
    """Raised when a configured name uses reserved characters."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config '{value}': {reason}")


class AlreadyStarted(SwflowError):
    """Raised when starting an execution whose identity is already open."""

    def __init__(self, workflow_id: str, message: Optional[str] = None) -> None:
        self.workflow_id = workflow_id
        super().__init__(message or f"Workflow execution '{workflow_id}' already started")


class NotFound(SwflowError):
    """Raised when the service has no record of a workflow execution."""

    def __init__(
        self,
        workflow_id: str,
        run_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.workflow_id = workflow_id
        self.run_id = run_id
        super().__init__(
            message or f"Workflow execution '{workflow_id}' run '{run_id}' not found"
        )


class UnresolvedUnit(SwflowError):
    """Raised when no owning unit can be guessed from a workflow type name."""

    def __init__(self, workflow_type_name: Optional[str]) -> None:
        self.workflow_type_name = workflow_type_name
        super().__init__(
            f"Cannot guess unit from workflow type {workflow_type_name!r}"
        )
