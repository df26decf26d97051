"""Core data contracts exchanged with the workflow service."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskOptions(BaseModel):
    """Options stored as JSON in the ``input`` of a workflow execution.

    Unknown keys are kept so that options survive a decode/encode cycle.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[Any] = None
    params: Optional[Any] = None
    unit: Optional[Any] = None
    activity_group: Optional[Any] = None
    interval: Optional[Any] = None
    version: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the options as a plain mapping without unset keys."""
        return self.model_dump(exclude_unset=True)


class WorkflowType(BaseModel):
    name: str
    version: str = "v1"


class ActivityType(BaseModel):
    name: str
    version: str = "v1"


class EventKind(str, Enum):
    """Closed set of history event types the library interprets."""

    WORKFLOW_EXECUTION_STARTED = "WorkflowExecutionStarted"
    ACTIVITY_TASK_COMPLETED = "ActivityTaskCompleted"
    ACTIVITY_TASK_FAILED = "ActivityTaskFailed"
    ACTIVITY_TASK_TIMED_OUT = "ActivityTaskTimedOut"
    TIMER_STARTED = "TimerStarted"
    TIMER_FIRED = "TimerFired"
    WORKFLOW_EXECUTION_COMPLETED = "WorkflowExecutionCompleted"
    WORKFLOW_EXECUTION_FAILED = "WorkflowExecutionFailed"
    WORKFLOW_EXECUTION_TIMED_OUT = "WorkflowExecutionTimedOut"
    WORKFLOW_EXECUTION_CANCELED = "WorkflowExecutionCanceled"
    WORKFLOW_EXECUTION_TERMINATED = "WorkflowExecutionTerminated"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value: object) -> "EventKind":
        return cls.OTHER


TERMINAL_FAILURE_KINDS = (
    EventKind.WORKFLOW_EXECUTION_FAILED,
    EventKind.WORKFLOW_EXECUTION_TIMED_OUT,
    EventKind.WORKFLOW_EXECUTION_CANCELED,
    EventKind.WORKFLOW_EXECUTION_TERMINATED,
)


class HistoryEvent(BaseModel):
    """One immutable entry of a workflow execution's history."""

    model_config = ConfigDict(frozen=True)

    event_id: int = 0
    event_type: str
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> EventKind:
        return EventKind(self.event_type)

    def attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)


class ExecutionStatus(str, Enum):
    OPEN = "open"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    TERMINATED = "terminated"
    TIMED_OUT = "timed_out"
    CONTINUED_AS_NEW = "continued_as_new"


class WorkflowExecution(BaseModel):
    """A workflow instance and its ordered history."""

    workflow_id: str
    run_id: str
    status: ExecutionStatus = ExecutionStatus.OPEN
    workflow_type: Optional[WorkflowType] = None
    events: List[HistoryEvent] = Field(default_factory=list)


class DecisionTask(BaseModel):
    """Decision work handed out by the service for one workflow execution."""

    task_token: str
    workflow_id: str
    run_id: str
    workflow_type: Optional[WorkflowType] = None
    events: List[HistoryEvent] = Field(default_factory=list)
    new_events: List[HistoryEvent] = Field(default_factory=list)


class ActivityTask(BaseModel):
    """Activity work handed out by the service."""

    task_token: str
    activity_id: str = ""
    activity_type: Optional[ActivityType] = None
    input: Optional[str] = None
    workflow_id: str
    run_id: str


class ActivityContext(BaseModel):
    """Description of an activity task as seen by a user callback."""

    name: Optional[Any] = None
    params: Optional[Any] = None
    version: Optional[Any] = None
    options: TaskOptions
    workflow_id: str
    run_id: str
    activity_task: ActivityTask


class ExecutionSummary(BaseModel):
    """Status and outcome of a workflow execution, derived from its history."""

    status: ExecutionStatus
    workflow_id: str
    run_id: str
    name: str = ""
    params: Optional[Any] = None
    outcome: Optional[Any] = None
    error: Optional[Any] = None
    exception: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the summary, omitting outcome and error keys never set."""
        data = self.model_dump(mode="json", exclude_unset=True)
        data.setdefault("name", self.name)
        data.setdefault("params", self.params)
        return data
