"""Decisions returned by the decision engine."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .contracts import ActivityType

SCHEDULE_TO_CLOSE_TIMEOUT = 12 * 3600
SCHEDULE_TO_START_TIMEOUT = 10 * 60
START_TO_CLOSE_TIMEOUT = 12 * 3600
HEARTBEAT_TIMEOUT = "NONE"


def _new_id() -> str:
    return uuid.uuid4().hex


def _timeout(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _compact(attributes: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in attributes.items() if value is not None}


class ScheduleActivity(BaseModel):
    decision_type: Literal["ScheduleActivityTask"] = "ScheduleActivityTask"
    activity_type: ActivityType
    activity_id: str = Field(default_factory=_new_id)
    input: Optional[str] = None
    task_list: str
    schedule_to_close_timeout: int = SCHEDULE_TO_CLOSE_TIMEOUT
    schedule_to_start_timeout: int = SCHEDULE_TO_START_TIMEOUT
    start_to_close_timeout: int = START_TO_CLOSE_TIMEOUT
    heartbeat_timeout: str = HEARTBEAT_TIMEOUT

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "scheduleActivityTaskDecisionAttributes": _compact(
                {
                    "activityType": {
                        "name": self.activity_type.name,
                        "version": self.activity_type.version,
                    },
                    "activityId": self.activity_id,
                    "input": self.input,
                    "taskList": {"name": self.task_list},
                    "scheduleToCloseTimeout": str(self.schedule_to_close_timeout),
                    "scheduleToStartTimeout": str(self.schedule_to_start_timeout),
                    "startToCloseTimeout": str(self.start_to_close_timeout),
                    "heartbeatTimeout": self.heartbeat_timeout,
                }
            ),
        }


class StartTimer(BaseModel):
    decision_type: Literal["StartTimer"] = "StartTimer"
    timer_id: str = Field(default_factory=_new_id)
    seconds: int
    control: Optional[str] = None

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "startTimerDecisionAttributes": _compact(
                {
                    "timerId": self.timer_id,
                    "startToFireTimeout": str(self.seconds),
                    "control": self.control,
                }
            ),
        }


class CompleteWorkflowExecution(BaseModel):
    decision_type: Literal["CompleteWorkflowExecution"] = "CompleteWorkflowExecution"
    result: Optional[str] = None

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "completeWorkflowExecutionDecisionAttributes": _compact(
                {"result": self.result}
            ),
        }


class FailWorkflowExecution(BaseModel):
    decision_type: Literal["FailWorkflowExecution"] = "FailWorkflowExecution"
    reason: Optional[str] = None
    details: Optional[str] = None

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "failWorkflowExecutionDecisionAttributes": _compact(
                {"reason": self.reason, "details": self.details}
            ),
        }


class CancelWorkflowExecution(BaseModel):
    decision_type: Literal["CancelWorkflowExecution"] = "CancelWorkflowExecution"
    details: Optional[str] = None

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "cancelWorkflowExecutionDecisionAttributes": _compact(
                {"details": self.details}
            ),
        }


class ContinueAsNewWorkflowExecution(BaseModel):
    """Restart the execution, reusing the attributes of its start event."""

    decision_type: Literal["ContinueAsNewWorkflowExecution"] = (
        "ContinueAsNewWorkflowExecution"
    )
    child_policy: Optional[str] = None
    execution_start_to_close_timeout: Optional[Any] = None
    input: Optional[str] = None
    tag_list: Optional[List[str]] = None
    task_list: Optional[str] = None
    task_start_to_close_timeout: Optional[Any] = None

    def to_swf(self) -> Dict[str, Any]:
        return {
            "decisionType": self.decision_type,
            "continueAsNewWorkflowExecutionDecisionAttributes": _compact(
                {
                    "childPolicy": self.child_policy,
                    "executionStartToCloseTimeout": _timeout(
                        self.execution_start_to_close_timeout
                    ),
                    "input": self.input,
                    "tagList": self.tag_list,
                    "taskList": {"name": self.task_list} if self.task_list else None,
                    "taskStartToCloseTimeout": _timeout(self.task_start_to_close_timeout),
                }
            ),
        }


class NoOp(BaseModel):
    """Placeholder for events that need no decision; never submitted."""

    decision_type: Literal["NoOp"] = "NoOp"

    def to_swf(self) -> Dict[str, Any]:
        raise TypeError("NoOp decisions are not submitted to the service")


Decision = Union[
    ScheduleActivity,
    StartTimer,
    CompleteWorkflowExecution,
    FailWorkflowExecution,
    CancelWorkflowExecution,
    ContinueAsNewWorkflowExecution,
    NoOp,
]
