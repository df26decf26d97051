"""Amazon Simple Workflow Service transport."""

from __future__ import annotations

import asyncio
import functools
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import ClientError

from ..contracts import (
    ActivityTask,
    ActivityType,
    DecisionTask,
    ExecutionStatus,
    HistoryEvent,
    WorkflowExecution,
    WorkflowType,
)
from ..decisions import Decision, NoOp
from ..errors import AlreadyStarted, NotFound
from .base import BaseTransport

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_CLOSE_STATUS = {
    "COMPLETED": ExecutionStatus.COMPLETED,
    "FAILED": ExecutionStatus.FAILED,
    "CANCELED": ExecutionStatus.CANCELED,
    "TERMINATED": ExecutionStatus.TERMINATED,
    "CONTINUED_AS_NEW": ExecutionStatus.CONTINUED_AS_NEW,
    "TIMED_OUT": ExecutionStatus.TIMED_OUT,
}


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _attributes(raw_event: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten an event's ``...EventAttributes`` into snake_case keys."""
    event_type = raw_event["eventType"]
    key = event_type[0].lower() + event_type[1:] + "EventAttributes"
    attributes: Dict[str, Any] = {}
    for name, value in raw_event.get(key, {}).items():
        if name == "taskList" and isinstance(value, dict):
            value = value.get("name")
        attributes[_snake(name)] = value
    return attributes


def parse_event(raw_event: Dict[str, Any]) -> HistoryEvent:
    """Convert one SWF history event into a :class:`HistoryEvent`."""
    return HistoryEvent(
        event_id=raw_event["eventId"],
        event_type=raw_event["eventType"],
        attributes=_attributes(raw_event),
    )


def _workflow_type(raw: Optional[Dict[str, Any]]) -> Optional[WorkflowType]:
    if not raw:
        return None
    return WorkflowType(name=raw["name"], version=raw["version"])


class SwfTransport(BaseTransport):
    """Talk to Amazon SWF through boto3.

    boto3 has no native async support, so every call runs in the default
    executor.
    """

    def __init__(
        self,
        domain: str = "default",
        region_name: Optional[str] = None,
        profile_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        super().__init__(domain)
        self.region_name = region_name
        self.profile_name = profile_name
        self.endpoint_url = endpoint_url
        self._client = client

    async def connect(self) -> None:
        """Create the boto3 SWF client."""
        if self._client is None:
            session = boto3.Session(
                profile_name=self.profile_name, region_name=self.region_name
            )
            self._client = session.client("swf", endpoint_url=self.endpoint_url)

    async def disconnect(self) -> None:
        self._client = None

    async def _call(self, method: str, **kwargs: Any) -> Dict[str, Any]:
        if self._client is None:
            await self.connect()
        call: Callable[..., Dict[str, Any]] = getattr(self._client, method)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(call, **kwargs))

    # ------------------------------------------------------------------
    async def start_workflow_execution(
        self,
        *,
        workflow_id: str,
        workflow_type: WorkflowType,
        task_list: str,
        input: str,
        tag_list: List[str],
        child_policy: str,
        execution_start_to_close_timeout: int,
        task_start_to_close_timeout: int,
    ) -> str:
        try:
            response = await self._call(
                "start_workflow_execution",
                domain=self.domain,
                workflowId=workflow_id,
                workflowType={"name": workflow_type.name, "version": workflow_type.version},
                taskList={"name": task_list},
                input=input,
                tagList=tag_list,
                childPolicy=child_policy,
                executionStartToCloseTimeout=str(execution_start_to_close_timeout),
                taskStartToCloseTimeout=str(task_start_to_close_timeout),
            )
        except ClientError as e:
            if _error_code(e) == "WorkflowExecutionAlreadyStartedFault":
                raise AlreadyStarted(workflow_id, _error_message(e)) from e
            raise
        return response["runId"]

    async def poll_for_decision_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[DecisionTask]:
        request = {"domain": self.domain, "taskList": {"name": task_list}}
        if identity:
            request["identity"] = identity
        response = await self._call("poll_for_decision_task", **request)
        if not response.get("taskToken"):
            return None

        raw_events = list(response.get("events", []))
        next_page_token = response.get("nextPageToken")
        while next_page_token:
            page = await self._call(
                "poll_for_decision_task", nextPageToken=next_page_token, **request
            )
            raw_events.extend(page.get("events", []))
            next_page_token = page.get("nextPageToken")

        events = [parse_event(raw) for raw in raw_events]
        previous_started = response.get("previousStartedEventId", 0)
        execution = response["workflowExecution"]
        return DecisionTask(
            task_token=response["taskToken"],
            workflow_id=execution["workflowId"],
            run_id=execution["runId"],
            workflow_type=_workflow_type(response.get("workflowType")),
            events=events,
            new_events=[e for e in events if e.event_id > previous_started],
        )

    async def respond_decision_task_completed(
        self, task_token: str, decisions: Sequence[Decision]
    ) -> None:
        await self._call(
            "respond_decision_task_completed",
            taskToken=task_token,
            decisions=[d.to_swf() for d in decisions if not isinstance(d, NoOp)],
        )

    async def poll_for_activity_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[ActivityTask]:
        request = {"domain": self.domain, "taskList": {"name": task_list}}
        if identity:
            request["identity"] = identity
        response = await self._call("poll_for_activity_task", **request)
        if not response.get("taskToken"):
            return None
        execution = response["workflowExecution"]
        activity_type = response.get("activityType")
        return ActivityTask(
            task_token=response["taskToken"],
            activity_id=response.get("activityId", ""),
            activity_type=ActivityType(**activity_type) if activity_type else None,
            input=response.get("input"),
            workflow_id=execution["workflowId"],
            run_id=execution["runId"],
        )

    async def respond_activity_task_completed(
        self, task_token: str, result: Optional[str] = None
    ) -> None:
        request: Dict[str, Any] = {"taskToken": task_token}
        if result is not None:
            request["result"] = result
        await self._call("respond_activity_task_completed", **request)

    async def respond_activity_task_failed(
        self,
        task_token: str,
        reason: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        request: Dict[str, Any] = {"taskToken": task_token}
        if reason is not None:
            request["reason"] = reason
        if details is not None:
            request["details"] = details
        await self._call("respond_activity_task_failed", **request)

    async def get_workflow_execution(
        self, workflow_id: str, run_id: str
    ) -> WorkflowExecution:
        execution = {"workflowId": workflow_id, "runId": run_id}
        try:
            description = await self._call(
                "describe_workflow_execution", domain=self.domain, execution=execution
            )
            raw_events: List[Dict[str, Any]] = []
            request: Dict[str, Any] = {"domain": self.domain, "execution": execution}
            while True:
                page = await self._call("get_workflow_execution_history", **request)
                raw_events.extend(page.get("events", []))
                if not page.get("nextPageToken"):
                    break
                request["nextPageToken"] = page["nextPageToken"]
        except ClientError as e:
            if _error_code(e) == "UnknownResourceFault":
                raise NotFound(workflow_id, run_id, _error_message(e)) from e
            raise

        info = description["executionInfo"]
        if info.get("executionStatus") == "OPEN":
            status = ExecutionStatus.OPEN
        else:
            status = _CLOSE_STATUS.get(info.get("closeStatus"), ExecutionStatus.FAILED)
        return WorkflowExecution(
            workflow_id=workflow_id,
            run_id=run_id,
            status=status,
            workflow_type=_workflow_type(info.get("workflowType")),
            events=[parse_event(raw) for raw in raw_events],
        )

    async def is_execution_open(self, workflow_id: str) -> bool:
        response = await self._call(
            "list_open_workflow_executions",
            domain=self.domain,
            startTimeFilter={"oldestDate": datetime(1970, 1, 1, tzinfo=timezone.utc)},
            executionFilter={"workflowId": workflow_id},
            maximumPageSize=1,
        )
        return bool(response.get("executionInfos"))

    async def register_domain(self, description: str, retention_days: int = 3) -> None:
        await self._call(
            "register_domain",
            name=self.domain,
            description=description,
            workflowExecutionRetentionPeriodInDays=str(retention_days),
        )

    async def register_workflow_type(self, name: str, version: str) -> None:
        await self._call(
            "register_workflow_type", domain=self.domain, name=name, version=version
        )

    async def register_activity_type(self, name: str, version: str) -> None:
        await self._call(
            "register_activity_type", domain=self.domain, name=name, version=version
        )


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", str(error))
