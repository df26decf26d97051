"""Client for starting and querying workflow executions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from . import codec
from .config import SEPARATOR, SwflowConfig
from .contracts import ExecutionStatus, ExecutionSummary, TaskOptions, WorkflowType
from .history import summarize
from .task_lists import TaskListResolver
from .transports import BaseTransport

logger = logging.getLogger(__name__)

CHILD_POLICY = "TERMINATE"
EXECUTION_START_TO_CLOSE_TIMEOUT = 48 * 3600
TASK_START_TO_CLOSE_TIMEOUT = 10 * 60


class Starter(Protocol):
    async def start(self, name: Any, *, execution_id: str, **options: Any) -> ExecutionSummary:
        """Start a workflow execution for a task of kind ``name``."""


class Finder(Protocol):
    async def find(self, workflow_id: str, run_id: str) -> ExecutionSummary:
        """Return status and details of a workflow execution."""


def workflow_id(prefix: str, suffix: str) -> str:
    """Join the configured prefix and an execution id into a workflow id."""
    return SEPARATOR.join([prefix, suffix])


class Client:
    """Start workflow executions and inspect their outcome."""

    def __init__(
        self,
        transport: BaseTransport,
        config: SwflowConfig,
        resolver: Optional[TaskListResolver] = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._resolver = resolver or TaskListResolver(config)

    @property
    def workflow_type(self) -> WorkflowType:
        return WorkflowType(
            name=self._config.workflow_name, version=self._config.type_version
        )

    async def start(
        self,
        name: Any,
        *,
        execution_id: str,
        params: Any = None,
        unit: Optional[str] = None,
        interval: Optional[int] = None,
        activity_group: Optional[str] = None,
        version: Optional[int] = None,
        tag_list: Optional[List[str]] = None,
        **extra: Any,
    ) -> ExecutionSummary:
        """Enqueue a new task.

        Every option except ``execution_id`` is stored as JSON in the
        execution's input, where the decision and activity workers read it.

        Args:
            name: Identifies the kind of task for the executing unit.
            execution_id: Workflow id suffix, joined to the configured prefix.
            params: Custom task parameters passed on to the executing unit.
            unit: The executing unit's key; an activity task list must be
                configured for it.
            interval: Seconds; enforces periodic restart of the execution,
                even in case of failure.
            activity_group: Sub-queue of the unit's task list to schedule on.
            version: Minimum client version expected to run the task.
            tag_list: Additional tags for the workflow execution.

        Returns:
            The new execution's identity with status ``open``.

        Raises:
            AlreadyStarted: If an open execution has the same workflow id.
            MissingConfiguration: If no decision task list is configured.
        """
        fields: Dict[str, Any] = {
            "name": name,
            "params": params,
            "unit": unit,
            "interval": interval,
            "activity_group": activity_group,
            "version": version,
            "tag_list": tag_list,
            **extra,
        }
        options = TaskOptions(**{k: v for k, v in fields.items() if v is not None})
        tags = [str(unit or ""), "" if name is None else str(name), *(tag_list or [])]
        wf_id = workflow_id(self._config.workflow_id_prefix, execution_id)

        run_id = await self._transport.start_workflow_execution(
            workflow_id=wf_id,
            workflow_type=self.workflow_type,
            task_list=self._resolver.decision_task_list(unit or self._config.default_unit),
            input=codec.encode(options),
            tag_list=[tag for tag in tags if tag],
            child_policy=CHILD_POLICY,
            execution_start_to_close_timeout=EXECUTION_START_TO_CLOSE_TIMEOUT,
            task_start_to_close_timeout=TASK_START_TO_CLOSE_TIMEOUT,
        )
        logger.info(f"Started execution {wf_id} run {run_id} for task {name!r}")
        return ExecutionSummary(
            status=ExecutionStatus.OPEN,
            workflow_id=wf_id,
            run_id=run_id,
            name="" if name is None else str(name),
            params=params,
        )

    async def find(self, workflow_id: str, run_id: str) -> ExecutionSummary:
        """Get status and details of a workflow execution.

        Raises:
            NotFound: If the service has no record of the execution.
        """
        execution = await self._transport.get_workflow_execution(workflow_id, run_id)
        return summarize(execution)

    async def is_active(self, workflow_id: str) -> bool:
        """Return ``True`` while an execution with ``workflow_id`` is open."""
        return await self._transport.is_execution_open(workflow_id)
