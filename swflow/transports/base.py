"""Base transport interface to the workflow service."""

from __future__ import annotations

import abc
from typing import List, Optional, Sequence

from ..contracts import ActivityTask, DecisionTask, WorkflowExecution, WorkflowType
from ..decisions import Decision


class BaseTransport(metaclass=abc.ABCMeta):
    """Abstract access to a durable workflow-execution service.

    The service owns queuing, leasing and durability; a transport only
    moves requests and tasks across that boundary.
    """

    def __init__(self, domain: str = "default") -> None:
        self.domain = domain

    async def connect(self) -> None:
        """Open connection to the service (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the service (no-op by default)."""
        pass

    @abc.abstractmethod
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
        """Start a workflow execution and return its run id.

        Raises:
            AlreadyStarted: If an open execution with ``workflow_id`` exists.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def poll_for_decision_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[DecisionTask]:
        """Return the next decision task, or ``None`` if the poll came back empty."""
        raise NotImplementedError

    @abc.abstractmethod
    async def respond_decision_task_completed(
        self, task_token: str, decisions: Sequence[Decision]
    ) -> None:
        """Submit the decisions taken for a decision task."""
        raise NotImplementedError

    @abc.abstractmethod
    async def poll_for_activity_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[ActivityTask]:
        """Return the next activity task, or ``None`` if the poll came back empty."""
        raise NotImplementedError

    @abc.abstractmethod
    async def respond_activity_task_completed(
        self, task_token: str, result: Optional[str] = None
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def respond_activity_task_failed(
        self,
        task_token: str,
        reason: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_workflow_execution(
        self, workflow_id: str, run_id: str
    ) -> WorkflowExecution:
        """Return an execution with its status and full history.

        Raises:
            NotFound: If the service has no record of the execution.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def is_execution_open(self, workflow_id: str) -> bool:
        """Return ``True`` if an open execution with ``workflow_id`` exists."""
        raise NotImplementedError

    @abc.abstractmethod
    async def register_domain(self, description: str, retention_days: int = 3) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def register_workflow_type(self, name: str, version: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def register_activity_type(self, name: str, version: str) -> None:
        raise NotImplementedError
