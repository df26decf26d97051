"""In-memory workflow service for tests and local runs."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Sequence, Set, Tuple

from ..contracts import (
    ActivityTask,
    DecisionTask,
    ExecutionStatus,
    HistoryEvent,
    WorkflowExecution,
    WorkflowType,
)
from ..decisions import (
    CancelWorkflowExecution,
    CompleteWorkflowExecution,
    ContinueAsNewWorkflowExecution,
    Decision,
    FailWorkflowExecution,
    NoOp,
    ScheduleActivity,
    StartTimer,
)
from ..errors import AlreadyStarted, NotFound
from .base import BaseTransport

logger = logging.getLogger(__name__)

ExecutionKey = Tuple[str, str]


class _Execution:
    """Mutable service-side record of one workflow execution."""

    def __init__(
        self, workflow_id: str, run_id: str, workflow_type: WorkflowType, task_list: str
    ) -> None:
        self.workflow_id = workflow_id
        self.run_id = run_id
        self.workflow_type = workflow_type
        self.task_list = task_list
        self.status = ExecutionStatus.OPEN
        self.events: List[HistoryEvent] = []
        self.delivered = 0
        self.decision_token: Optional[str] = None

    @property
    def key(self) -> ExecutionKey:
        return (self.workflow_id, self.run_id)

    @property
    def is_open(self) -> bool:
        return self.status == ExecutionStatus.OPEN

    def append(self, event_type: str, **attributes: Any) -> HistoryEvent:
        event = HistoryEvent(
            event_id=len(self.events) + 1,
            event_type=event_type,
            attributes={k: v for k, v in attributes.items() if v is not None},
        )
        self.events.append(event)
        return event

    def snapshot(self) -> WorkflowExecution:
        return WorkflowExecution(
            workflow_id=self.workflow_id,
            run_id=self.run_id,
            status=self.status,
            workflow_type=self.workflow_type,
            events=list(self.events),
        )


class InMemoryTransport(BaseTransport):
    """Simulate the workflow service inside the current process.

    Histories are append-only, decision and activity tasks are queued per
    task list, and timers only fire when :meth:`fire_timers` is called.
    An execution stays queued for decisions until a decision task for it is
    answered, so a decision task that is never answered is handed out again
    by a later poll, with the same new events.
    """

    def __init__(self, domain: str = "default", poll_interval: float = 0.1) -> None:
        super().__init__(domain)
        self._poll_interval = poll_interval
        self._executions: Dict[ExecutionKey, _Execution] = {}
        self._decision_queues: Dict[str, Deque[ExecutionKey]] = defaultdict(deque)
        self._activity_queues: Dict[str, Deque[ActivityTask]] = defaultdict(deque)
        self._decision_tokens: Dict[str, Tuple[ExecutionKey, int]] = {}
        self._activity_tokens: Dict[str, Tuple[ExecutionKey, int]] = {}
        self._timers: List[Tuple[ExecutionKey, str, int]] = []
        self._lock = asyncio.Lock()
        self.domains: Set[str] = set()
        self.workflow_types: Set[Tuple[str, str]] = set()
        self.activity_types: Set[Tuple[str, str]] = set()

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
        async with self._lock:
            if self._find_open(workflow_id) is not None:
                raise AlreadyStarted(workflow_id)
            execution = self._start(
                workflow_id,
                workflow_type,
                task_list=task_list,
                input=input,
                tag_list=list(tag_list),
                child_policy=child_policy,
                execution_start_to_close_timeout=str(execution_start_to_close_timeout),
                task_start_to_close_timeout=str(task_start_to_close_timeout),
            )
        logger.info(f"Started workflow execution {workflow_id} run {execution.run_id}")
        return execution.run_id

    async def poll_for_decision_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[DecisionTask]:
        async with self._lock:
            queue = self._decision_queues[task_list]
            while queue:
                key = queue.popleft()
                execution = self._executions[key]
                if not execution.is_open:
                    continue
                # Stays queued behind the others until answered
                queue.append(key)
                if execution.decision_token is not None:
                    self._decision_tokens.pop(execution.decision_token, None)
                upto = len(execution.events)
                token = uuid.uuid4().hex
                execution.decision_token = token
                self._decision_tokens[token] = (key, upto)
                return DecisionTask(
                    task_token=token,
                    workflow_id=execution.workflow_id,
                    run_id=execution.run_id,
                    workflow_type=execution.workflow_type,
                    events=list(execution.events[:upto]),
                    new_events=list(execution.events[execution.delivered : upto]),
                )
        await asyncio.sleep(self._poll_interval)
        return None

    async def respond_decision_task_completed(
        self, task_token: str, decisions: Sequence[Decision]
    ) -> None:
        async with self._lock:
            entry = self._decision_tokens.pop(task_token, None)
            if entry is None:
                raise ValueError(f"Unknown decision task token: {task_token}")
            key, upto = entry
            execution = self._executions[key]
            execution.decision_token = None
            execution.delivered = upto
            queue = self._decision_queues[execution.task_list]
            if key in queue:
                queue.remove(key)
            arrived_meanwhile = len(execution.events) > upto
            for decision in decisions:
                if not execution.is_open:
                    logger.warning(
                        f"Ignoring {decision.decision_type} for closed execution {key}"
                    )
                    continue
                self._apply(execution, decision)
            if arrived_meanwhile and execution.is_open:
                self._schedule_decision(execution)

    async def poll_for_activity_task(
        self, task_list: str, identity: Optional[str] = None
    ) -> Optional[ActivityTask]:
        async with self._lock:
            queue = self._activity_queues[task_list]
            if queue:
                return queue.popleft()
        await asyncio.sleep(self._poll_interval)
        return None

    async def respond_activity_task_completed(
        self, task_token: str, result: Optional[str] = None
    ) -> None:
        async with self._lock:
            execution, scheduled_event_id = self._take_activity(task_token)
            if execution.is_open:
                execution.append(
                    "ActivityTaskCompleted",
                    result=result,
                    scheduled_event_id=scheduled_event_id,
                )
                self._schedule_decision(execution)

    async def respond_activity_task_failed(
        self,
        task_token: str,
        reason: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        async with self._lock:
            execution, scheduled_event_id = self._take_activity(task_token)
            if execution.is_open:
                execution.append(
                    "ActivityTaskFailed",
                    reason=reason,
                    details=details,
                    scheduled_event_id=scheduled_event_id,
                )
                self._schedule_decision(execution)

    async def get_workflow_execution(
        self, workflow_id: str, run_id: str
    ) -> WorkflowExecution:
        async with self._lock:
            execution = self._executions.get((workflow_id, run_id))
            if execution is None:
                raise NotFound(workflow_id, run_id)
            return execution.snapshot()

    async def is_execution_open(self, workflow_id: str) -> bool:
        async with self._lock:
            return self._find_open(workflow_id) is not None

    async def open_execution(self, workflow_id: str) -> Optional[WorkflowExecution]:
        """Return the open execution for ``workflow_id``, if any."""
        async with self._lock:
            execution = self._find_open(workflow_id)
            return execution.snapshot() if execution else None

    async def register_domain(self, description: str, retention_days: int = 3) -> None:
        self.domains.add(self.domain)

    async def register_workflow_type(self, name: str, version: str) -> None:
        self.workflow_types.add((name, version))

    async def register_activity_type(self, name: str, version: str) -> None:
        self.activity_types.add((name, version))

    # ------------------------------------------------------------------
    async def fire_timers(self) -> int:
        """Fire every pending timer; return how many fired."""
        async with self._lock:
            timers, self._timers = self._timers, []
            fired = 0
            for key, timer_id, started_event_id in timers:
                execution = self._executions[key]
                if not execution.is_open:
                    continue
                execution.append(
                    "TimerFired", timer_id=timer_id, started_event_id=started_event_id
                )
                self._schedule_decision(execution)
                fired += 1
            return fired

    async def time_out_activity_tasks(self) -> int:
        """Time out every activity task not yet reported; return how many."""
        async with self._lock:
            tokens, self._activity_tokens = self._activity_tokens, {}
            for queue in self._activity_queues.values():
                queue.clear()
            timed_out = 0
            for key, scheduled_event_id in tokens.values():
                execution = self._executions[key]
                if not execution.is_open:
                    continue
                execution.append(
                    "ActivityTaskTimedOut",
                    timeout_type="SCHEDULE_TO_START",
                    scheduled_event_id=scheduled_event_id,
                )
                self._schedule_decision(execution)
                timed_out += 1
            return timed_out

    # ------------------------------------------------------------------
    def _find_open(self, workflow_id: str) -> Optional[_Execution]:
        for execution in self._executions.values():
            if execution.workflow_id == workflow_id and execution.is_open:
                return execution
        return None

    def _start(
        self, workflow_id: str, workflow_type: WorkflowType, task_list: str, **attributes: Any
    ) -> _Execution:
        execution = _Execution(workflow_id, uuid.uuid4().hex, workflow_type, task_list)
        execution.append(
            "WorkflowExecutionStarted",
            task_list=task_list,
            workflow_type={"name": workflow_type.name, "version": workflow_type.version},
            **attributes,
        )
        self._executions[execution.key] = execution
        self._schedule_decision(execution)
        return execution

    def _schedule_decision(self, execution: _Execution) -> None:
        queue = self._decision_queues[execution.task_list]
        if execution.key not in queue:
            queue.append(execution.key)

    def _take_activity(self, task_token: str) -> Tuple[_Execution, int]:
        entry = self._activity_tokens.pop(task_token, None)
        if entry is None:
            raise ValueError(f"Unknown activity task token: {task_token}")
        key, scheduled_event_id = entry
        return self._executions[key], scheduled_event_id

    def _apply(self, execution: _Execution, decision: Decision) -> None:
        match decision:
            case NoOp():
                return
            case ScheduleActivity():
                event = execution.append(
                    "ActivityTaskScheduled",
                    activity_id=decision.activity_id,
                    activity_type=decision.activity_type.model_dump(),
                    input=decision.input,
                    task_list=decision.task_list,
                )
                token = uuid.uuid4().hex
                self._activity_tokens[token] = (execution.key, event.event_id)
                self._activity_queues[decision.task_list].append(
                    ActivityTask(
                        task_token=token,
                        activity_id=decision.activity_id,
                        activity_type=decision.activity_type,
                        input=decision.input,
                        workflow_id=execution.workflow_id,
                        run_id=execution.run_id,
                    )
                )
            case StartTimer():
                event = execution.append(
                    "TimerStarted",
                    timer_id=decision.timer_id,
                    start_to_fire_timeout=str(decision.seconds),
                    control=decision.control,
                )
                self._timers.append((execution.key, decision.timer_id, event.event_id))
            case CompleteWorkflowExecution():
                execution.append("WorkflowExecutionCompleted", result=decision.result)
                execution.status = ExecutionStatus.COMPLETED
            case FailWorkflowExecution():
                execution.append(
                    "WorkflowExecutionFailed",
                    reason=decision.reason,
                    details=decision.details,
                )
                execution.status = ExecutionStatus.FAILED
            case CancelWorkflowExecution():
                execution.append("WorkflowExecutionCanceled", details=decision.details)
                execution.status = ExecutionStatus.CANCELED
            case ContinueAsNewWorkflowExecution():
                self._continue_as_new(execution, decision)

    def _continue_as_new(
        self, execution: _Execution, decision: ContinueAsNewWorkflowExecution
    ) -> None:
        started = execution.events[0].attributes
        successor = _Execution(
            execution.workflow_id,
            uuid.uuid4().hex,
            execution.workflow_type,
            decision.task_list or execution.task_list,
        )
        execution.append(
            "WorkflowExecutionContinuedAsNew", new_execution_run_id=successor.run_id
        )
        execution.status = ExecutionStatus.CONTINUED_AS_NEW
        successor.append(
            "WorkflowExecutionStarted",
            task_list=successor.task_list,
            workflow_type=started.get("workflow_type"),
            input=decision.input,
            tag_list=decision.tag_list,
            child_policy=decision.child_policy,
            execution_start_to_close_timeout=_text(
                decision.execution_start_to_close_timeout
            ),
            task_start_to_close_timeout=_text(decision.task_start_to_close_timeout),
            continued_execution_run_id=execution.run_id,
        )
        self._executions[successor.key] = successor
        self._schedule_decision(successor)


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)
