"""Decision engine: turns new history events into the next decisions.

The engine keeps no state between calls. Everything it needs is read from
the history handed to it, in particular the execution's first event, whose
``input`` carries the options the execution was started with.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from . import codec
from .config import SwflowConfig
from .contracts import (
    ActivityType,
    DecisionTask,
    EventKind,
    HistoryEvent,
    TaskOptions,
    WorkflowType,
)
from .decisions import (
    CancelWorkflowExecution,
    CompleteWorkflowExecution,
    ContinueAsNewWorkflowExecution,
    Decision,
    FailWorkflowExecution,
    NoOp,
    ScheduleActivity,
    StartTimer,
)
from .notify import LoggingNotifier, Notifier
from .task_lists import TaskListResolver

logger = logging.getLogger(__name__)

RETRY = "Retry"
"""Activity failure *reason* requesting an immediate reschedule."""

CONTINUE_AS_NEW_ATTRIBUTES = (
    "child_policy",
    "execution_start_to_close_timeout",
    "input",
    "tag_list",
    "task_list",
    "task_start_to_close_timeout",
)

RESTART_KEYS = ("seconds_until_restart", "perform_again")


class DecisionEngine:
    """Interpret history events and produce one decision per event."""

    def __init__(
        self,
        config: SwflowConfig,
        notifier: Optional[Notifier] = None,
        resolver: Optional[TaskListResolver] = None,
    ) -> None:
        self._config = config
        self._notifier = notifier or LoggingNotifier()
        self._resolver = resolver or TaskListResolver(config)

    def decide(self, task: DecisionTask) -> List[Decision]:
        """Process a decision task's new events in the order they were appended."""
        return [
            self.process(event, task.events, task.workflow_type, task.workflow_id)
            for event in task.new_events
        ]

    def process(
        self,
        event: HistoryEvent,
        events: Sequence[HistoryEvent],
        workflow_type: Optional[WorkflowType] = None,
        workflow_id: Optional[str] = None,
    ) -> Decision:
        """Return the decision for a single new ``event`` of the history ``events``."""
        logger.debug(f"processing event {event.event_id} {event.event_type}")
        first_event = events[0] if events else event

        match event.kind:
            case EventKind.WORKFLOW_EXECUTION_STARTED:
                return self.schedule(event, workflow_type)
            case EventKind.ACTIVITY_TASK_FAILED:
                if event.attribute("reason") == RETRY:
                    return self.schedule(first_event, workflow_type)
                return self.start_timer(events) or FailWorkflowExecution(
                    reason=event.attribute("reason"),
                    details=event.attribute("details"),
                )
            case EventKind.ACTIVITY_TASK_COMPLETED:
                result = codec.parse_object(event.attribute("result"))
                return self.start_timer(events, result) or CompleteWorkflowExecution(
                    result=event.attribute("result")
                )
            case EventKind.ACTIVITY_TASK_TIMED_OUT:
                self._notifier.notify(
                    "Activity task timed out. Possible cause: all workers busy",
                    workflow_id=workflow_id,
                    event_id=event.event_id,
                )
                return self.start_timer(events) or CancelWorkflowExecution(
                    details="activity task timeout"
                )
            case EventKind.TIMER_FIRED:
                return self.retry_or_continue_as_new(event, events, workflow_type)
            case _:
                return NoOp()

    def schedule(
        self, data_event: HistoryEvent, workflow_type: Optional[WorkflowType] = None
    ) -> ScheduleActivity:
        """Schedule the activity described by ``data_event``'s input.

        Raises:
            MalformedInput: If the input is not JSON.
            MissingConfiguration: If no task list is configured for the unit.
            UnresolvedUnit: If the unit cannot be guessed from the workflow type.
        """
        raw_input = data_event.attribute("input")
        options = codec.decode(raw_input)
        task_list = self._resolver.resolve_for_options(options, workflow_type)
        return ScheduleActivity(
            activity_type=ActivityType(
                name=self._config.activity_name, version=self._config.type_version
            ),
            input=raw_input,
            task_list=task_list,
        )

    def start_timer(
        self, events: Sequence[HistoryEvent], result: Optional[Dict[str, Any]] = None
    ) -> Optional[StartTimer]:
        """Return a timer decision if a delay was requested or configured.

        ``result`` travels along as the timer's control payload, so that the
        eventual ``TimerFired`` can tell a retry from a restart.
        """
        result = result or {}
        interval = result.get("seconds_until_retry")
        if interval is None:
            interval = result.get("seconds_until_restart")
        if interval is None:
            interval = self._original_options(events).interval

        seconds = _seconds(interval)
        if not seconds or seconds <= 0:
            return None
        return StartTimer(seconds=seconds, control=json.dumps(result))

    def retry_or_continue_as_new(
        self,
        event: HistoryEvent,
        events: Sequence[HistoryEvent],
        workflow_type: Optional[WorkflowType] = None,
    ) -> Decision:
        original_event = events[0] if events else event
        options = self._original_options(events)
        control = self._timer_control(event, events)
        restart = any(control.get(key) is not None for key in RESTART_KEYS)
        if options.interval is not None or restart:
            return self.continue_as_new(original_event)
        return self.schedule(original_event, workflow_type)

    def continue_as_new(self, original_event: HistoryEvent) -> ContinueAsNewWorkflowExecution:
        attributes = {
            key: original_event.attributes[key]
            for key in CONTINUE_AS_NEW_ATTRIBUTES
            if key in original_event.attributes
        }
        return ContinueAsNewWorkflowExecution(**attributes)

    def _original_options(self, events: Sequence[HistoryEvent]) -> TaskOptions:
        if not events:
            return TaskOptions()
        return codec.decode_lenient(events[0].attribute("input"))

    def _timer_control(
        self, event: HistoryEvent, events: Sequence[HistoryEvent]
    ) -> Dict[str, Any]:
        started_event_id = event.attribute("started_event_id")
        for candidate in events:
            if candidate.event_id == started_event_id:
                return codec.parse_object(candidate.attribute("control"))
        return {}


def _seconds(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None
