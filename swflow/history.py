"""Summaries of workflow executions derived from their history."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from . import codec
from .contracts import (
    TERMINAL_FAILURE_KINDS,
    EventKind,
    ExecutionStatus,
    ExecutionSummary,
    HistoryEvent,
    WorkflowExecution,
)

logger = logging.getLogger(__name__)


def summarize(execution: WorkflowExecution) -> ExecutionSummary:
    """Compute status, outcome and error of ``execution`` for callers of ``find``.

    Inconsistent or unparsable history degrades to a best-effort summary;
    this never raises for a well-formed :class:`WorkflowExecution`.
    """
    first_event = execution.events[0] if execution.events else None
    options = codec.decode_lenient(first_event.attribute("input") if first_event else None)
    summary: Dict[str, Any] = {
        "status": execution.status,
        "workflow_id": execution.workflow_id,
        "run_id": execution.run_id,
        "name": "" if options.name is None else str(options.name),
        "params": options.params,
    }

    if execution.status == ExecutionStatus.OPEN:
        pass
    elif execution.status == ExecutionStatus.COMPLETED:
        summary.update(_completion_details(execution))
    else:
        summary.update(_failure_details(execution))
    return ExecutionSummary(**summary)


def _completion_details(execution: WorkflowExecution) -> Dict[str, Any]:
    completed = _last_event(execution, (EventKind.WORKFLOW_EXECUTION_COMPLETED,))
    if completed is None:
        return {"status": ExecutionStatus.OPEN}
    return {"outcome": codec.parse_object(completed.attribute("result")).get("outcome")}


def _failure_details(execution: WorkflowExecution) -> Dict[str, Any]:
    terminal = _last_event(execution, TERMINAL_FAILURE_KINDS)
    if terminal is None:
        _log_missing_terminal_event(execution)
        return {
            "error": (
                f"Execution has finished with status {execution.status.value},"
                " but did not provide details."
            )
        }
    if terminal.kind == EventKind.WORKFLOW_EXECUTION_FAILED:
        details = codec.parse_object(terminal.attribute("details"))
        return {"error": details.get("error"), "exception": details.get("exception")}
    return {"error": terminal.event_type, "exception": terminal.event_type}


def _last_event(
    execution: WorkflowExecution, kinds: tuple[EventKind, ...]
) -> Optional[HistoryEvent]:
    for event in reversed(execution.events):
        if event.kind in kinds:
            return event
    return None


def _log_missing_terminal_event(execution: WorkflowExecution) -> None:
    # Diagnostics must not turn a status query into a failure.
    try:
        event_types = [event.event_type for event in execution.events]
        logger.warning(
            f"No terminal event for execution {execution.workflow_id} | "
            f"{execution.run_id}. Event types: {event_types}"
        )
    except Exception:
        pass
