"""Tests for execution summaries derived from history."""

import json

from swflow.contracts import ExecutionStatus, HistoryEvent, WorkflowExecution
from swflow.history import summarize

INPUT = json.dumps({"name": "report", "params": {"day": 1}})


def _execution(status, *events, input=INPUT):
    started = HistoryEvent(
        event_id=1, event_type="WorkflowExecutionStarted", attributes={"input": input}
    )
    history = [started] + [
        HistoryEvent(event_id=i + 2, event_type=event_type, attributes=attributes)
        for i, (event_type, attributes) in enumerate(events)
    ]
    return WorkflowExecution(
        workflow_id="reports;daily", run_id="run-1", status=status, events=history
    )


def test_open_execution():
    summary = summarize(_execution(ExecutionStatus.OPEN))
    assert summary.status == ExecutionStatus.OPEN
    assert summary.name == "report"
    assert summary.params == {"day": 1}
    assert summary.to_dict() == {
        "status": "open",
        "workflow_id": "reports;daily",
        "run_id": "run-1",
        "name": "report",
        "params": {"day": 1},
    }


def test_completed_execution_carries_outcome():
    summary = summarize(
        _execution(
            ExecutionStatus.COMPLETED,
            ("WorkflowExecutionCompleted", {"result": json.dumps({"outcome": "done"})}),
        )
    )
    assert summary.status == ExecutionStatus.COMPLETED
    assert summary.outcome == "done"


def test_completed_without_outcome_key():
    summary = summarize(
        _execution(
            ExecutionStatus.COMPLETED,
            ("WorkflowExecutionCompleted", {"result": "{}"}),
        )
    )
    assert summary.status == ExecutionStatus.COMPLETED
    assert summary.outcome is None


def test_completed_without_completion_event_is_still_open():
    summary = summarize(_execution(ExecutionStatus.COMPLETED))
    assert summary.status == ExecutionStatus.OPEN
    assert summary.outcome is None


def test_failed_execution_carries_error_and_exception():
    details = json.dumps({"error": "boom", "exception": "RuntimeError"})
    summary = summarize(
        _execution(
            ExecutionStatus.FAILED,
            ("WorkflowExecutionFailed", {"reason": "Exception", "details": details}),
        )
    )
    assert summary.status == ExecutionStatus.FAILED
    assert summary.error == "boom"
    assert summary.exception == "RuntimeError"


def test_canceled_execution_reports_event_type():
    summary = summarize(
        _execution(
            ExecutionStatus.CANCELED,
            ("WorkflowExecutionCanceled", {"details": "activity task timeout"}),
        )
    )
    assert summary.error == "WorkflowExecutionCanceled"
    assert summary.exception == "WorkflowExecutionCanceled"


def test_terminated_without_terminal_event():
    summary = summarize(_execution(ExecutionStatus.TERMINATED))
    assert summary.status == ExecutionStatus.TERMINATED
    assert summary.error == (
        "Execution has finished with status terminated, but did not provide details."
    )
    assert summary.exception is None


def test_legacy_input():
    summary = summarize(
        _execution(ExecutionStatus.OPEN, input=json.dumps(["report", {"day": 2}]))
    )
    assert summary.name == "report"
    assert summary.params == {"day": 2}


def test_malformed_input_does_not_raise():
    summary = summarize(_execution(ExecutionStatus.OPEN, input="{broken"))
    assert summary.name == ""
    assert summary.params is None
