"""Tests for task list resolution."""

import pytest

from swflow.config import SwflowConfig
from swflow.contracts import TaskOptions, WorkflowType
from swflow.errors import MissingConfiguration, UnresolvedUnit
from swflow.task_lists import TaskListResolver, guess_unit


def _resolver(**overrides) -> TaskListResolver:
    fields = {
        "unit": "reports",
        "activity_task_lists": {"reports": "reports-atl", "mail": "mail-atl"},
        "decision_task_list": "default-dtl",
        "decision_task_lists": {"mail": "mail-dtl"},
    }
    fields.update(overrides)
    return TaskListResolver(SwflowConfig(**fields))


def test_resolve_plain_unit():
    assert _resolver().resolve("mail") == "mail-atl"


def test_resolve_with_activity_group():
    assert _resolver().resolve("mail", "fast") == "mail-atl-fast"


def test_resolve_unknown_unit_raises():
    with pytest.raises(MissingConfiguration) as exc_info:
        _resolver().resolve("unknown")
    assert exc_info.value.unit == "unknown"


def test_resolve_for_options_prefers_explicit_unit():
    options = TaskOptions(unit="mail")
    assert _resolver().resolve_for_options(options, WorkflowType(name="reports")) == "mail-atl"


def test_resolve_for_options_guesses_unit():
    options = TaskOptions(name="x")
    workflow_type = WorkflowType(name="reports-workflow")
    assert _resolver().resolve_for_options(options, workflow_type) == "reports-atl"


def test_resolve_for_options_option_group_beats_configured_group():
    resolver = _resolver(activity_group="slow")
    assert resolver.resolve_for_options(TaskOptions(unit="mail"), None) == "mail-atl-slow"
    options = TaskOptions(unit="mail", activity_group="fast")
    assert resolver.resolve_for_options(options, None) == "mail-atl-fast"


def test_decision_task_list_per_unit_and_fallback():
    resolver = _resolver()
    assert resolver.decision_task_list("mail") == "mail-dtl"
    assert resolver.decision_task_list("reports") == "default-dtl"
    assert resolver.decision_task_list() == "default-dtl"


def test_decision_task_list_missing_raises():
    resolver = _resolver(decision_task_list=None)
    with pytest.raises(MissingConfiguration) as exc_info:
        resolver.decision_task_list()
    assert exc_info.value.kind == "decision"


def test_activity_task_list_uses_configured_unit_and_group():
    assert _resolver().activity_task_list() == "reports-atl"
    assert _resolver(activity_group="fast").activity_task_list() == "reports-atl-fast"


@pytest.mark.parametrize(
    "name,unit",
    [("reports-workflow", "reports"), ("mail", "mail"), ("unit_1 stuff", "unit_1")],
)
def test_guess_unit(name, unit):
    assert guess_unit(name) == unit


@pytest.mark.parametrize("name", ["-workflow", "", None])
def test_guess_unit_without_leading_token(name):
    with pytest.raises(UnresolvedUnit):
        guess_unit(name)
