"""Resolution of logical units to physical task list names."""

from __future__ import annotations

import re
from typing import Optional

from .config import SwflowConfig
from .contracts import TaskOptions, WorkflowType
from .errors import MissingConfiguration, UnresolvedUnit

_UNIT_TOKEN = re.compile(r"\w+")


class TaskListResolver:
    """Compute the task lists that activities and decisions are queued on."""

    def __init__(self, config: SwflowConfig) -> None:
        self._config = config

    def resolve(self, unit: Optional[str], activity_group: Optional[str] = None) -> str:
        """Return the activity task list for ``unit``, qualified by ``activity_group``.

        Raises:
            MissingConfiguration: If no activity task list is configured for ``unit``.
        """
        task_list = self._config.activity_task_lists.get(unit) if unit else None
        if not task_list:
            raise MissingConfiguration(unit)
        if activity_group:
            task_list = f"{task_list}-{activity_group}"
        return task_list

    def resolve_for_options(
        self, options: TaskOptions, workflow_type: Optional[WorkflowType]
    ) -> str:
        """Resolve the activity task list for a task's decoded options."""
        unit = options.unit
        if unit:
            unit = str(unit)
        else:
            unit = guess_unit(workflow_type.name if workflow_type else None)
        activity_group = options.activity_group or self._config.activity_group
        return self.resolve(unit, str(activity_group) if activity_group else None)

    def decision_task_list(self, unit: Optional[str] = None) -> str:
        """Return the decision task list for ``unit``, falling back to the default.

        Raises:
            MissingConfiguration: If neither a per-unit nor a default list exists.
        """
        unit = unit if unit is not None else self._config.default_unit
        task_list = self._config.decision_task_lists.get(unit) or self._config.decision_task_list
        if not task_list:
            raise MissingConfiguration(unit, kind="decision")
        return task_list

    def activity_task_list(self) -> str:
        """Return the task list polled by this configuration's activity worker."""
        return self.resolve(self._config.default_unit, self._config.activity_group)


def guess_unit(workflow_type_name: Optional[str]) -> str:
    """Guess the owning unit from the leading word of a workflow type name.

    Transitional, until every client sends an explicit ``unit`` option.
    """
    match = _UNIT_TOKEN.match(workflow_type_name or "")
    if match is None:
        raise UnresolvedUnit(workflow_type_name)
    return match.group(0)
