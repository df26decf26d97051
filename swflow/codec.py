"""Encoding of the task options carried in an execution's ``input``."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from .contracts import TaskOptions
from .errors import MalformedInput


def decode(raw_input: Optional[str]) -> TaskOptions:
    """Parse the options stored in a task's *input* value.

    Besides the current object form, the legacy ``[name_or_object, params]``
    array form is accepted and normalized.

    Raises:
        MalformedInput: If ``raw_input`` is not valid JSON.
    """
    try:
        parsed = json.loads(raw_input)
    except (TypeError, ValueError) as exc:
        raise MalformedInput(raw_input, exc) from exc

    if isinstance(parsed, dict):
        return TaskOptions.model_validate(parsed)

    options, legacy_params = _split_legacy(parsed)
    if not isinstance(options, dict):
        options = {"name": options}
    if legacy_params is not None:
        options["params"] = legacy_params
    return TaskOptions.model_validate(options)


def _split_legacy(parsed: Any) -> tuple[Any, Any]:
    if isinstance(parsed, list):
        first = parsed[0] if len(parsed) > 0 else None
        second = parsed[1] if len(parsed) > 1 else None
        return first, second
    return parsed, None


def decode_lenient(raw_input: Optional[str]) -> TaskOptions:
    """Like :func:`decode`, but yield empty options for unparsable input."""
    try:
        return decode(raw_input)
    except MalformedInput:
        return TaskOptions()


def encode(options: Union[TaskOptions, Dict[str, Any]]) -> str:
    """Serialize options to the JSON stored as *input*."""
    if isinstance(options, TaskOptions):
        options = options.to_dict()
    return json.dumps(options)


def parse_object(raw: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON attribute, treating anything but an object as empty."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}
