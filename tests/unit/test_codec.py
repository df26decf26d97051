"""Tests for task input encoding."""

import json

import pytest

from swflow import codec
from swflow.contracts import TaskOptions
from swflow.errors import MalformedInput


def test_decode_object_form():
    options = codec.decode(
        json.dumps({"name": "report", "params": {"day": 1}, "unit": "reports", "interval": 60})
    )
    assert options.name == "report"
    assert options.params == {"day": 1}
    assert options.unit == "reports"
    assert options.interval == 60


def test_decode_keeps_unknown_keys():
    options = codec.decode(json.dumps({"name": "x", "priority": "high"}))
    assert options.to_dict() == {"name": "x", "priority": "high"}


def test_decode_legacy_array_with_name():
    options = codec.decode(json.dumps(["report", {"day": 1}]))
    assert options.name == "report"
    assert options.params == {"day": 1}


def test_decode_legacy_array_with_options_object():
    options = codec.decode(json.dumps([{"name": "report", "unit": "reports"}, [1, 2]]))
    assert options.name == "report"
    assert options.unit == "reports"
    assert options.params == [1, 2]


def test_decode_legacy_array_without_params():
    options = codec.decode(json.dumps(["report"]))
    assert options.name == "report"
    assert options.params is None
    assert "params" not in options.to_dict()


def test_decode_scalar_becomes_name():
    assert codec.decode('"report"').name == "report"


@pytest.mark.parametrize("raw", ["{broken", "", None])
def test_decode_rejects_malformed_input(raw):
    with pytest.raises(MalformedInput):
        codec.decode(raw)


def test_decode_lenient_returns_empty_options():
    assert codec.decode_lenient("{broken") == TaskOptions()


def test_encode_omits_unset_options():
    encoded = codec.encode(TaskOptions(name="report", params={"a": 1}))
    assert json.loads(encoded) == {"name": "report", "params": {"a": 1}}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ('{"a": 1}', {"a": 1}),
        ("[1, 2]", {}),
        ("not json", {}),
        ("", {}),
        (None, {}),
    ],
)
def test_parse_object(raw, expected):
    assert codec.parse_object(raw) == expected
