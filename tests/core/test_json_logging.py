import json
import logging
import sys

from core.logging import JSONFormatter


def _record(**extra):
    record = logging.LogRecord("salesflow", logging.WARNING, __file__, 10, "Refused %s on lead %s", ("CLOSED", "abc"), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_renders_one_json_object():
    payload = json.loads(JSONFormatter().format(_record()))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "salesflow"
    assert payload["message"] == "Refused CLOSED on lead abc"
    assert payload["timestamp"].endswith("+00:00")


def test_extra_fields_are_kept():
    payload = json.loads(JSONFormatter().format(_record(lead_id="abc", code="INVALID_TRANSITION")))

    assert payload["lead_id"] == "abc"
    assert payload["code"] == "INVALID_TRANSITION"
    assert "args" not in payload


def test_exception_is_formatted():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("salesflow", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in payload["exc_info"]
