"""
Unit tests for JSON log formatting and correlation IDs.
"""
import json
import logging
import sys
from datetime import date

import pytest

from tiffinos.lib.logging import JSONFormatter, get_correlation_id, set_correlation_id


def make_record(message: str, **extra) -> logging.LogRecord:
    return logging.getLogger("tiffinos.test").makeRecord(
        "tiffinos.test", logging.INFO, __file__, 1, message, None, None, extra=extra,
    )


@pytest.fixture(autouse=True)
def clear_correlation_id():
    yield
    set_correlation_id(None)


@pytest.mark.unit
def test_formats_record_as_json():
    output = json.loads(JSONFormatter().format(make_record("Payment recorded", amount=500)))

    assert output["level"] == "INFO"
    assert output["logger"] == "tiffinos.test"
    assert output["message"] == "Payment recorded"
    assert output["amount"] == 500
    assert output["timestamp"].endswith("Z")
    assert "correlation_id" not in output


@pytest.mark.unit
def test_includes_correlation_id_from_context():
    set_correlation_id("req-42")

    output = json.loads(JSONFormatter().format(make_record("Customer created")))

    assert get_correlation_id() == "req-42"
    assert output["correlation_id"] == "req-42"


@pytest.mark.unit
def test_non_json_values_are_stringified():
    output = json.loads(JSONFormatter().format(make_record("Marked all present", date=date(2025, 3, 15))))

    assert output["date"] == "2025-03-15"


@pytest.mark.unit
def test_exception_is_rendered():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("tiffinos.test").makeRecord(
            "tiffinos.test", logging.ERROR, __file__, 1, "Unhandled", None, exc_info=sys.exc_info(),
        )

    output = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: boom" in output["exception"]
