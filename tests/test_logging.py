import json
import logging

from depositlens.core.logging import JSONFormatter, get_logger


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("depositlens.test", logging.WARNING, __file__, 1, "dropped %d", (2,), None)
    record.dropped_rows = 2
    record.table = "outcomes"

    line = json.loads(JSONFormatter().format(record))

    assert line["level"] == "WARNING"
    assert line["message"] == "dropped 2"
    assert line["dropped_rows"] == 2
    assert line["table"] == "outcomes"
    assert "row_count" not in line


def test_get_logger_is_namespaced_and_single_handler():
    first = get_logger("unit")
    second = get_logger("unit")

    assert first is second
    assert first.name == "depositlens.unit"
    assert len(first.handlers) == 1
