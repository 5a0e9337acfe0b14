# src/bookcatalog/tests/test_logging/test_formatters.py
import json
import logging

from bookcatalog.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record(level=logging.INFO):
    return logging.LogRecord("bookcatalog", level, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.isbn = "0-13-000001-1"
    rec.operation_id = "op-1"
    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["operation_id"] == "op-1"
    assert data["isbn"] == "0-13-000001-1"
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert isinstance(data["obj"], str)


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        import sys
        rec = logging.LogRecord("bookcatalog", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert "ValueError: boom" in json.dumps(data)


def test_color_formatter_restores_levelname():
    rec = make_record(logging.ERROR)
    out = ColorFormatter("%(levelname)s %(operation_id)s %(message)s").format(rec)

    assert "hello tester" in out
    assert out.rstrip().endswith("- hello tester")
    assert rec.levelname == "ERROR"
