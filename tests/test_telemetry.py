"""Tests for ToolEventLogger: telemetry contract tests."""
import json
import os
import tempfile

from devtools_bridge.telemetry.logger import ToolEventLogger


def _read_events(tmpdir):
    files = os.listdir(tmpdir)
    assert len(files) == 1
    with open(os.path.join(tmpdir, files[0]), encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_tool_call_logging():
    """Tool calls are written to JSONL with correct fields."""
    with tempfile.TemporaryDirectory() as tmpdir:
        logger = ToolEventLogger("run123", log_dir=tmpdir)
        logger.log_tool_call("navigate", {"url": "https://example.com"}, "ok", 0.123456)
        logger.close()

        assert os.listdir(tmpdir) == ["tools_run123.jsonl"]
        [event] = _read_events(tmpdir)
        assert event["event"] == "tool_call"
        assert event["run_id"] == "run123"
        assert event["tool"] == "navigate"
        assert event["arguments"] == {"url": "https://example.com"}
        assert event["status"] == "ok"
        assert event["duration"] == 0.1235
        assert "error" not in event
        assert "ts" in event


def test_error_field_included_on_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        with ToolEventLogger("run456", log_dir=tmpdir) as logger:
            logger.log_tool_call("click", {"selector": "#x"}, "error", 0.5,
                                 error="Element not found: #x")
        [event] = _read_events(tmpdir)
        assert event["status"] == "error"
        assert event["error"] == "Element not found: #x"


def test_long_arguments_are_truncated():
    """Scripts and typed text are summarized, short values kept as-is."""
    with tempfile.TemporaryDirectory() as tmpdir:
        with ToolEventLogger("run789", log_dir=tmpdir) as logger:
            logger.log_tool_call("evaluate", {"script": "x" * 250, "n": 3}, "ok", 0.0)
        [event] = _read_events(tmpdir)
        script = event["arguments"]["script"]
        assert script.startswith("x" * 200)
        assert script.endswith("...(+50)")
        assert event["arguments"]["n"] == 3


def test_session_events_and_ordering():
    with tempfile.TemporaryDirectory() as tmpdir:
        with ToolEventLogger("r1", log_dir=tmpdir) as logger:
            logger.log_session_event("server_start", host="localhost", port=9222)
            logger.log_tool_call("list_tabs", {}, "ok", 0.01)
            logger.log_session_event("server_stop")
        events = _read_events(tmpdir)
        assert [e["event"] for e in events] == ["server_start", "tool_call", "server_stop"]
        assert events[0]["port"] == 9222


def test_appends_across_loggers_with_same_run_id():
    with tempfile.TemporaryDirectory() as tmpdir:
        for _ in range(2):
            with ToolEventLogger("same", log_dir=tmpdir) as logger:
                logger.log_session_event("tick")
        assert len(_read_events(tmpdir)) == 2


def test_unwritable_dir_never_raises():
    """Logger degrades to a no-op when the directory cannot be created."""
    with tempfile.TemporaryDirectory() as tmpdir:
        blocker = os.path.join(tmpdir, "file")
        with open(blocker, "w") as f:
            f.write("not a directory")
        logger = ToolEventLogger("r", log_dir=os.path.join(blocker, "logs"))
        logger.log_tool_call("screenshot", {}, "ok", 0.1)
        logger.log_session_event("server_stop")
        logger.close()
        logger.close()


def test_write_after_close_is_ignored():
    with tempfile.TemporaryDirectory() as tmpdir:
        logger = ToolEventLogger("r", log_dir=tmpdir)
        logger.close()
        logger.log_session_event("late")
        assert os.listdir(tmpdir) == ["tools_r.jsonl"]
        assert _read_events(tmpdir) == []
