"""Structured JSONL event logging for tool calls."""
import json
import logging
import os
import time

log = logging.getLogger(__name__)

# Arguments longer than this are truncated in the log (scripts, typed text).
_MAX_ARG_CHARS = 200


def _summarize(arguments: dict | None) -> dict:
    summary = {}
    for key, value in (arguments or {}).items():
        if isinstance(value, str) and len(value) > _MAX_ARG_CHARS:
            value = value[:_MAX_ARG_CHARS] + f"...(+{len(value) - _MAX_ARG_CHARS})"
        summary[key] = value
    return summary


class ToolEventLogger:
    """Writes one JSON line per event to ``<log_dir>/tools_<run_id>.jsonl``.

    All logging is best-effort; methods never raise.
    Supports context-manager protocol for automatic close.
    """

    def __init__(self, run_id: str, log_dir: str = "data/logs/tool_events"):
        self._run_id = run_id
        self._f = None
        try:
            os.makedirs(log_dir, exist_ok=True)
            path = os.path.join(log_dir, f"tools_{run_id}.jsonl")
            self._f = open(path, "a", encoding="utf-8")
        except Exception as e:
            log.warning(f"ToolEventLogger: failed to open log file: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _write(self, event: dict):
        if self._f is None:
            return
        try:
            event["ts"] = time.time()
            event["run_id"] = self._run_id
            self._f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
            self._f.flush()
        except Exception as e:
            log.warning(f"ToolEventLogger: write failed: {e}")

    def log_tool_call(self, tool: str, arguments: dict | None, status: str,
                      duration: float, error: str | None = None):
        """Log one tool invocation.

        ``status`` is ``ok`` or ``error``; ``error`` holds the message
        returned to the caller.
        """
        event = {
            "event": "tool_call",
            "tool": tool,
            "arguments": _summarize(arguments),
            "status": status,
            "duration": round(duration, 4),
        }
        if error is not None:
            event["error"] = error
        self._write(event)

    def log_session_event(self, event: str, **fields):
        """Log a lifecycle event (server start/stop, explicit close)."""
        self._write({"event": event, **fields})

    def close(self):
        if self._f is not None:
            try:
                self._f.flush()
                self._f.close()
            except Exception:
                pass
            self._f = None
