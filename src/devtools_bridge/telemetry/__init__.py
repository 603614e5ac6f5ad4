"""telemetry: best-effort JSONL event logging."""
from .logger import ToolEventLogger  # noqa: F401
