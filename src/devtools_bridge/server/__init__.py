"""server: MCP tool schemas, dispatch and the stdio entry point."""
from .tools import create_tools, handle_tool_call  # noqa: F401
