"""rustdoc MCP Server - Rust documentation lookup for AI agents."""

from importlib.metadata import version

from rustdoc_mcp.__main__ import _cli as main
from rustdoc_mcp.server import mcp

__version__ = version("rustdoc-mcp")
__all__ = ["mcp", "main", "__version__"]
