"""rustdoc MCP Server - Main server definition."""

import json
import sys
from contextlib import asynccontextmanager

import httpx
from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from rustdoc_mcp.config import settings
from rustdoc_mcp.db import RustdocStore
from rustdoc_mcp.models import CommandOutput
from rustdoc_mcp.orchestrator import RustdocCommand
from rustdoc_mcp.workspace import RealFs, find_workspace_root

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

# Module-level state (set during lifespan)
_store: RustdocStore | None = None
_http_client: httpx.AsyncClient | None = None
_fs = RealFs()


def open_store() -> RustdocStore:
    """Create the process-wide store from settings."""
    return RustdocStore(
        settings.get_db_path(),
        search_limit=settings.search_limit,
        max_pages=settings.crawl_max_pages,
    )


def open_http_client() -> httpx.AsyncClient:
    """Create the shared HTTP client used for docs.rs fetches."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.user_agent},
    )


@asynccontextmanager
async def _lifespan(_server: FastMCP):
    """Server lifespan: open the store and HTTP client once, close on shutdown."""
    global _store, _http_client

    logger.info("Starting rustdoc MCP Server...")
    _store = open_store()
    _http_client = open_http_client()

    yield

    logger.info("Shutting down rustdoc MCP Server...")
    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _store:
        _store.close()
        _store = None


# Initialize MCP server
mcp = FastMCP(
    name="rustdoc",
    instructions=(
        "Rust documentation MCP Server. "
        "Use `rustdoc` with `crate::module::Item` to read docs "
        "(indexed store, then local cargo doc output, then docs.rs), "
        "or with `--index <crate>` to index a crate's local cargo doc output. "
        "Use `rustdoc_complete` to find item paths."
    ),
    lifespan=_lifespan,
)


def _error_message(exc: Exception) -> str:
    return f"Error: {exc}" if str(exc) else f"Error: {type(exc).__name__}"


async def new_command(
    store: RustdocStore, http_client: httpx.AsyncClient
) -> RustdocCommand:
    """Build a command invocation bound to the current workspace root."""
    workspace_root = await find_workspace_root(
        _fs, settings.get_workspace_dirs(), settings.manifest_name
    )
    return RustdocCommand(store, _fs, http_client, workspace_root)


def render_output(output: CommandOutput) -> str:
    """Plain-text rendering: one label line per section, then the text."""
    labels = [section.placeholder.label for section in output.sections]
    return "\n".join([*labels, "", output.text])


def _require_state() -> tuple[RustdocStore, httpx.AsyncClient]:
    if _store is None or _http_client is None:
        raise RuntimeError("server is not started")
    return _store, _http_client


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        openWorldHint=True,
        idempotentHint=True,
    ),
)
async def rustdoc(argument: str) -> str:
    """Insert Rust documentation.
    - `tokio::sync::Mutex`: docs for an item (crate root when no path)
    - `--index serde`: crawl serde's local `cargo doc` output into the store
    """
    try:
        store, http_client = _require_state()
        command = await new_command(store, http_client)
        output = await command.run(argument)
    except Exception as e:
        logger.error(f"rustdoc '{argument}' failed: {e}")
        return _error_message(e)
    return render_output(output)


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def rustdoc_complete(query: str) -> str:
    """Complete a partial item path against indexed crates, one match per line."""
    try:
        store, http_client = _require_state()
        command = await new_command(store, http_client)
        matches = await command.complete_argument(query)
    except Exception as e:
        logger.error(f"rustdoc completion '{query}' failed: {e}")
        return _error_message(e)
    return "\n".join(matches) if matches else "No matches"


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        openWorldHint=False,
    ),
)
async def rustdoc_store(action: str, crate: str | None = None) -> str:
    """Inspect or maintain the rustdoc store.

    Actions:
    - stats: Store path and counts
    - list: Indexed crates with item counts
    - remove: Drop an indexed crate (crate required)
    """
    if _store is None:
        return "Error: server is not started"

    match action:
        case "stats":
            return json.dumps(_store.stats(), ensure_ascii=False, indent=2)
        case "list":
            return json.dumps(_store.list_crates(), ensure_ascii=False, indent=2)
        case "remove":
            if not crate:
                return "Error: crate is required for remove action"
            if _store.remove_crate(crate):
                return f"Removed {crate}"
            return f"Error: {crate} is not indexed"
        case _:
            return (
                f"Error: Unknown action '{action}'. Valid actions: stats, list, remove"
            )


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
