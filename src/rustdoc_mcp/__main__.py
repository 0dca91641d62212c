"""rustdoc MCP Server entry point."""

import asyncio
import sys


async def _run_once(argument: str) -> int:
    """Run a single rustdoc command and print its output."""
    from rustdoc_mcp.server import new_command, open_http_client, open_store, render_output

    store = open_store()
    try:
        async with open_http_client() as http_client:
            command = await new_command(store, http_client)
            try:
                output = await command.run(argument)
            except Exception as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
    finally:
        store.close()

    print(render_output(output))
    return 0


async def _complete_once(query: str) -> int:
    """Print completion candidates for a partial item path."""
    from rustdoc_mcp.server import new_command, open_http_client, open_store

    store = open_store()
    try:
        async with open_http_client() as http_client:
            command = await new_command(store, http_client)
            for candidate in await command.complete_argument(query):
                print(candidate)
    finally:
        store.close()
    return 0


def _cli() -> None:
    """CLI dispatcher: server (default), run, or complete subcommand."""
    if len(sys.argv) >= 2 and sys.argv[1] == "run":
        sys.exit(asyncio.run(_run_once(" ".join(sys.argv[2:]))))
    elif len(sys.argv) >= 2 and sys.argv[1] == "complete":
        sys.exit(asyncio.run(_complete_once(" ".join(sys.argv[2:]))))
    else:
        from rustdoc_mcp.server import main

        main()


if __name__ == "__main__":
    _cli()
