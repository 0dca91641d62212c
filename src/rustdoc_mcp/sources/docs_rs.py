"""Remote documentation from docs.rs."""

import httpx
from loguru import logger

from rustdoc_mcp.config import settings
from rustdoc_mcp.convert import convert_rustdoc_to_markdown
from rustdoc_mcp.errors import RemoteStatusError


def docs_rs_url(
    crate_name: str,
    item_path: list[str],
    host: str | None = None,
    version: str | None = None,
) -> str:
    """``https://<host>/<crate>/<version>/<crate>/<item/path>``."""
    host = host or settings.docs_host
    version = version or settings.docs_version
    module_path = "/".join(item_path)
    return f"https://{host}/{crate_name}/{version}/{crate_name}/{module_path}"


async def fetch_docs_rs(
    client: httpx.AsyncClient, crate_name: str, item_path: list[str]
) -> str:
    """Fetch and convert an item page from docs.rs.

    A single GET, redirects followed, no retry. Transport errors from httpx
    propagate unchanged.

    Raises:
        RemoteStatusError: The host answered with a 4xx status.
        ConversionFailure: The body could not be converted.
    """
    url = docs_rs_url(crate_name, item_path)
    logger.debug(f"Fetching {url}")

    response = await client.get(url, follow_redirects=True)
    body = response.content

    if response.is_client_error:
        text = body.decode("utf-8", errors="replace")
        snippet = text[: settings.error_snippet_chars]
        raise RemoteStatusError(response.status_code, snippet)

    markdown, _items = convert_rustdoc_to_markdown(body)
    return markdown
