"""Crawl a crate's rustdoc pages through a provider.

Starts at the crate root page and walks the item tables breadth-first.
Each item is visited at most once and the crawl stops after ``max_pages``
pages. Only the root page is mandatory: a sub-page that is missing or
fails to convert is logged and skipped.
"""

from collections import deque
from typing import Protocol

from loguru import logger

from rustdoc_mcp.convert import RustdocItem, RustdocItemKind, convert_rustdoc_to_markdown
from rustdoc_mcp.errors import ConversionFailure, StoreIndexError


class CrawlProvider(Protocol):
    """Protocol for page sources used when indexing a crate."""

    async def fetch_page(
        self, crate_name: str, item: RustdocItem | None = None
    ) -> str | None:
        """Return page HTML for *item* (crate root when None), or None."""
        ...


async def crawl_crate(
    crate_name: str, provider: CrawlProvider, max_pages: int = 5000
) -> dict[str, str]:
    """Crawl a crate into a mapping of item key -> markdown.

    Keys are ``::``-joined item paths; the crate root is ``""``.

    Raises:
        StoreIndexError: The crate root page is missing or unconvertible.
    """
    root_html = await provider.fetch_page(crate_name, None)
    if root_html is None:
        raise StoreIndexError(f"no docs found for crate {crate_name}")

    try:
        root_markdown, root_items = convert_rustdoc_to_markdown(root_html)
    except ConversionFailure as e:
        raise StoreIndexError(f"failed to convert {crate_name} root page: {e}") from e

    docs: dict[str, str] = {"": root_markdown}
    seen: set[RustdocItem] = set(root_items)
    queue: deque[RustdocItem] = deque(root_items)
    pages = 1

    while queue and pages < max_pages:
        item = queue.popleft()
        html = await provider.fetch_page(crate_name, item)
        pages += 1
        if html is None:
            logger.warning(f"Skipping {crate_name}::{item.display()}: page not found")
            continue

        try:
            markdown, items = convert_rustdoc_to_markdown(html)
        except ConversionFailure as e:
            logger.warning(f"Skipping {crate_name}::{item.display()}: {e}")
            continue

        docs.setdefault(item.display(), markdown)

        # Links on a module page are relative to that module's directory
        if item.kind is RustdocItemKind.MODULE:
            parent = (*item.path, item.name)
            for child in items:
                child = child.rebased(parent)
                if child not in seen:
                    seen.add(child)
                    queue.append(child)

    if queue:
        logger.warning(
            f"Crawl of {crate_name} stopped at {max_pages} pages "
            f"({len(queue)} items not visited)"
        )
    logger.info(f"Crawled {crate_name}: {len(docs)} items from {pages} pages")
    return docs
