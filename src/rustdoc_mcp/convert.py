"""Rustdoc HTML to markdown conversion.

Isolates the documentation body of a rustdoc page, strips the generated
chrome (toolbars, source links, anchors, scripts), and renders the rest as
ATX markdown. Item tables are scanned for links so the crawler can walk a
crate's module tree.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum

from bs4 import BeautifulSoup
from loguru import logger
from markdownify import markdownify as md

from rustdoc_mcp.errors import ConversionFailure


class RustdocItemKind(Enum):
    """Item kinds as they appear in rustdoc file names (``struct.Foo.html``)."""

    MODULE = "mod"
    MACRO = "macro"
    STRUCT = "struct"
    ENUM = "enum"
    CONSTANT = "constant"
    TRAIT = "trait"
    FUNCTION = "fn"
    TYPE_ALIAS = "type"
    STATIC = "static"
    UNION = "union"
    ATTRIBUTE_MACRO = "attr"
    DERIVE_MACRO = "derive"
    PRIMITIVE = "primitive"
    KEYWORD = "keyword"
    TRAIT_ALIAS = "traitalias"


_KINDS_BY_PREFIX = {kind.value: kind for kind in RustdocItemKind}


@dataclass(frozen=True)
class RustdocItem:
    kind: RustdocItemKind
    path: tuple[str, ...]
    name: str

    def display(self) -> str:
        """Item path as written in Rust, e.g. ``sync::Mutex``."""
        return "::".join([*self.path, self.name])

    def url_path(self) -> str:
        """Page location relative to the crate's doc directory."""
        if self.kind is RustdocItemKind.MODULE:
            return "/".join([*self.path, self.name, "index.html"])
        return "/".join([*self.path, f"{self.kind.value}.{self.name}.html"])

    def rebased(self, parent: tuple[str, ...]) -> "RustdocItem":
        """Re-anchor an item extracted from the page of module *parent*."""
        return replace(self, path=(*parent, *self.path))


# sync/index.html, struct.Mutex.html, sync/struct.Mutex.html
_ITEM_HREF_RE = re.compile(
    r"^(?P<dirs>(?:[A-Za-z_]\w*/)*)"
    r"(?:(?P<kind>[a-z]+)\.(?P<name>[A-Za-z_]\w*)\.html|index\.html)$"
)

# Rustdoc chrome that carries no documentation
_REMOVE_SELECTORS = (
    "script",
    "style",
    "noscript",
    "nav",
    "rustdoc-toolbar",
    "rustdoc-search",
    ".sidebar",
    ".out-of-band",
    ".src",
    ".srclink",
    "a.anchor",
    "button",
    "#copy-path",
    ".since",
    ".rightside",
)

_CONTENT_SELECTORS = ("#main-content", "main", ".docblock")

_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def parse_item_href(href: str) -> RustdocItem | None:
    """Turn an item-table link into a ``RustdocItem`` relative to its page.

    Returns None for external links, parent-relative links (re-exports from
    elsewhere in the crate graph) and anything that is not an item page.
    """
    href = href.split("#", 1)[0].split("?", 1)[0]
    if not href or "://" in href or href.startswith(("/", "..")):
        return None

    match = _ITEM_HREF_RE.match(href)
    if not match:
        return None

    dirs = tuple(d for d in match.group("dirs").split("/") if d)
    kind_prefix = match.group("kind")
    if kind_prefix is None:
        # Module page: the module name is the last directory
        if not dirs:
            return None
        return RustdocItem(RustdocItemKind.MODULE, dirs[:-1], dirs[-1])

    kind = _KINDS_BY_PREFIX.get(kind_prefix)
    if kind is None or kind is RustdocItemKind.MODULE:
        return None
    return RustdocItem(kind, dirs, match.group("name"))


def _extract_items(soup: BeautifulSoup) -> list[RustdocItem]:
    items: list[RustdocItem] = []
    seen: set[RustdocItem] = set()
    for link in soup.select(".item-table a[href]"):
        item = parse_item_href(str(link["href"]))
        if item and item not in seen:
            seen.add(item)
            items.append(item)
    return items


def convert_rustdoc_to_markdown(html: bytes | str) -> tuple[str, list[RustdocItem]]:
    """Convert a rustdoc page to markdown.

    Returns:
        Tuple of (markdown, items listed in the page's item tables).

    Raises:
        ConversionFailure: The page could not be parsed or has no content.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as e:
        raise ConversionFailure(f"failed to parse rustdoc HTML: {e}") from e

    # Collect items before stripping, item tables live inside the content
    items = _extract_items(soup)

    for selector in _REMOVE_SELECTORS:
        for element in soup.select(selector):
            element.decompose()

    content = None
    for selector in _CONTENT_SELECTORS:
        content = soup.select_one(selector)
        if content:
            break
    if content is None:
        content = soup.body if soup.body else soup

    try:
        markdown = md(str(content), heading_style="ATX", code_language="rust")
    except Exception as e:
        raise ConversionFailure(f"failed to render markdown: {e}") from e

    markdown = _EXCESS_NEWLINES_RE.sub("\n\n", markdown).strip()
    if not markdown:
        raise ConversionFailure("rustdoc page has no content")

    logger.debug(f"Converted rustdoc page ({len(markdown)} chars, {len(items)} items)")
    return markdown, items
