"""Local ``cargo doc`` output: single-page lookups and a crawl provider.

Pages live under ``<workspace>/target/doc/<crate>/``. A module's page is
``<path>/index.html``, every other item is ``<path>/<kind>.<name>.html``.
"""

from pathlib import Path

from loguru import logger

from rustdoc_mcp.convert import RustdocItem, convert_rustdoc_to_markdown
from rustdoc_mcp.errors import LocalReadMiss
from rustdoc_mcp.workspace import Fs


def _is_plain_segment(segment: str) -> bool:
    return bool(segment) and segment not in (".", "..") and not any(
        sep in segment for sep in ("/", "\\", "\0")
    )


def local_doc_path(workspace_root: Path, crate_name: str, item_path: list[str]) -> Path:
    """``<root>/target/doc/<crate>/<item/path>/index.html``."""
    path = workspace_root / "target" / "doc" / crate_name
    if item_path:
        path = path / "/".join(item_path)
    return path / "index.html"


async def load_local_docs(
    fs: Fs, workspace_root: Path, crate_name: str, item_path: list[str]
) -> str:
    """Read and convert the locally generated page for an item.

    Raises:
        LocalReadMiss: No readable page at the derived path.
        ConversionFailure: The page exists but could not be converted.
    """
    if not all(_is_plain_segment(s) for s in [crate_name, *item_path]):
        raise LocalReadMiss(f"refusing to read outside target/doc: {item_path}")

    path = local_doc_path(workspace_root, crate_name, item_path)
    try:
        contents = await fs.load(path)
    except OSError as e:
        raise LocalReadMiss(f"no local docs at {path}: {e}") from e

    markdown, _items = convert_rustdoc_to_markdown(contents)
    logger.debug(f"Local docs HIT: {path}")
    return markdown


class LocalProvider:
    """Crawl provider over a workspace's ``target/doc`` tree."""

    def __init__(self, fs: Fs, workspace_root: Path):
        self._fs = fs
        self._doc_root = workspace_root / "target" / "doc"

    @property
    def doc_root(self) -> Path:
        return self._doc_root

    async def fetch_page(
        self, crate_name: str, item: RustdocItem | None = None
    ) -> str | None:
        """Return the page HTML, or None if it was never generated."""
        segments = [crate_name, *(item.path + (item.name,) if item else ())]
        if not all(_is_plain_segment(s) for s in segments):
            logger.warning(f"Refusing to read outside target/doc: {segments}")
            return None

        relative = item.url_path() if item else "index.html"
        path = self._doc_root / crate_name / relative
        try:
            contents = await self._fs.load(path)
        except OSError:
            return None
        return contents.decode("utf-8", errors="replace")
