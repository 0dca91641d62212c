"""Resolve rustdoc for a crate item, and dispatch crate indexing.

Sources are tried strictly in order, never concurrently:

1. The store (previously indexed crates)
2. Local ``cargo doc`` output under the workspace root, when there is one
3. docs.rs

A miss in the first two falls through. Any failure in the last one, and
any conversion failure along the way, ends the resolution.
"""

from pathlib import Path

import httpx
from loguru import logger

from rustdoc_mcp.db import RustdocStore
from rustdoc_mcp.errors import LocalReadMiss, StoreMiss, WorkspaceRootNotFound
from rustdoc_mcp.models import ResolutionResult, RustdocSource
from rustdoc_mcp.sources.docs_rs import fetch_docs_rs
from rustdoc_mcp.sources.local import LocalProvider, load_local_docs
from rustdoc_mcp.workspace import Fs


async def resolve_docs(
    store: RustdocStore,
    fs: Fs,
    http_client: httpx.AsyncClient,
    crate_name: str,
    item_path: list[str],
    workspace_root: Path | None = None,
) -> ResolutionResult:
    """Return ``(source, markdown)`` for ``crate_name::item_path``."""
    try:
        docs = await store.load(crate_name, "::".join(item_path))
        return RustdocSource.LOCAL, docs
    except StoreMiss:
        pass

    if workspace_root is not None:
        try:
            docs = await load_local_docs(fs, workspace_root, crate_name, item_path)
            return RustdocSource.LOCAL, docs
        except LocalReadMiss as e:
            logger.debug(f"Local docs MISS: {e}")

    docs = await fetch_docs_rs(http_client, crate_name, item_path)
    return RustdocSource.DOCS_RS, docs


async def index_crate(
    store: RustdocStore,
    fs: Fs,
    crate_name: str,
    workspace_root: Path | None,
) -> str:
    """Crawl a crate's local docs into the store.

    Raises:
        WorkspaceRootNotFound: No Cargo workspace to read ``target/doc`` from.
    """
    if workspace_root is None:
        raise WorkspaceRootNotFound()

    provider = LocalProvider(fs, workspace_root)
    await store.index(crate_name, provider)
    return f"Indexed {crate_name}"
