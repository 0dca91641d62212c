"""Filesystem access and Cargo workspace discovery."""

import asyncio
from pathlib import Path
from typing import Protocol

from loguru import logger


class Fs(Protocol):
    """Protocol for the filesystem used by lookups and crawls."""

    async def load(self, path: Path) -> bytes:
        """Read a whole file. Raises ``OSError`` (e.g. FileNotFoundError)."""
        ...

    async def is_file(self, path: Path) -> bool: ...


class RealFs:
    """Local disk, with blocking reads pushed to a worker thread."""

    async def load(self, path: Path) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)

    async def is_file(self, path: Path) -> bool:
        return await asyncio.to_thread(Path(path).is_file)


async def find_manifest(
    fs: Fs, project_dirs: list[Path], manifest_name: str = "Cargo.toml"
) -> Path | None:
    """Locate the build manifest in the project's first directory.

    Only the first directory is consulted, matching how an editor treats its
    first worktree as the project root.
    """
    if not project_dirs:
        return None
    manifest = project_dirs[0] / manifest_name
    if await fs.is_file(manifest):
        return manifest.resolve()
    logger.debug(f"No {manifest_name} in {project_dirs[0]}")
    return None


async def find_workspace_root(
    fs: Fs, project_dirs: list[Path], manifest_name: str = "Cargo.toml"
) -> Path | None:
    """Directory holding the build manifest, or None when there is none."""
    manifest = await find_manifest(fs, project_dirs, manifest_name)
    return manifest.parent if manifest else None
