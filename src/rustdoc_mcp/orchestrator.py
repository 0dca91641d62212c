"""Run a rustdoc command in two stages.

The background stage does every piece of I/O (store, disk, HTTP) in its
own task. Its single result is handed to the foreground stage, which only
assembles the ``CommandOutput``. Nothing else crosses between the two.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger

from rustdoc_mcp.command import IndexRequest, LookupRequest, parse_argument
from rustdoc_mcp.db import RustdocStore
from rustdoc_mcp.models import (
    CommandOutput,
    OutputSection,
    PlaceholderKind,
    ResolutionResult,
    RustdocSource,
    SectionPlaceholder,
)
from rustdoc_mcp.resolver import index_crate, resolve_docs
from rustdoc_mcp.workspace import Fs


class CancelFlag(Protocol):
    def is_set(self) -> bool: ...


class TaskState(Enum):
    IDLE = "idle"
    BACKGROUND_RUNNING = "background_running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    FINALIZED = "finalized"


def build_output(text: str, placeholder: SectionPlaceholder) -> CommandOutput:
    """Wrap text in a single section spanning all of it."""
    return CommandOutput(
        text=text,
        sections=[OutputSection(range=(0, len(text.encode("utf-8"))), placeholder=placeholder)],
        run_commands_in_text=False,
    )


def finalize(
    request: LookupRequest | IndexRequest, result: ResolutionResult | str
) -> CommandOutput:
    """Foreground stage: turn the background result into output."""
    if isinstance(request, IndexRequest):
        return build_output(
            result,
            SectionPlaceholder(
                kind=PlaceholderKind.INDEX,
                source=RustdocSource.LOCAL,
                crate_name=request.crate_name,
            ),
        )

    source, text = result
    return build_output(
        text,
        SectionPlaceholder(
            kind=PlaceholderKind.DOCS,
            source=source,
            crate_name=request.crate_name,
            module_path="::".join(request.item_path) or None,
        ),
    )


class RustdocCommand:
    """One invocation of the rustdoc command.

    The store is the process-wide instance, passed in rather than looked up.
    """

    name = "rustdoc"
    description = "insert Rust docs"
    menu_text = "Insert Rust Documentation"
    requires_argument = True

    def __init__(
        self,
        store: RustdocStore,
        fs: Fs,
        http_client: httpx.AsyncClient,
        workspace_root: Path | None = None,
    ):
        self._store = store
        self._fs = fs
        self._http_client = http_client
        self._workspace_root = workspace_root
        self.state = TaskState.IDLE

    async def _background(
        self, request: LookupRequest | IndexRequest
    ) -> ResolutionResult | str:
        if isinstance(request, IndexRequest):
            return await index_crate(
                self._store, self._fs, request.crate_name, self._workspace_root
            )
        return await resolve_docs(
            self._store,
            self._fs,
            self._http_client,
            request.crate_name,
            request.item_path,
            self._workspace_root,
        )

    def _transition(self, state: TaskState) -> None:
        logger.debug(f"rustdoc command: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, argument: str | None) -> CommandOutput:
        """Parse, resolve or index in the background, then assemble output.

        Argument errors are raised before any background work starts.
        Cancelling the caller cancels the background task with it. Each
        call starts over from ``IDLE``.
        """
        self.state = TaskState.IDLE
        request = parse_argument(argument)

        background = asyncio.create_task(self._background(request))
        self._transition(TaskState.BACKGROUND_RUNNING)
        try:
            result = await background
        except asyncio.CancelledError:
            background.cancel()
            self._transition(TaskState.CANCELLED)
            raise
        except Exception:
            self._transition(TaskState.FAILED)
            raise
        self._transition(TaskState.SUCCEEDED)

        output = finalize(request, result)
        self._transition(TaskState.FINALIZED)
        return output

    async def _complete(self, query: str, cancel: CancelFlag | None) -> list[str]:
        items = await self._store.search(query)
        if cancel is not None and cancel.is_set():
            return []
        return [f"{crate_name}::{item}" for crate_name, item in items]

    async def complete_argument(
        self, query: str, cancel: CancelFlag | None = None
    ) -> list[str]:
        """Completion candidates (``crate::item``) for a partial argument."""
        return await asyncio.create_task(self._complete(query, cancel))
