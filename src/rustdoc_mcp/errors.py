"""Error taxonomy for rustdoc lookups and indexing.

``StoreMiss`` and ``LocalReadMiss`` are fallthrough signals: the resolver
swallows them and moves on to the next source. Everything else is terminal
and surfaces to the caller as-is.
"""

from httpx import TransportError


class RustdocError(Exception):
    """Base class for all rustdoc-mcp errors."""


class MissingArgument(RustdocError):
    def __init__(self, message: str = "missing crate name"):
        super().__init__(message)


class MissingIndexTarget(RustdocError):
    def __init__(self, message: str = "no crate name provided to --index"):
        super().__init__(message)


class WorkspaceRootNotFound(RustdocError):
    def __init__(self, message: str = "no Cargo workspace root found"):
        super().__init__(message)


class StoreMiss(RustdocError):
    """The store has no docs for the requested crate/item."""


class LocalReadMiss(RustdocError):
    """No readable ``cargo doc`` output for the requested item."""


class ConversionFailure(RustdocError):
    """Rustdoc HTML could not be converted to markdown."""


class StoreIndexError(RustdocError):
    """Crawling or persisting a crate into the store failed."""


class RemoteStatusError(RustdocError):
    """docs.rs answered with a client error status."""

    def __init__(self, code: int, snippet: str):
        self.code = code
        self.snippet = snippet
        super().__init__(f"status error {code}, response: {snippet!r}")


__all__ = [
    "ConversionFailure",
    "LocalReadMiss",
    "MissingArgument",
    "MissingIndexTarget",
    "RemoteStatusError",
    "RustdocError",
    "StoreIndexError",
    "StoreMiss",
    "TransportError",
    "WorkspaceRootNotFound",
]
