"""Render-agnostic result types shared by the resolver and its adapters."""

from dataclasses import dataclass, field
from enum import Enum


class RustdocSource(Enum):
    """Where a piece of documentation came from."""

    # Local `cargo doc` output or the store
    LOCAL = "local"
    DOCS_RS = "docs.rs"


ResolutionResult = tuple[RustdocSource, str]


class PlaceholderKind(Enum):
    DOCS = "rustdoc"
    INDEX = "rustdoc index"


@dataclass(frozen=True)
class SectionPlaceholder:
    """Describes a folded output section; adapters decide how to draw it."""

    kind: PlaceholderKind
    source: RustdocSource
    crate_name: str
    module_path: str | None = None

    @property
    def label(self) -> str:
        crate_path = (
            f"{self.crate_name}::{self.module_path}"
            if self.module_path
            else self.crate_name
        )
        return f"{self.kind.value} ({self.source.value}): {crate_path}"


@dataclass(frozen=True)
class OutputSection:
    range: tuple[int, int]  # byte offsets into the UTF-8 text, end exclusive
    placeholder: SectionPlaceholder


@dataclass(frozen=True)
class CommandOutput:
    text: str
    sections: list[OutputSection] = field(default_factory=list)
    run_commands_in_text: bool = False
