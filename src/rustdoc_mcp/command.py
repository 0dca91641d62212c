"""Argument grammar for the rustdoc command.

``--index <crate>`` crawls a crate's local ``cargo doc`` output into the
store. Anything else is an item path, ``crate::module::Item``.
"""

from dataclasses import dataclass, field

from rustdoc_mcp.errors import MissingArgument, MissingIndexTarget

INDEX_FLAG = "--index"
PATH_SEPARATOR = "::"


@dataclass(frozen=True)
class LookupRequest:
    crate_name: str
    item_path: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IndexRequest:
    crate_name: str


def parse_argument(argument: str | None) -> LookupRequest | IndexRequest:
    """Parse the free-form command argument.

    Non-flag tokens are concatenated without whitespace, so
    ``"tokio:: sync::Mutex"`` reads the same as ``"tokio::sync::Mutex"``.
    A ``--index`` anywhere in the argument switches to index mode.

    Raises:
        MissingArgument: No argument, or no crate name before the first ``::``.
        MissingIndexTarget: ``--index`` is the last token.
    """
    if argument is None or not argument.strip():
        raise MissingArgument()

    item_path = ""
    crate_name_to_index: str | None = None

    tokens = iter(argument.split())
    for token in tokens:
        if token == INDEX_FLAG:
            crate_name_to_index = next(tokens, None)
            if crate_name_to_index is None:
                raise MissingIndexTarget()
            continue
        item_path += token

    if crate_name_to_index is not None:
        return IndexRequest(crate_name_to_index)

    crate_name, *segments = item_path.split(PATH_SEPARATOR)
    if not crate_name:
        raise MissingArgument()
    # "tokio::" and "tokio::sync::" name the module itself
    return LookupRequest(crate_name, [s for s in segments if s])
