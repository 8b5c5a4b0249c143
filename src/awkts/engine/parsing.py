"""tree-sitter integration: grammar loading and snapshot parsing.

The tree-sitter runtime and the AWK grammar binding are optional. They are
imported lazily so the rest of the engine works on trees produced by other
means (see :class:`~awkts.engine.tree.TreeBuilder`).
"""

from __future__ import annotations

from functools import lru_cache
import importlib
from typing import Any

from awkts.core.config import ParserSettings
from awkts.core.logging import get_logger

from .errors import ParserUnavailableError
from .source import SourceText
from .tree import SyntaxTree

__all__ = [
    "grammar_node_types",
    "load_language",
    "parse_source",
]

_logger = get_logger(__name__, component="parser")


def _tree_sitter() -> Any:
    try:
        return importlib.import_module("tree_sitter")
    except ImportError as exc:
        raise ParserUnavailableError(
            "The tree-sitter runtime is not installed; install awkts[parser]"
        ) from exc


@lru_cache(maxsize=8)
def _load_language(grammar_module: str, language_function: str) -> Any:
    tree_sitter = _tree_sitter()
    try:
        module = importlib.import_module(grammar_module)
    except ImportError as exc:
        raise ParserUnavailableError(
            f"Grammar binding {grammar_module!r} is not installed"
        ) from exc
    factory = getattr(module, language_function, None)
    if not callable(factory):
        raise ParserUnavailableError(
            f"{grammar_module}.{language_function} is not a language function"
        )
    try:
        language = tree_sitter.Language(factory())
    except (TypeError, ValueError) as exc:
        raise ParserUnavailableError(
            f"Grammar {grammar_module!r} is incompatible with this tree-sitter: {exc}"
        ) from exc
    _logger.debug("grammar-loaded", module=grammar_module)
    return language


def load_language(settings: ParserSettings | None = None) -> Any:
    """Return the cached tree-sitter ``Language`` for ``settings``.

    Raises:
        ParserUnavailableError: If tree-sitter or the grammar is missing.
    """

    settings = settings or ParserSettings()
    return _load_language(settings.grammar_module, settings.language_function)


def grammar_node_types(settings: ParserSettings | None = None) -> frozenset[str]:
    """Return every node kind the grammar can produce."""

    language = load_language(settings)
    return frozenset(
        language.node_kind_for_id(kind_id)
        for kind_id in range(language.node_kind_count)
        if language.node_kind_for_id(kind_id)
    )


def parse_source(
    source: SourceText | bytes | str,
    settings: ParserSettings | None = None,
) -> SyntaxTree:
    """Parse ``source`` with the AWK grammar into a :class:`SyntaxTree`."""

    text = source if isinstance(source, SourceText) else SourceText(source)
    tree_sitter = _tree_sitter()
    parser = tree_sitter.Parser(load_language(settings))
    ts_tree = parser.parse(text.data)
    _logger.debug(
        "source-parsed",
        size=len(text),
        has_error=bool(getattr(ts_tree.root_node, "has_error", False)),
    )
    return SyntaxTree.from_tree_sitter(ts_tree, text)
