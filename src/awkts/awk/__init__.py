"""AWK language data for the rule engine.

Example:
    >>> rules = build_default_rules()
    >>> rules.highlight.feature_names[:2]
    ('comment', 'definition')
"""

from __future__ import annotations

from collections.abc import Collection

from awkts.core.logging import Logger, get_logger
from awkts.engine.indent import build_indent_rules
from awkts.engine.language import LanguageRules
from awkts.engine.navigation import NavigationIndex
from awkts.engine.rules import build_highlight_rules

from .highlight import composite_specs, feature_specs
from .indent import indent_rule_specs
from .navigation import navigation_rules
from .vocabulary import (
    BRACKETS,
    BUILTIN_FUNCTIONS,
    BUILTIN_VARIABLES,
    DELIMITERS,
    KEYWORDS,
    NODE_TYPES,
    OPERATORS,
)

__all__ = [
    "BRACKETS",
    "BUILTIN_FUNCTIONS",
    "BUILTIN_VARIABLES",
    "DELIMITERS",
    "KEYWORDS",
    "NODE_TYPES",
    "OPERATORS",
    "build_default_rules",
]


def build_default_rules(
    *,
    node_types: Collection[str] | None = None,
    logger: Logger | None = None,
) -> LanguageRules:
    """Compile the AWK highlight, indentation and navigation rules.

    Args:
        node_types: Grammar vocabulary used for unknown-type warnings.
            Defaults to the bundled tree-sitter-awk vocabulary.
        logger: Optional logger override.

    Raises:
        RuleSetError: If the bundled rules fail to compile.
    """

    log = logger or get_logger(__name__, component="awk")
    vocabulary = frozenset(NODE_TYPES if node_types is None else node_types)
    highlight = build_highlight_rules(
        feature_specs(),
        composites=composite_specs(),
        known_types=vocabulary,
        logger=log,
    )
    indent = build_indent_rules(
        indent_rule_specs(),
        known_types=vocabulary,
        logger=log,
    )
    navigation = NavigationIndex(
        navigation_rules(),
        known_types=vocabulary,
        logger=log,
    )
    log.debug(
        "rules-built",
        features=len(highlight),
        indent_rules=len(indent),
    )
    return LanguageRules(
        name="awk",
        highlight=highlight,
        indent=indent,
        navigation=navigation,
        node_types=vocabulary,
    )
