"""Default AWK indentation policy."""

from __future__ import annotations

from typing import Any

from awkts.engine.indent import (
    catch_all,
    no_node,
    node_is,
    parent_is,
)

from .vocabulary import CONTROL_STATEMENTS

__all__ = ["indent_rule_specs"]


def indent_rule_specs() -> list[tuple[Any, str, int]]:
    """Return ``(matcher, anchor, offset)`` triples in priority order.

    Example:
        >>> specs = indent_rule_specs()
        >>> specs[0][1:]
        ('column-0', 0)
    """

    return [
        (parent_is("program"), "column-0", 0),
        (node_is(")", "}", "]"), "parent-bol", 0),
        (node_is("else", "else_clause"), "parent-bol", 0),
        (parent_is("block"), "parent-bol", 1),
        (node_is("block"), "parent-bol", 0),
        (parent_is(*CONTROL_STATEMENTS), "parent-bol", 1),
        (no_node(), "parent-bol", 1),
        (catch_all(), "parent-bol", 1),
    ]
