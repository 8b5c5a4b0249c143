"""Default AWK outline categories."""

from __future__ import annotations

from awkts.engine.navigation import NavigationRule

__all__ = ["navigation_rules"]


def navigation_rules() -> tuple[NavigationRule, ...]:
    return (
        NavigationRule(
            category="Function",
            types=frozenset({"func_def"}),
            name_field="name",
        ),
    )
