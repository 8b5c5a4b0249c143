"""Compiled rule bundle for one grammar."""

from __future__ import annotations

from dataclasses import dataclass

from .indent import IndentRuleSet
from .navigation import NavigationIndex
from .rules import HighlightRuleSet

__all__ = ["LanguageRules"]


@dataclass(frozen=True, slots=True)
class LanguageRules:
    """Highlight, indentation and navigation rules built together."""

    name: str
    highlight: HighlightRuleSet
    indent: IndentRuleSet
    navigation: NavigationIndex
    node_types: frozenset[str] = frozenset()
