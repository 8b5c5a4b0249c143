"""Outline extraction over named definition nodes."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass

from awkts.core.config import EngineConfig
from awkts.core.logging import Logger, get_logger

from .errors import RuleSetError
from .tree import SyntaxNode, SyntaxTree

__all__ = [
    "NavigationIndex",
    "NavigationRule",
    "OutlineEntry",
]


@dataclass(frozen=True, slots=True)
class NavigationRule:
    """Definition node types of one category and the field naming them."""

    category: str
    types: frozenset[str]
    name_field: str = "name"


@dataclass(frozen=True, slots=True)
class OutlineEntry:
    name: str
    start: int
    end: int
    category: str

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)


class NavigationIndex:
    """Collect definitions in document order."""

    def __init__(
        self,
        rules: Sequence[NavigationRule],
        *,
        known_types: Collection[str] | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._logger = logger or get_logger(__name__, component="navigation")
        by_type: dict[str, NavigationRule] = {}
        for rule in rules:
            if not rule.category or not rule.types or not rule.name_field:
                raise RuleSetError(f"Incomplete navigation rule {rule!r}")
            for node_type in rule.types:
                if node_type in by_type:
                    raise RuleSetError(
                        f"Node type {node_type!r} belongs to two outline categories"
                    )
                by_type[node_type] = rule
            if known_types is not None:
                unknown = sorted(rule.types.difference(known_types))
                if unknown:
                    self._logger.warning(
                        "unknown-node-type", rule=f"outline:{rule.category}", types=unknown
                    )
        self._rules = tuple(rules)
        self._by_type = by_type

    @property
    def rules(self) -> tuple[NavigationRule, ...]:
        return self._rules

    def is_definition(self, node: SyntaxNode) -> bool:
        return node.type in self._by_type

    def name_node(self, node: SyntaxNode) -> SyntaxNode | None:
        rule = self._by_type.get(node.type)
        if rule is None:
            return None
        return node.child_by_field(rule.name_field)

    def definition_at(
        self,
        tree: SyntaxTree,
        pos: int,
        *,
        top_level: bool = False,
    ) -> SyntaxNode | None:
        """Return the definition containing ``pos``.

        The innermost definition wins unless ``top_level`` asks for the
        outermost one.
        """

        found: SyntaxNode | None = None
        node: SyntaxNode | None = tree.node_at(pos)
        while node is not None:
            if self.is_definition(node):
                if not top_level:
                    return node
                found = node
            node = node.parent
        return found

    def outline(self, tree: SyntaxTree, config: EngineConfig) -> list[OutlineEntry]:
        """Return named definitions in document order.

        With ``config.prefer_top_level`` only definitions without a
        definition ancestor are listed. Definitions lacking their name
        field are skipped.
        """

        entries: list[OutlineEntry] = []
        for node in tree.walk():
            rule = self._by_type.get(node.type)
            if rule is None:
                continue
            if config.prefer_top_level and any(
                self.is_definition(ancestor) for ancestor in node.ancestors()
            ):
                continue
            name_node = node.child_by_field(rule.name_field)
            if name_node is None:
                self._logger.debug("unnamed-definition", node=node.type, start=node.start)
                continue
            entries.append(
                OutlineEntry(
                    name=tree.text(name_node),
                    start=node.start,
                    end=node.end,
                    category=rule.category,
                )
            )
        return entries
