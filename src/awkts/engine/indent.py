"""Indentation rule resolver.

Indentation rules are evaluated in order against the node that starts the
line being indented (or no node for a blank line) and its parent. The
first matching rule wins and yields an anchor selector plus an offset in
indent units::

    column = column(anchor position) + offset * indent_unit

The last rule must be a catch-all so every request gets a decision.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from awkts.core.config import EngineConfig
from awkts.core.logging import Logger, get_logger

from .errors import RuleSetError
from .patterns import CompiledPattern, compile_pattern
from .source import SourceText
from .tree import SyntaxNode, SyntaxTree

__all__ = [
    "ANCHORS",
    "IndentContext",
    "IndentDecision",
    "IndentResolver",
    "IndentRule",
    "IndentRuleSet",
    "all_of",
    "build_indent_rules",
    "catch_all",
    "field_is",
    "node_is",
    "node_matches",
    "no_node",
    "parent_is",
    "parent_matches",
]


@dataclass(frozen=True, slots=True)
class IndentContext:
    """What an indentation rule gets to look at."""

    node: SyntaxNode | None
    parent: SyntaxNode
    bol: int
    tree: SyntaxTree

    @property
    def source(self) -> SourceText:
        return self.tree.source


# ----------------------------------------------------------------------
# Matchers
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _NodeIs:
    types: frozenset[str]

    def __call__(self, context: IndentContext) -> bool:
        return context.node is not None and context.node.type in self.types

    @property
    def referenced_types(self) -> frozenset[str]:
        return self.types


@dataclass(frozen=True, slots=True)
class _ParentIs:
    types: frozenset[str]

    def __call__(self, context: IndentContext) -> bool:
        return context.parent.type in self.types

    @property
    def referenced_types(self) -> frozenset[str]:
        return self.types


@dataclass(frozen=True, slots=True)
class _FieldIs:
    name: str

    def __call__(self, context: IndentContext) -> bool:
        return context.node is not None and context.node.field_name == self.name

    @property
    def referenced_types(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True, slots=True)
class _NoNode:
    def __call__(self, context: IndentContext) -> bool:
        return context.node is None

    @property
    def referenced_types(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True, slots=True)
class _CatchAll:
    def __call__(self, context: IndentContext) -> bool:
        return True

    @property
    def referenced_types(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True, slots=True)
class _PatternMatch:
    pattern: CompiledPattern
    on_parent: bool = False

    def __call__(self, context: IndentContext) -> bool:
        target = context.parent if self.on_parent else context.node
        if target is None:
            return False
        return self.pattern.matches(target, context.source)

    @property
    def referenced_types(self) -> frozenset[str]:
        return self.pattern.referenced_types


@dataclass(frozen=True, slots=True)
class _AllOf:
    matchers: tuple[Any, ...]

    def __call__(self, context: IndentContext) -> bool:
        return all(matcher(context) for matcher in self.matchers)

    @property
    def referenced_types(self) -> frozenset[str]:
        types: set[str] = set()
        for matcher in self.matchers:
            types.update(matcher.referenced_types)
        return frozenset(types)


def _type_set(types: Iterable[str]) -> frozenset[str]:
    members = frozenset(types)
    if not members or not all(isinstance(t, str) and t for t in members):
        raise RuleSetError(f"Indent matchers need node type names, got {sorted(map(repr, members))}")
    return members


def node_is(*types: str) -> _NodeIs:
    return _NodeIs(_type_set(types))


def parent_is(*types: str) -> _ParentIs:
    return _ParentIs(_type_set(types))


def field_is(name: str) -> _FieldIs:
    if not name:
        raise RuleSetError("field_is needs a field name")
    return _FieldIs(name)


def no_node() -> _NoNode:
    return _NoNode()


def catch_all() -> _CatchAll:
    return _CatchAll()


def node_matches(literal: Any) -> _PatternMatch:
    """Match the node itself against a pattern literal (anchored match)."""

    return _PatternMatch(compile_pattern(literal, name="indent:node"))


def parent_matches(literal: Any) -> _PatternMatch:
    """Match the parent against a pattern literal (anchored match)."""

    return _PatternMatch(compile_pattern(literal, name="indent:parent"), on_parent=True)


def all_of(*matchers: Any) -> _AllOf:
    if not matchers:
        raise RuleSetError("all_of needs at least one matcher")
    return _AllOf(tuple(matchers))


# ----------------------------------------------------------------------
# Anchors
# ----------------------------------------------------------------------
def _column_0(context: IndentContext) -> int:
    source = context.source
    return source.line_start(source.line_of(context.bol))


def _parent_bol(context: IndentContext) -> int:
    return context.source.bol(context.parent.start)


def _parent(context: IndentContext) -> int:
    return context.parent.start


def _grand_parent_bol(context: IndentContext) -> int:
    grand_parent = context.parent.parent or context.parent
    return context.source.bol(grand_parent.start)


def _standalone_parent(context: IndentContext) -> int:
    source = context.source
    current = context.parent
    while current.parent is not None and source.bol(current.start) != current.start:
        current = current.parent
    return current.start


def _first_sibling(context: IndentContext) -> int:
    children = context.parent.children
    return children[0].start if children else context.parent.start


ANCHORS: MappingProxyType[str, Callable[[IndentContext], int]] = MappingProxyType(
    {
        "column-0": _column_0,
        "parent-bol": _parent_bol,
        "parent": _parent,
        "grand-parent-bol": _grand_parent_bol,
        "standalone-parent": _standalone_parent,
        "first-sibling": _first_sibling,
    }
)


# ----------------------------------------------------------------------
# Rules and resolution
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class IndentRule:
    """Matcher, anchor selector and offset in indent units."""

    name: str
    matcher: Any
    anchor: str
    offset: int


@dataclass(frozen=True, slots=True)
class IndentRuleSet:
    rules: tuple[IndentRule, ...]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


@dataclass(frozen=True, slots=True)
class IndentDecision:
    """The single answer to an indentation request."""

    rule: str
    anchor: int
    offset: int
    column: int
    node_type: str | None = None
    parent_type: str | None = field(default=None)


def build_indent_rules(
    specs: Sequence[tuple[Any, str, int]],
    *,
    known_types: Collection[str] | None = None,
    logger: Logger | None = None,
) -> IndentRuleSet:
    """Validate ``(matcher, anchor, offset)`` triples into a rule set.

    Raises:
        RuleSetError: If a rule is malformed or the list lacks a trailing
            catch-all.
    """

    log = logger or get_logger(__name__, component="indent")
    if not specs:
        raise RuleSetError("Indentation needs at least one rule")
    rules: list[IndentRule] = []
    for index, spec in enumerate(specs):
        try:
            matcher, anchor, offset = spec
        except (TypeError, ValueError) as exc:
            raise RuleSetError(
                f"Indent rule {index} must be (matcher, anchor, offset)"
            ) from exc
        if not callable(matcher) or not hasattr(matcher, "referenced_types"):
            raise RuleSetError(f"Indent rule {index} has an invalid matcher {matcher!r}")
        if anchor not in ANCHORS:
            raise RuleSetError(f"Indent rule {index} uses unknown anchor {anchor!r}")
        if isinstance(offset, bool) or not isinstance(offset, int):
            raise RuleSetError(f"Indent rule {index} offset must be an integer")
        name = f"indent#{index}:{type(matcher).__name__.strip('_')}"
        if known_types is not None:
            unknown = sorted(matcher.referenced_types.difference(known_types))
            if unknown:
                log.warning("unknown-node-type", rule=name, types=unknown)
        rules.append(IndentRule(name=name, matcher=matcher, anchor=anchor, offset=offset))
    if not isinstance(rules[-1].matcher, _CatchAll):
        raise RuleSetError("The last indentation rule must be catch_all()")
    return IndentRuleSet(rules=tuple(rules))


ColumnOf = Callable[[int], int]


class IndentResolver:
    """Resolve exactly one indentation decision per request."""

    def __init__(
        self,
        rules: IndentRuleSet,
        *,
        logger: Logger | None = None,
    ) -> None:
        self._rules = rules
        self._logger = logger or get_logger(__name__, component="indent")

    @property
    def rules(self) -> IndentRuleSet:
        return self._rules

    def context_for_line(self, tree: SyntaxTree, line: int) -> IndentContext:
        """Locate the node and parent for ``line`` of ``tree``'s source."""

        source = tree.source
        bol = source.first_nonblank(line)
        if bol is None:
            pos = source.line_start(line)
            return IndentContext(
                node=None,
                parent=tree.enclosing_node(pos),
                bol=pos,
                tree=tree,
            )
        node = tree.largest_node_at(bol)
        if node is tree.root or node.parent is None:
            return IndentContext(node=None, parent=tree.root, bol=bol, tree=tree)
        return IndentContext(node=node, parent=node.parent, bol=bol, tree=tree)

    def resolve(
        self,
        context: IndentContext,
        config: EngineConfig,
        *,
        column_of: ColumnOf | None = None,
    ) -> IndentDecision:
        """Return the decision of the first rule matching ``context``."""

        source = context.source
        measure = column_of or (
            lambda pos: source.column_at(pos, tab_width=config.tab_width)
        )
        for rule in self._rules.rules:
            if not self._attempt(rule, context):
                continue
            anchor = ANCHORS[rule.anchor](context)
            column = max(0, measure(anchor) + rule.offset * config.indent_unit)
            return IndentDecision(
                rule=rule.name,
                anchor=anchor,
                offset=rule.offset,
                column=column,
                node_type=context.node.type if context.node is not None else None,
                parent_type=context.parent.type,
            )
        # build_indent_rules guarantees a trailing catch-all.
        raise AssertionError("indentation rules exhausted without a catch-all")

    def resolve_line(
        self,
        tree: SyntaxTree,
        line: int,
        config: EngineConfig,
        *,
        column_of: ColumnOf | None = None,
    ) -> IndentDecision:
        return self.resolve(
            self.context_for_line(tree, line),
            config,
            column_of=column_of,
        )

    def _attempt(self, rule: IndentRule, context: IndentContext) -> bool:
        try:
            return bool(rule.matcher(context))
        except Exception as exc:
            self._logger.debug(
                "indent-rule-skipped",
                rule=rule.name,
                node=context.node.type if context.node is not None else None,
                error=str(exc),
            )
            return False
