"""Declarative pattern language, compiler and matcher.

Patterns are written as nested Python literals in the spirit of tree-sitter
queries and compiled once into an immutable pattern AST:

``"type"``
    A node whose type is ``type``.
``"_"``
    Any node.
``{"if", "else"}``
    Any node whose type is in the set. Use a one-element set for token types
    that would otherwise read as captures or fields (``{"@include"}``).
``(head, item, ...)``
    A node matching ``head`` whose children satisfy each item in order.
    ``"field:"`` qualifies the following item with a field name and
    ``"@name"`` captures the preceding element (the head captures the node
    itself).
``[alt, ...]``
    The first, second, ... alternative; every alternative that matches
    yields a match.
``("#in", "@name", names)``
    Predicate over captured text. Supported operators are ``#in``,
    ``#not-in``, ``#match`` (regex search), ``#eq`` and ``#pred`` (callable
    taking the text and returning a bool).

Example:
    >>> pattern = compile_pattern(("func_def", "name:", ("identifier", "@fn")))
    >>> sorted(pattern.root_types)
    ['func_def']
    >>> sorted(pattern.capture_names)
    ['fn']
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace
import re
from typing import Any, Generic, TypeVar, Union

from .errors import PatternError
from .source import SourceText
from .tree import SyntaxNode

__all__ = [
    "Capture",
    "ChildConstraint",
    "Choice",
    "CompiledPattern",
    "Literal",
    "Match",
    "NodePattern",
    "Predicate",
    "TypeDispatch",
    "TypeSet",
    "Wildcard",
    "compile_pattern",
]

WILDCARD = "_"

_PREDICATE_OPERATORS = frozenset({"#in", "#not-in", "#match", "#eq", "#pred"})


# ----------------------------------------------------------------------
# Pattern AST
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Literal:
    """Match a single node type."""

    type: str

    def accepts(self, node_type: str) -> bool:
        return node_type == self.type

    @property
    def types(self) -> frozenset[str] | None:
        return frozenset((self.type,))


@dataclass(frozen=True, slots=True)
class TypeSet:
    """Match any node type from a fixed set."""

    members: frozenset[str]

    def accepts(self, node_type: str) -> bool:
        return node_type in self.members

    @property
    def types(self) -> frozenset[str] | None:
        return self.members


@dataclass(frozen=True, slots=True)
class Wildcard:
    """Match any node."""

    def accepts(self, node_type: str) -> bool:
        return True

    @property
    def types(self) -> frozenset[str] | None:
        return None


Head = Union[Literal, TypeSet, Wildcard]


@dataclass(frozen=True, slots=True)
class ChildConstraint:
    """Require a (field-qualified) child matching ``pattern``."""

    pattern: "PatternNode"
    field: str | None = None


@dataclass(frozen=True, slots=True)
class NodePattern:
    """Head test plus ordered child constraints."""

    head: Head
    children: tuple[ChildConstraint, ...] = ()
    captures: tuple[str, ...] = ()

    @property
    def root_types(self) -> frozenset[str] | None:
        return self.head.types


@dataclass(frozen=True, slots=True)
class Choice:
    """Alternation over whole patterns."""

    alternatives: tuple["PatternNode", ...]
    captures: tuple[str, ...] = ()

    @property
    def root_types(self) -> frozenset[str] | None:
        merged: set[str] = set()
        for alternative in self.alternatives:
            types = alternative.root_types
            if types is None:
                return None
            merged.update(types)
        return frozenset(merged)


PatternNode = Union[NodePattern, Choice]


@dataclass(frozen=True, slots=True)
class Predicate:
    """Pure test over the text of every node bound to ``capture``."""

    operator: str
    capture: str
    argument: Any

    def test(self, text: str) -> bool:
        if self.operator == "#in":
            return text in self.argument
        if self.operator == "#not-in":
            return text not in self.argument
        if self.operator == "#match":
            return self.argument.search(text) is not None
        if self.operator == "#eq":
            return text == self.argument
        return bool(self.argument(text))


@dataclass(frozen=True, slots=True)
class Capture:
    """A node bound to a capture name by a successful match."""

    name: str
    node: SyntaxNode

    @property
    def start(self) -> int:
        return self.node.start

    @property
    def end(self) -> int:
        return self.node.end


@dataclass(frozen=True, slots=True)
class Match:
    """Captures produced by matching a pattern at ``node``."""

    node: SyntaxNode
    captures: tuple[Capture, ...]

    def nodes(self, name: str) -> tuple[SyntaxNode, ...]:
        return tuple(capture.node for capture in self.captures if capture.name == name)


# ----------------------------------------------------------------------
# Compiled patterns
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """Immutable, reusable matcher built by :func:`compile_pattern`."""

    root: PatternNode
    predicates: tuple[Predicate, ...] = ()
    capture_names: frozenset[str] = frozenset()
    referenced_types: frozenset[str] = frozenset()
    name: str | None = field(default=None, compare=False)

    @property
    def root_types(self) -> frozenset[str] | None:
        return self.root.root_types

    def accepts_type(self, node_type: str) -> bool:
        types = self.root_types
        return types is None or node_type in types

    def match(self, node: SyntaxNode, source: SourceText) -> Iterator[Match]:
        """Yield every match anchored at ``node``.

        Predicate failures propagate to the caller, which decides how to
        isolate them.
        """

        if not self.accepts_type(node.type):
            return
        for captures in _match(self.root, node, ()):
            if self._predicates_hold(captures, source):
                yield Match(node=node, captures=captures)

    def matches(self, node: SyntaxNode, source: SourceText) -> bool:
        """Return ``True`` when at least one match is anchored at ``node``."""

        return next(iter(self.match(node, source)), None) is not None

    def sweep(self, node: SyntaxNode, source: SourceText) -> Iterator[Match]:
        """Yield matches anchored anywhere in ``node``'s subtree, pre-order."""

        for candidate in node.walk():
            yield from self.match(candidate, source)

    def _predicates_hold(
        self,
        captures: Sequence[Capture],
        source: SourceText,
    ) -> bool:
        for predicate in self.predicates:
            for capture in captures:
                if capture.name != predicate.capture:
                    continue
                if not predicate.test(source.text(capture.start, capture.end)):
                    return False
        return True


def _match(
    pattern: PatternNode,
    node: SyntaxNode,
    bound: tuple[Capture, ...],
) -> Iterator[tuple[Capture, ...]]:
    if isinstance(pattern, Choice):
        own = tuple(Capture(name, node) for name in pattern.captures)
        for alternative in pattern.alternatives:
            for captures in _match(alternative, node, bound):
                yield captures + own
        return
    if not pattern.head.accepts(node.type):
        return
    captures = bound + tuple(Capture(name, node) for name in pattern.captures)
    yield from _match_children(pattern.children, 0, node.children, 0, captures)


def _match_children(
    constraints: tuple[ChildConstraint, ...],
    position: int,
    children: tuple[SyntaxNode, ...],
    start: int,
    bound: tuple[Capture, ...],
) -> Iterator[tuple[Capture, ...]]:
    if position == len(constraints):
        yield bound
        return
    constraint = constraints[position]
    for index in range(start, len(children)):
        child = children[index]
        if constraint.field is not None and child.field_name != constraint.field:
            continue
        for captures in _match(constraint.pattern, child, bound):
            yield from _match_children(
                constraints, position + 1, children, index + 1, captures
            )


# ----------------------------------------------------------------------
# Compiler
# ----------------------------------------------------------------------
def _is_capture(item: Any) -> bool:
    return isinstance(item, str) and item.startswith("@")


def _is_field(item: Any) -> bool:
    return isinstance(item, str) and len(item) > 1 and item.endswith(":")


def _is_predicate(item: Any) -> bool:
    return (
        isinstance(item, tuple)
        and bool(item)
        and isinstance(item[0], str)
        and item[0].startswith("#")
        and len(item[0]) > 1
    )


class _Compiler:
    def __init__(self, name: str | None) -> None:
        self._name = name
        self.predicates: list[Predicate] = []
        self.captures: set[str] = set()
        self.types: set[str] = set()

    def fail(self, message: str) -> PatternError:
        return PatternError(message, rule=self._name)

    def capture_name(self, item: str) -> str:
        name = item[1:]
        if not name:
            raise self.fail("Capture '@' needs a name")
        self.captures.add(name)
        return name

    def head(self, item: Any) -> Head:
        if isinstance(item, str):
            if not item:
                raise self.fail("Empty node type")
            if _is_capture(item) or _is_field(item):
                raise self.fail(f"{item!r} cannot be used as a node type")
            if item == WILDCARD:
                return Wildcard()
            self.types.add(item)
            return Literal(item)
        if isinstance(item, (set, frozenset)):
            if not item:
                raise self.fail("Empty type set")
            members: set[str] = set()
            for member in item:
                if not isinstance(member, str) or not member:
                    raise self.fail(f"Type set members must be names, got {member!r}")
                members.add(member)
            self.types.update(members)
            return TypeSet(frozenset(members))
        raise self.fail(f"Unsupported node head {item!r}")

    def pattern(self, item: Any) -> PatternNode:
        if isinstance(item, (str, set, frozenset)):
            return NodePattern(head=self.head(item))
        if isinstance(item, list):
            return self.choice(item)
        if isinstance(item, tuple):
            if _is_predicate(item):
                raise self.fail("A predicate is not a pattern")
            return self.node(item)
        raise self.fail(f"Unsupported pattern element {item!r}")

    def choice(self, items: list[Any]) -> Choice:
        alternatives: list[PatternNode] = []
        for item in items:
            if _is_capture(item):
                if not alternatives:
                    raise self.fail(f"Capture {item!r} has nothing to capture")
                alternatives[-1] = _with_capture(alternatives[-1], self.capture_name(item))
            elif _is_predicate(item):
                self.predicate(item)
            else:
                alternatives.append(self.pattern(item))
        if not alternatives:
            raise self.fail("Alternation needs at least one pattern")
        return Choice(alternatives=tuple(alternatives))

    def node(self, items: tuple[Any, ...]) -> NodePattern:
        if not items:
            raise self.fail("Empty node pattern")
        head = self.head(items[0])
        own_captures: list[str] = []
        children: list[ChildConstraint] = []
        pending_field: str | None = None
        for item in items[1:]:
            if _is_capture(item):
                if pending_field is not None:
                    raise self.fail(f"Field {pending_field + ':'!r} is followed by a capture")
                name = self.capture_name(item)
                if children:
                    last = children[-1]
                    children[-1] = replace(last, pattern=_with_capture(last.pattern, name))
                else:
                    own_captures.append(name)
            elif _is_field(item):
                if pending_field is not None:
                    raise self.fail(f"Field {pending_field + ':'!r} has no pattern")
                pending_field = item[:-1]
            elif _is_predicate(item):
                if pending_field is not None:
                    raise self.fail(f"Field {pending_field + ':'!r} is followed by a predicate")
                self.predicate(item)
            else:
                children.append(ChildConstraint(pattern=self.pattern(item), field=pending_field))
                pending_field = None
        if pending_field is not None:
            raise self.fail(f"Field {pending_field + ':'!r} has no pattern")
        return NodePattern(head=head, children=tuple(children), captures=tuple(own_captures))

    def predicate(self, item: tuple[Any, ...]) -> None:
        operator = item[0]
        if operator not in _PREDICATE_OPERATORS:
            raise self.fail(f"Unknown predicate {operator!r}")
        if len(item) != 3 or not _is_capture(item[1]) or len(item[1]) < 2:
            raise self.fail(f"Predicate {operator!r} takes a capture and one argument")
        capture = item[1][1:]
        argument = item[2]
        if operator in ("#in", "#not-in"):
            if isinstance(argument, str) or not isinstance(argument, Collection):
                raise self.fail(f"{operator!r} needs a collection of names")
            argument = frozenset(str(value) for value in argument)
        elif operator == "#match":
            if isinstance(argument, str):
                try:
                    argument = re.compile(argument)
                except re.error as exc:
                    raise self.fail(f"Invalid regex {item[2]!r}: {exc}") from exc
            elif not isinstance(argument, re.Pattern):
                raise self.fail("'#match' needs a regex")
        elif operator == "#eq":
            if not isinstance(argument, str):
                raise self.fail("'#eq' needs a string")
        elif not callable(argument):
            raise self.fail("'#pred' needs a callable")
        self.predicates.append(Predicate(operator=operator, capture=capture, argument=argument))


def _with_capture(pattern: PatternNode, name: str) -> PatternNode:
    return replace(pattern, captures=pattern.captures + (name,))


def compile_pattern(literal: Any, *, name: str | None = None) -> CompiledPattern:
    """Compile a nested pattern literal into a :class:`CompiledPattern`.

    Args:
        literal: Pattern literal (see module documentation).
        name: Optional label used in error messages and logs.

    Raises:
        PatternError: If the literal is structurally invalid.
    """

    compiler = _Compiler(name)
    root = compiler.pattern(literal)
    for predicate in compiler.predicates:
        if predicate.capture not in compiler.captures:
            raise compiler.fail(
                f"Predicate {predicate.operator!r} refers to unknown capture "
                f"'@{predicate.capture}'"
            )
    return CompiledPattern(
        root=root,
        predicates=tuple(compiler.predicates),
        capture_names=frozenset(compiler.captures),
        referenced_types=frozenset(compiler.types),
        name=name,
    )


# ----------------------------------------------------------------------
# Type-indexed dispatch
# ----------------------------------------------------------------------
T = TypeVar("T")


class TypeDispatch(Generic[T]):
    """Order-preserving index from node type to candidate items.

    ``key`` returns an item's root type set, ``None`` meaning the item is
    type-agnostic and applies to every node.

    Example:
        >>> dispatch = TypeDispatch(["a", "b", "_"], key=lambda s: None if s == "_" else {s})
        >>> dispatch.candidates("b")
        ('b', '_')
        >>> dispatch.candidates("zzz")
        ('_',)
    """

    __slots__ = ("_agnostic", "_by_type")

    def __init__(
        self,
        items: Iterable[T],
        *,
        key: Callable[[T], Collection[str] | None],
    ) -> None:
        typed: dict[str, list[tuple[int, T]]] = {}
        agnostic: list[tuple[int, T]] = []
        for index, item in enumerate(items):
            types = key(item)
            if types is None:
                agnostic.append((index, item))
                continue
            for node_type in set(types):
                typed.setdefault(node_type, []).append((index, item))
        self._agnostic: tuple[T, ...] = tuple(item for _, item in agnostic)
        by_type: dict[str, tuple[T, ...]] = {}
        for node_type, entries in typed.items():
            merged = sorted(entries + agnostic, key=lambda entry: entry[0])
            by_type[node_type] = tuple(item for _, item in merged)
        self._by_type: Mapping[str, tuple[T, ...]] = by_type

    def candidates(self, node_type: str) -> tuple[T, ...]:
        return self._by_type.get(node_type, self._agnostic)

    @property
    def types(self) -> frozenset[str]:
        return frozenset(self._by_type)

    def __bool__(self) -> bool:
        return bool(self._by_type) or bool(self._agnostic)
