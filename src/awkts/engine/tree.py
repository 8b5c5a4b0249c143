"""Read-only syntax tree snapshots consumed by the rule engine.

The engine never talks to tree-sitter objects directly. A parse result is
converted once into an immutable :class:`SyntaxTree` whose nodes expose the
small navigation contract every component relies on: type, byte range,
parent, children, field lookup and text slices. Error nodes produced for
unparsable spans are ordinary nodes.

Trees can also be assembled from a nested literal with :class:`TreeBuilder`,
which locates leaf tokens in the source text in document order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, NamedTuple, Sequence

from .errors import TreeError
from .source import SourceText

__all__ = [
    "ERROR_TYPE",
    "SyntaxNode",
    "SyntaxTree",
    "TreeBuilder",
]

ERROR_TYPE = "ERROR"


@dataclass(frozen=True, slots=True, eq=False)
class SyntaxNode:
    """A node of an immutable syntax tree snapshot."""

    type: str
    start: int
    end: int
    field_name: str | None = None
    is_named: bool = True
    is_missing: bool = False
    children: tuple["SyntaxNode", ...] = ()
    parent: "SyntaxNode | None" = field(default=None, repr=False)

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def is_error(self) -> bool:
        return self.type == ERROR_TYPE

    @property
    def named_children(self) -> tuple["SyntaxNode", ...]:
        return tuple(child for child in self.children if child.is_named)

    def child_by_field(self, name: str) -> "SyntaxNode | None":
        """Return the first child referenced by field ``name`` or ``None``."""

        for child in self.children:
            if child.field_name == name:
                return child
        return None

    def children_by_field(self, name: str) -> tuple["SyntaxNode", ...]:
        return tuple(child for child in self.children if child.field_name == name)

    def ancestors(self) -> Iterator["SyntaxNode"]:
        """Yield the parent chain, nearest first."""

        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def walk(self) -> Iterator["SyntaxNode"]:
        """Yield this node and its descendants in pre-order."""

        stack: list[SyntaxNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def contains(self, pos: int) -> bool:
        return self.start <= pos < self.end


class _Record(NamedTuple):
    type: str
    start: int
    end: int
    field_name: str | None
    is_named: bool
    is_missing: bool
    parent: int


def _assemble(records: Sequence[_Record]) -> SyntaxNode:
    """Build linked nodes from pre-order ``records`` without recursion."""

    if not records:
        raise TreeError("Cannot build a tree without nodes")
    pending: list[list[SyntaxNode]] = [[] for _ in records]
    root: SyntaxNode | None = None
    for index in range(len(records) - 1, -1, -1):
        record = records[index]
        children = tuple(reversed(pending[index]))
        node = SyntaxNode(
            type=record.type,
            start=record.start,
            end=record.end,
            field_name=record.field_name,
            is_named=record.is_named,
            is_missing=record.is_missing,
            children=children,
        )
        for child in children:
            object.__setattr__(child, "parent", node)
        if record.parent < 0:
            if root is not None:
                raise TreeError("Tree records have more than one root")
            root = node
        else:
            pending[record.parent].append(node)
    if root is None:
        raise TreeError("Tree records have no root")
    return root


class SyntaxTree:
    """Immutable snapshot of a parse result plus its source text."""

    def __init__(self, root: SyntaxNode, source: SourceText | bytes | str) -> None:
        if root.parent is not None:
            raise TreeError("The root node must not have a parent")
        self._root = root
        self._source = source if isinstance(source, SourceText) else SourceText(source)
        self._node_count = self._validate()

    # ------------------------------------------------------------------
    # Adapter contract
    # ------------------------------------------------------------------
    @property
    def root(self) -> SyntaxNode:
        return self._root

    @property
    def source(self) -> SourceText:
        return self._source

    @property
    def node_count(self) -> int:
        return self._node_count

    @staticmethod
    def type(node: SyntaxNode) -> str:
        return node.type

    @staticmethod
    def range(node: SyntaxNode) -> tuple[int, int]:
        return node.range

    @staticmethod
    def parent(node: SyntaxNode) -> SyntaxNode | None:
        return node.parent

    @staticmethod
    def children(node: SyntaxNode) -> tuple[SyntaxNode, ...]:
        return node.children

    @staticmethod
    def field(node: SyntaxNode, name: str) -> SyntaxNode | None:
        return node.child_by_field(name)

    def text(self, node: SyntaxNode) -> str:
        return self._source.text(node.start, node.end)

    # ------------------------------------------------------------------
    # Traversal and positional lookups
    # ------------------------------------------------------------------
    def walk(
        self,
        start: int | None = None,
        end: int | None = None,
    ) -> Iterator[SyntaxNode]:
        """Yield nodes in pre-order, pruning subtrees outside ``[start, end)``."""

        if start is None and end is None:
            yield from self._root.walk()
            return
        low = 0 if start is None else start
        high = len(self._source) if end is None else end
        stack: list[SyntaxNode] = [self._root]
        while stack:
            node = stack.pop()
            if node is not self._root and not _intersects(node, low, high):
                continue
            yield node
            stack.extend(reversed(node.children))

    def node_types(self) -> frozenset[str]:
        return frozenset(node.type for node in self._root.walk())

    def node_at(self, pos: int) -> SyntaxNode:
        """Return the deepest node whose range contains ``pos``."""

        node = self._root
        while True:
            for child in node.children:
                if child.contains(pos):
                    node = child
                    break
            else:
                return node

    def largest_node_at(self, pos: int) -> SyntaxNode:
        """Return the outermost node starting where the token at ``pos`` starts.

        The root is never returned unless the tree has no other node at
        ``pos``.
        """

        node = self.node_at(pos)
        while (
            node.parent is not None
            and node.parent is not self._root
            and node.parent.start == node.start
        ):
            node = node.parent
        return node

    def enclosing_node(self, pos: int) -> SyntaxNode:
        """Return the smallest node strictly enclosing ``pos``."""

        node = self._root
        while True:
            for child in node.children:
                if child.start < pos < child.end:
                    node = child
                    break
            else:
                return node

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_tree_sitter(cls, tree: Any, source: SourceText | bytes | str) -> "SyntaxTree":
        """Convert a py-tree-sitter ``Tree`` (or root ``Node``) into a snapshot."""

        root = getattr(tree, "root_node", tree)
        records: list[_Record] = []
        stack: list[tuple[Any, str | None, int]] = [(root, None, -1)]
        while stack:
            ts_node, field_name, parent_index = stack.pop()
            index = len(records)
            records.append(
                _Record(
                    type=ts_node.type,
                    start=ts_node.start_byte,
                    end=ts_node.end_byte,
                    field_name=field_name,
                    is_named=bool(ts_node.is_named),
                    is_missing=bool(getattr(ts_node, "is_missing", False)),
                    parent=parent_index,
                )
            )
            children = list(ts_node.children)
            for child_index in range(len(children) - 1, -1, -1):
                child_field = ts_node.field_name_for_child(child_index)
                stack.append((children[child_index], child_field, index))
        return cls(_assemble(records), source)

    def _validate(self) -> int:
        count = 0
        limit = len(self._source)
        for node in self._root.walk():
            count += 1
            if node.start > node.end or node.end > limit:
                raise TreeError(
                    f"Invalid range {node.range} for {node.type!r} "
                    f"(source length {limit})"
                )
            previous_end = node.start
            for child in node.children:
                if child.parent is not node:
                    raise TreeError(f"Child {child.type!r} is not linked to its parent")
                if child.start < node.start or child.end > node.end:
                    raise TreeError(
                        f"Child {child.type!r} {child.range} escapes parent "
                        f"{node.type!r} {node.range}"
                    )
                if child.start < previous_end:
                    raise TreeError(
                        f"Child {child.type!r} {child.range} overlaps its "
                        "preceding sibling"
                    )
                previous_end = child.end
        return count


def _intersects(node: SyntaxNode, low: int, high: int) -> bool:
    if node.start == node.end:
        return low <= node.start <= high
    return node.start < high and node.end > low


# ----------------------------------------------------------------------
# Literal tree construction
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class _LeafSpec:
    type: str
    text: str
    field_name: str | None
    is_named: bool
    is_missing: bool = False


@dataclass(frozen=True, slots=True)
class _NodeSpec:
    type: str
    children: tuple[Any, ...]
    field_name: str | None
    is_named: bool


class TreeBuilder:
    """Assemble a :class:`SyntaxTree` from a nested node literal.

    Leaves are located in the source in document order, so only their text
    needs to be given. Bare strings inside :meth:`node` are anonymous tokens
    whose type equals their text.

    Example:
        >>> b = TreeBuilder("x = 1\\n")
        >>> tree = b.build(
        ...     b.node(
        ...         "program",
        ...         b.node(
        ...             "assignment_exp",
        ...             b.leaf("identifier", "x", field="left"),
        ...             "=",
        ...             b.leaf("number", "1", field="right"),
        ...         ),
        ...     )
        ... )
        >>> [tree.text(n) for n in tree.root.children[0].children]
        ['x', '=', '1']
    """

    def __init__(self, source: SourceText | bytes | str) -> None:
        self._source = source if isinstance(source, SourceText) else SourceText(source)

    @property
    def source(self) -> SourceText:
        return self._source

    @staticmethod
    def leaf(
        type: str,
        text: str | None = None,
        *,
        field: str | None = None,
        named: bool | None = None,
    ) -> _LeafSpec:
        """Describe a token; ``text`` defaults to ``type`` (anonymous token)."""

        is_named = (text is not None) if named is None else named
        return _LeafSpec(
            type=type,
            text=type if text is None else text,
            field_name=field,
            is_named=is_named,
        )

    @staticmethod
    def missing(type: str, *, field: str | None = None) -> _LeafSpec:
        """Describe a zero-width node the parser inserted during recovery."""

        return _LeafSpec(
            type=type,
            text="",
            field_name=field,
            is_named=False,
            is_missing=True,
        )

    @staticmethod
    def node(
        type: str,
        *children: Any,
        field: str | None = None,
        named: bool = True,
    ) -> _NodeSpec:
        return _NodeSpec(
            type=type,
            children=children,
            field_name=field,
            is_named=named,
        )

    def build(self, spec: _NodeSpec, *, span_source: bool = True) -> SyntaxTree:
        """Return the tree described by ``spec``.

        Args:
            spec: Root node literal.
            span_source: Whether the root covers the whole source text.

        Raises:
            TreeError: If a leaf cannot be located or a node is empty.
        """

        records: list[_Record] = []
        cursor = 0
        data = self._source.data
        stack: list[tuple[Any, int]] = [(spec, -1)]
        spans: dict[int, list[int]] = {}
        order: list[int] = []
        while stack:
            item, parent_index = stack.pop()
            if isinstance(item, str):
                item = self.leaf(item)
            index = len(records)
            if isinstance(item, _LeafSpec):
                if item.is_missing:
                    start = end = cursor
                else:
                    needle = item.text.encode("utf-8")
                    start = data.find(needle, cursor)
                    if start < 0 or not needle:
                        raise TreeError(
                            f"Token {item.text!r} ({item.type}) not found "
                            f"after offset {cursor}"
                        )
                    end = start + len(needle)
                    cursor = end
                records.append(
                    _Record(
                        item.type,
                        start,
                        end,
                        item.field_name,
                        item.is_named,
                        item.is_missing,
                        parent_index,
                    )
                )
                self._extend(spans, parent_index, start, end)
                continue
            if not isinstance(item, _NodeSpec):
                raise TreeError(f"Unsupported tree literal element: {item!r}")
            if not item.children:
                raise TreeError(f"Node {item.type!r} needs at least one child")
            records.append(
                _Record(item.type, -1, -1, item.field_name, item.is_named, False, parent_index)
            )
            order.append(index)
            for child in reversed(item.children):
                stack.append((child, index))

        # Interior ranges come from their leaves; fill innermost first.
        for index in reversed(order):
            start, end = spans[index]
            record = records[index]
            records[index] = record._replace(start=start, end=end)
            self._extend(spans, record.parent, start, end)

        if span_source:
            records[0] = records[0]._replace(start=0, end=len(self._source))
        return SyntaxTree(_assemble(records), self._source)

    @staticmethod
    def _extend(
        spans: dict[int, list[int]],
        parent_index: int,
        start: int,
        end: int,
    ) -> None:
        if parent_index < 0:
            return
        span = spans.get(parent_index)
        if span is None:
            spans[parent_index] = [start, end]
        else:
            span[0] = min(span[0], start)
            span[1] = max(span[1], end)
