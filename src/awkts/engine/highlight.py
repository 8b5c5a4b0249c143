"""Highlight annotator and its assignment table.

A highlight pass walks the tree once in pre-order. Every node is tested
only against the rules indexed under its type (plus type-agnostic rules)
across the active feature groups. Matches are then applied group by group
in declared order, node by node, rule by rule, through the override
algebra of :class:`AssignmentTable`:

* a plain rule claims its range only if no byte of the range is claimed;
* an override rule claims every byte of its range, replacing earlier
  claims, so the last override processed wins on each byte.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from awkts.core.config import EngineConfig
from awkts.core.logging import Logger, get_logger

from .classification import Classification
from .patterns import Match
from .rules import Composite, Emit, FeatureGroup, HighlightRule, HighlightRuleSet
from .source import SourceText
from .tree import SyntaxNode, SyntaxTree

__all__ = [
    "Assignment",
    "AssignmentTable",
    "HighlightAnnotator",
]

_UNASSIGNED = -1


@dataclass(frozen=True, slots=True)
class Assignment:
    """A byte range and the classification that won it."""

    start: int
    end: int
    classification: Classification
    feature: str
    rule: str

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True, slots=True)
class _Entry:
    classification: Classification
    feature: str
    rule: str


class AssignmentTable:
    """Per-pass, per-byte record of winning classifications.

    Each successful claim creates an entry; bytes point at the entry that
    currently owns them. Reported ranges are maximal runs of bytes owned by
    the same entry, so they never overlap.

    Example:
        >>> table = AssignmentTable(0, 10)
        >>> table.claim(0, 10, Classification.STRING, override=False)
        True
        >>> table.claim(2, 4, Classification.KEYWORD, override=False)
        False
        >>> table.claim(2, 4, Classification.ESCAPE, override=True)
        True
        >>> [(a.start, a.end, a.classification.value) for a in table.assignments()]
        [(0, 2, 'string'), (2, 4, 'escape'), (4, 10, 'string')]
    """

    __slots__ = ("_base", "_limit", "_owners", "_entries")

    def __init__(self, start: int, end: int) -> None:
        if end < start:
            raise ValueError(f"Invalid table range [{start}, {end})")
        self._base = start
        self._limit = end
        self._owners: list[int] = [_UNASSIGNED] * (end - start)
        self._entries: list[_Entry] = []

    @property
    def range(self) -> tuple[int, int]:
        return (self._base, self._limit)

    def claim(
        self,
        start: int,
        end: int,
        classification: Classification,
        *,
        override: bool,
        feature: str = "",
        rule: str = "",
    ) -> bool:
        """Record ``classification`` over ``[start, end)`` if the algebra allows.

        The range is clipped to the table. Returns ``True`` when bytes were
        written.
        """

        low = max(start, self._base) - self._base
        high = min(end, self._limit) - self._base
        if high <= low:
            return False
        if not override and self._owners[low:high].count(_UNASSIGNED) != high - low:
            return False
        entry_id = len(self._entries)
        self._entries.append(_Entry(classification, feature, rule))
        self._owners[low:high] = [entry_id] * (high - low)
        return True

    def classification_at(self, pos: int) -> Classification | None:
        if not self._base <= pos < self._limit:
            return None
        owner = self._owners[pos - self._base]
        if owner == _UNASSIGNED:
            return None
        return self._entries[owner].classification

    def assignments(self) -> list[Assignment]:
        """Return ordered, non-overlapping assignments."""

        result: list[Assignment] = []
        owners = self._owners
        index = 0
        total = len(owners)
        while index < total:
            owner = owners[index]
            run_end = index + 1
            while run_end < total and owners[run_end] == owner:
                run_end += 1
            if owner != _UNASSIGNED:
                entry = self._entries[owner]
                result.append(
                    Assignment(
                        start=self._base + index,
                        end=self._base + run_end,
                        classification=entry.classification,
                        feature=entry.feature,
                        rule=entry.rule,
                    )
                )
            index = run_end
        return result


class HighlightAnnotator:
    """Apply a :class:`HighlightRuleSet` to syntax tree snapshots."""

    def __init__(
        self,
        rules: HighlightRuleSet,
        *,
        logger: Logger | None = None,
    ) -> None:
        self._rules = rules
        self._logger = logger or get_logger(__name__, component="highlight")

    @property
    def rules(self) -> HighlightRuleSet:
        return self._rules

    def active_groups(self, config: EngineConfig) -> tuple[FeatureGroup, ...]:
        """Return enabled groups in declared order."""

        return tuple(
            group
            for group in self._rules.groups
            if config.feature_enabled(group.name, group.level)
        )

    def annotate(
        self,
        tree: SyntaxTree,
        config: EngineConfig,
        *,
        start: int | None = None,
        end: int | None = None,
    ) -> list[Assignment]:
        """Return the assignments for ``tree`` (optionally a sub-range)."""

        return self.sweep(tree, config, start=start, end=end).assignments()

    def sweep(
        self,
        tree: SyntaxTree,
        config: EngineConfig,
        *,
        start: int | None = None,
        end: int | None = None,
    ) -> AssignmentTable:
        """Run one highlight pass and return its assignment table."""

        low = 0 if start is None else max(0, start)
        high = len(tree.source) if end is None else min(end, len(tree.source))
        table = AssignmentTable(low, max(low, high))
        groups = self.active_groups(config)
        if not groups:
            return table

        buckets: list[list[tuple[HighlightRule, Match]]] = [[] for _ in groups]
        source = tree.source
        for node in tree.walk(low, high):
            for group, bucket in zip(groups, buckets):
                for rule in group.dispatch.candidates(node.type):
                    for match in self._attempt(rule, node, source):
                        bucket.append((rule, match))

        for bucket in buckets:
            for rule, match in bucket:
                self._apply(table, rule, match, source)
        return table

    def _attempt(
        self,
        rule: HighlightRule,
        node: SyntaxNode,
        source: SourceText,
    ) -> Sequence[Match]:
        try:
            return list(rule.pattern.match(node, source))
        except Exception as exc:
            self._logger.debug(
                "rule-skipped",
                rule=rule.label,
                node=node.type,
                start=node.start,
                error=str(exc),
            )
            return ()

    def _apply(
        self,
        table: AssignmentTable,
        rule: HighlightRule,
        match: Match,
        source: SourceText,
    ) -> None:
        for capture in match.captures:
            action = rule.actions.get(capture.name)
            if action is None:
                continue
            if isinstance(action, Emit):
                table.claim(
                    capture.start,
                    capture.end,
                    action.classification,
                    override=rule.override,
                    feature=rule.feature,
                    rule=rule.label,
                )
                continue
            self._apply_composite(table, rule, action, capture.node, source)

    def _apply_composite(
        self,
        table: AssignmentTable,
        rule: HighlightRule,
        action: Composite,
        node: SyntaxNode,
        source: SourceText,
    ) -> None:
        label = f"{rule.label}/{action.name}"
        if action.classification is not None:
            table.claim(
                node.start,
                node.end,
                action.classification,
                override=rule.override,
                feature=rule.feature,
                rule=label,
            )
        try:
            matches = list(action.secondary.sweep(node, source))
        except Exception as exc:
            self._logger.debug(
                "composite-skipped",
                rule=label,
                node=node.type,
                start=node.start,
                error=str(exc),
            )
            return
        for match in matches:
            for capture in match.captures:
                emit = action.secondary_actions.get(capture.name)
                if emit is None:
                    continue
                table.claim(
                    capture.start,
                    capture.end,
                    emit.classification,
                    override=rule.override,
                    feature=rule.feature,
                    rule=label,
                )
