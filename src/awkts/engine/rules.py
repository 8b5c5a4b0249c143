"""Highlight rule definitions and rule-set construction.

Rule sets are built once from declarative feature specs. Construction is
the only place the engine fails hard: malformed patterns, unknown capture
names and duplicate features raise :class:`~awkts.engine.errors.RuleSetError`
so no query can run against a broken rule set. References to node types
the grammar does not know are accepted and logged as warnings.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from awkts.core.logging import Logger, get_logger

from .classification import Classification
from .errors import PatternError, RuleSetError
from .patterns import CompiledPattern, TypeDispatch, compile_pattern

__all__ = [
    "Action",
    "Composite",
    "CompositeSpec",
    "Emit",
    "FeatureGroup",
    "FeatureSpec",
    "HighlightRule",
    "HighlightRuleSet",
    "RuleSpec",
    "build_highlight_rules",
]

_IGNORED_CAPTURE_PREFIX = "_"


@dataclass(frozen=True, slots=True)
class Emit:
    """Classify the captured node."""

    classification: Classification


@dataclass(frozen=True, slots=True)
class Composite:
    """Optionally classify the captured node, then sweep its subtree.

    The secondary pattern sweeps the captured node's subtree once and its
    captures are merged with the owning rule's override flag.
    Secondary captures may only emit classifications, so re-entry stops
    after one level.
    """

    name: str
    secondary: CompiledPattern
    secondary_actions: Mapping[str, Emit]
    classification: Classification | None = None


Action = Union[Emit, Composite]


@dataclass(frozen=True, slots=True)
class CompositeSpec:
    """Declarative composite action referenced by capture name."""

    name: str
    secondary: Any
    classification: Classification | None = None


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """A pattern literal with an optional per-rule override flag."""

    pattern: Any
    override: bool | None = None


@dataclass(frozen=True, slots=True)
class FeatureSpec:
    """Declarative feature group: name, level, override and patterns."""

    name: str
    level: int
    patterns: tuple[Any, ...]
    override: bool = False


@dataclass(frozen=True, slots=True)
class HighlightRule:
    """Compiled rule: pattern plus per-capture actions."""

    pattern: CompiledPattern
    actions: Mapping[str, Action]
    order: int
    feature: str
    override: bool

    @property
    def label(self) -> str:
        return f"{self.feature}#{self.order}"


@dataclass(frozen=True, slots=True)
class FeatureGroup:
    """Independently toggleable, ordered list of highlight rules."""

    name: str
    level: int
    rules: tuple[HighlightRule, ...]
    dispatch: TypeDispatch[HighlightRule] = field(repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class HighlightRuleSet:
    """Ordered feature groups; group order is fixed at construction."""

    groups: tuple[FeatureGroup, ...]

    @property
    def feature_names(self) -> tuple[str, ...]:
        return tuple(group.name for group in self.groups)

    def group(self, name: str) -> FeatureGroup:
        for group in self.groups:
            if group.name == name:
                return group
        raise KeyError(name)

    def __iter__(self):
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)


def _resolve_actions(
    pattern: CompiledPattern,
    composites: Mapping[str, Any],
    *,
    label: str,
    allow_composite: bool,
) -> dict[str, Action]:
    actions: dict[str, Action] = {}
    for capture in sorted(pattern.capture_names):
        if capture.startswith(_IGNORED_CAPTURE_PREFIX):
            continue
        classification = Classification.lookup(capture)
        if classification is not None:
            actions[capture] = Emit(classification)
            continue
        if capture in composites:
            if not allow_composite:
                raise PatternError(
                    f"Composite action '@{capture}' cannot be nested",
                    rule=label,
                )
            actions[capture] = composites[capture]
            continue
        raise PatternError(
            f"Capture '@{capture}' is neither a classification nor a "
            "composite action",
            rule=label,
        )
    if not actions:
        raise PatternError("Pattern captures nothing to classify", rule=label)
    return actions


def _compile_composites(
    specs: Iterable[CompositeSpec],
) -> dict[str, Composite]:
    specs = tuple(specs)
    declared = dict.fromkeys(spec.name for spec in specs)
    compiled: dict[str, Composite] = {}
    for spec in specs:
        if spec.name in compiled:
            raise RuleSetError(f"Duplicate composite action {spec.name!r}")
        if Classification.lookup(spec.name) is not None:
            raise RuleSetError(
                f"Composite action {spec.name!r} shadows a classification"
            )
        label = f"composite:{spec.name}"
        secondary = compile_pattern(spec.secondary, name=label)
        secondary_actions = _resolve_actions(
            secondary,
            declared,
            label=label,
            allow_composite=False,
        )
        compiled[spec.name] = Composite(
            name=spec.name,
            secondary=secondary,
            secondary_actions=MappingProxyType(
                {key: value for key, value in secondary_actions.items()}
            ),
            classification=spec.classification,
        )
    return compiled


def _warn_unknown_types(
    pattern: CompiledPattern,
    known_types: Collection[str] | None,
    *,
    label: str,
    logger: Logger,
) -> None:
    if known_types is None:
        return
    unknown = sorted(pattern.referenced_types.difference(known_types))
    if unknown:
        logger.warning("unknown-node-type", rule=label, types=unknown)


def build_highlight_rules(
    features: Sequence[FeatureSpec],
    *,
    composites: Iterable[CompositeSpec] = (),
    known_types: Collection[str] | None = None,
    logger: Logger | None = None,
) -> HighlightRuleSet:
    """Compile declarative feature specs into a :class:`HighlightRuleSet`.

    Args:
        features: Feature specs in priority order.
        composites: Composite actions available to capture names.
        known_types: Grammar node-type vocabulary; when given, references
            to other types are logged.
        logger: Optional logger override.

    Raises:
        RuleSetError: If a feature or pattern is malformed.
    """

    log = logger or get_logger(__name__, component="rules")
    compiled_composites = _compile_composites(composites)
    for composite in compiled_composites.values():
        _warn_unknown_types(
            composite.secondary,
            known_types,
            label=f"composite:{composite.name}",
            logger=log,
        )

    seen: set[str] = set()
    groups: list[FeatureGroup] = []
    order = 0
    for spec in features:
        name = spec.name.strip()
        if not name:
            raise RuleSetError("Feature names cannot be blank")
        if name in seen:
            raise RuleSetError(f"Duplicate feature {name!r}")
        if spec.level < 1:
            raise RuleSetError(f"Feature {name!r} level must be >= 1")
        if not spec.patterns:
            raise RuleSetError(f"Feature {name!r} has no rules")
        seen.add(name)

        rules: list[HighlightRule] = []
        for item in spec.patterns:
            rule_spec = item if isinstance(item, RuleSpec) else RuleSpec(item)
            label = f"{name}#{order}"
            pattern = compile_pattern(rule_spec.pattern, name=label)
            actions = _resolve_actions(
                pattern,
                compiled_composites,
                label=label,
                allow_composite=True,
            )
            _warn_unknown_types(pattern, known_types, label=label, logger=log)
            override = (
                spec.override if rule_spec.override is None else rule_spec.override
            )
            rules.append(
                HighlightRule(
                    pattern=pattern,
                    actions=MappingProxyType(actions),
                    order=order,
                    feature=name,
                    override=override,
                )
            )
            order += 1

        groups.append(
            FeatureGroup(
                name=name,
                level=spec.level,
                rules=tuple(rules),
                dispatch=TypeDispatch(rules, key=lambda rule: rule.pattern.root_types),
            )
        )
        log.debug("feature-compiled", feature=name, level=spec.level, rules=len(rules))

    return HighlightRuleSet(groups=tuple(groups))
