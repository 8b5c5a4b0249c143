"""Tests for :mod:`awkts.engine.highlight`."""

from __future__ import annotations

from dataclasses import replace

import pytest
from structlog.testing import capture_logs

from awkts.core.config import EngineConfig
from awkts.engine.classification import Classification
from awkts.engine.highlight import AssignmentTable, HighlightAnnotator
from awkts.engine.patterns import TypeDispatch
from awkts.engine.rules import (
    CompositeSpec,
    FeatureSpec,
    HighlightRuleSet,
    build_highlight_rules,
)
from awkts.engine.tree import SyntaxTree, TreeBuilder

ALL_LEVELS = EngineConfig(font_lock_level=4)


def _pairs(tree: SyntaxTree, assignments) -> list[tuple[str, str]]:
    return [
        (tree.source.text(a.start, a.end), a.classification.value)
        for a in assignments
    ]


def _string_tree() -> SyntaxTree:
    b = TreeBuilder('s = "a\\nb"')
    return b.build(
        b.node(
            "program",
            b.node(
                "assignment_exp",
                b.leaf("identifier", "s", field="left"),
                "=",
                b.node(
                    "string",
                    '"',
                    b.leaf("escape_sequence", "\\n"),
                    '"',
                    field="right",
                ),
            ),
        )
    )


# ----------------------------------------------------------------------
# Assignment table algebra
# ----------------------------------------------------------------------
def test_plain_claim_is_all_or_nothing() -> None:
    table = AssignmentTable(0, 10)

    assert table.claim(4, 6, Classification.NUMBER, override=False)
    assert not table.claim(0, 5, Classification.STRING, override=False)

    assert table.classification_at(0) is None
    assert table.classification_at(4) is Classification.NUMBER
    assert [(a.start, a.end) for a in table.assignments()] == [(4, 6)]


def test_overlapping_overrides_resolve_per_byte_last_wins() -> None:
    table = AssignmentTable(0, 10)

    table.claim(0, 10, Classification.STRING, override=False)
    table.claim(2, 6, Classification.ESCAPE, override=True)
    table.claim(4, 8, Classification.ERROR, override=True)

    assert [(a.start, a.end, a.classification) for a in table.assignments()] == [
        (0, 2, Classification.STRING),
        (2, 4, Classification.ESCAPE),
        (4, 8, Classification.ERROR),
        (8, 10, Classification.STRING),
    ]


def test_claims_are_clipped_to_the_table_range() -> None:
    table = AssignmentTable(5, 10)

    assert table.claim(0, 7, Classification.COMMENT, override=False)
    assert not table.claim(10, 20, Classification.COMMENT, override=False)
    assert [(a.start, a.end) for a in table.assignments()] == [(5, 7)]
    with pytest.raises(ValueError):
        AssignmentTable(3, 1)


def test_identical_claims_from_separate_rules_stay_separate_runs() -> None:
    table = AssignmentTable(0, 4)

    table.claim(0, 2, Classification.KEYWORD, override=False, feature="k", rule="k#0")
    table.claim(2, 4, Classification.KEYWORD, override=False, feature="k", rule="k#0")

    assignments = table.assignments()
    assert [(a.start, a.end) for a in assignments] == [(0, 2), (2, 4)]
    assert all(a.feature == "k" for a in assignments)


# ----------------------------------------------------------------------
# Passes
# ----------------------------------------------------------------------
def test_override_law_plain_rule_loses_to_earlier_claim() -> None:
    tree = _string_tree()
    plain = build_highlight_rules(
        [
            FeatureSpec(name="string", level=1, patterns=(("string", "@string"),)),
            FeatureSpec(
                name="escape",
                level=1,
                patterns=(("string", ("escape_sequence", "@escape")),),
            ),
        ]
    )
    forced = build_highlight_rules(
        [
            FeatureSpec(name="string", level=1, patterns=(("string", "@string"),)),
            FeatureSpec(
                name="escape",
                level=1,
                override=True,
                patterns=(("string", ("escape_sequence", "@escape")),),
            ),
        ]
    )

    assert _pairs(tree, HighlightAnnotator(plain).annotate(tree, ALL_LEVELS)) == [
        ('"a\\nb"', "string")
    ]
    assert _pairs(tree, HighlightAnnotator(forced).annotate(tree, ALL_LEVELS)) == [
        ('"a', "string"),
        ("\\n", "escape"),
        ('b"', "string"),
    ]


def test_group_order_beats_tree_order() -> None:
    tree = _string_tree()
    rules = build_highlight_rules(
        [
            FeatureSpec(
                name="escape",
                level=1,
                patterns=(("string", ("escape_sequence", "@escape")),),
            ),
            FeatureSpec(name="string", level=1, patterns=(("string", "@string"),)),
        ]
    )

    # The escape rule claims first, so the plain string claim over the
    # whole literal fails on the already-claimed bytes.
    assert _pairs(tree, HighlightAnnotator(rules).annotate(tree, ALL_LEVELS)) == [
        ("\\n", "escape")
    ]


def test_sweep_consults_each_group_dispatch_table() -> None:
    tree = _string_tree()
    rules = build_highlight_rules(
        [
            FeatureSpec(
                name="escape",
                level=1,
                patterns=(("string", ("escape_sequence", "@escape")),),
            ),
            FeatureSpec(name="string", level=1, patterns=(("string", "@string"),)),
        ]
    )
    escape, string = rules.groups
    assert escape.dispatch.candidates("string") == escape.rules
    assert escape.dispatch.candidates("identifier") == ()

    # A group is only tried on the node types its own table lists.
    muted = HighlightRuleSet(
        groups=(replace(escape, dispatch=TypeDispatch((), key=lambda rule: None)), string)
    )

    assert _pairs(tree, HighlightAnnotator(muted).annotate(tree, ALL_LEVELS)) == [
        ('"a\\nb"', "string")
    ]


def test_highlight_is_idempotent(highlight_tree: SyntaxTree, awk_rules) -> None:
    annotator = HighlightAnnotator(awk_rules.highlight)

    first = annotator.annotate(highlight_tree, ALL_LEVELS)
    second = annotator.annotate(highlight_tree, ALL_LEVELS)

    assert first == second


def test_outputs_are_ordered_and_disjoint(highlight_tree: SyntaxTree, awk_rules) -> None:
    assignments = HighlightAnnotator(awk_rules.highlight).annotate(highlight_tree, ALL_LEVELS)

    for previous, current in zip(assignments, assignments[1:]):
        assert previous.end <= current.start


def test_predicate_failure_only_disables_its_rule(highlight_tree: SyntaxTree) -> None:
    def explode(text: str) -> bool:
        raise ValueError(f"cannot judge {text}")

    rules = build_highlight_rules(
        [
            FeatureSpec(
                name="fragile",
                level=1,
                patterns=(("identifier", "@constant", ("#pred", "@constant", explode)),),
            ),
            FeatureSpec(name="variable", level=1, patterns=(("identifier", "@variable-use"),)),
        ]
    )

    with capture_logs() as logs:
        assignments = HighlightAnnotator(rules).annotate(highlight_tree, ALL_LEVELS)

    assert {a.classification for a in assignments} == {Classification.VARIABLE_USE}
    skipped = [entry for entry in logs if entry["event"] == "rule-skipped"]
    assert skipped and skipped[0]["rule"] == "fragile#0"
    assert skipped[0]["log_level"] == "debug"


def test_composite_reclassifies_left_hand_side() -> None:
    b = TreeBuilder("arr[i] = NR")
    tree = b.build(
        b.node(
            "program",
            b.node(
                "assignment_exp",
                b.node(
                    "array_ref",
                    b.leaf("identifier", "arr"),
                    "[",
                    b.leaf("identifier", "i"),
                    "]",
                    field="left",
                ),
                "=",
                b.leaf("identifier", "NR", field="right"),
            ),
        )
    )
    rules = build_highlight_rules(
        [
            FeatureSpec(name="variable", level=1, patterns=(("identifier", "@variable-use"),)),
            FeatureSpec(
                name="assignment",
                level=1,
                override=True,
                patterns=(("assignment_exp", "left:", ("_", "@lhs")),),
            ),
        ],
        composites=[
            CompositeSpec(name="lhs", secondary=("identifier", "@variable-definition"))
        ],
    )

    pairs = _pairs(tree, HighlightAnnotator(rules).annotate(tree, ALL_LEVELS))

    assert pairs == [
        ("arr", "variable-definition"),
        ("i", "variable-definition"),
        ("NR", "variable-use"),
    ]


def test_sub_range_sweep_only_reports_bytes_in_range(highlight_tree: SyntaxTree, awk_rules) -> None:
    source = highlight_tree.source
    start = source.line_start(2)
    end = source.line_end(2)
    annotator = HighlightAnnotator(awk_rules.highlight)

    partial = annotator.annotate(highlight_tree, ALL_LEVELS, start=start, end=end)
    full = [
        a
        for a in annotator.annotate(highlight_tree, ALL_LEVELS)
        if start <= a.start and a.end <= end
    ]

    assert partial == full
    assert _pairs(highlight_tree, partial) == [
        ("total", "variable-definition"),
        ("+=", "operator"),
        ("n", "variable-use"),
    ]


def test_feature_gating_by_level_and_explicit_set(highlight_tree: SyntaxTree, awk_rules) -> None:
    annotator = HighlightAnnotator(awk_rules.highlight)

    level_one = annotator.annotate(highlight_tree, EngineConfig(font_lock_level=1))
    explicit = annotator.annotate(
        highlight_tree,
        EngineConfig(enabled_features={"keyword"}, font_lock_level=1),
    )
    nothing = annotator.annotate(highlight_tree, EngineConfig(enabled_features=set()))

    assert {a.classification.value for a in level_one} == {
        "comment",
        "function-definition",
        "variable-definition",
    }
    assert _pairs(highlight_tree, explicit) == [("function", "keyword"), ("print", "keyword")]
    assert nothing == []
    assert [g.name for g in annotator.active_groups(EngineConfig(font_lock_level=2))] == [
        "comment",
        "definition",
        "keyword",
        "string",
        "builtin",
    ]
