"""Default AWK highlight feature groups.

Groups are listed in priority order; the level is the font-lock level at
which a group switches on when no explicit feature set is configured.
"""

from __future__ import annotations

from awkts.engine.rules import CompositeSpec, FeatureSpec

from .vocabulary import (
    BRACKETS,
    BUILTIN_FUNCTIONS,
    BUILTIN_VARIABLES,
    DELIMITERS,
    KEYWORDS,
    OPERATORS,
)

__all__ = [
    "ASSIGNMENT_LHS",
    "CONSTANT_PATTERN",
    "composite_specs",
    "feature_specs",
]

ASSIGNMENT_LHS = "assignment-lhs"

CONSTANT_PATTERN = r"\A[A-Z_][A-Z0-9_]*\Z"


def composite_specs() -> tuple[CompositeSpec, ...]:
    return (
        CompositeSpec(
            name=ASSIGNMENT_LHS,
            secondary=(
                "identifier",
                "@variable-definition",
                ("#not-in", "@variable-definition", BUILTIN_VARIABLES),
            ),
        ),
    )


def feature_specs() -> tuple[FeatureSpec, ...]:
    """Return the AWK feature groups in priority order."""

    return (
        # Level 1
        FeatureSpec(
            name="comment",
            level=1,
            patterns=(("comment", "@comment"),),
        ),
        FeatureSpec(
            name="definition",
            level=1,
            patterns=(
                ("func_def", "name:", ("identifier", "@function-definition")),
                ("func_def", ("param_list", ("identifier", "@variable-definition"))),
            ),
        ),
        # Level 2
        FeatureSpec(
            name="keyword",
            level=2,
            patterns=((KEYWORDS, "@keyword"),),
        ),
        FeatureSpec(
            name="string",
            level=2,
            patterns=(("string", "@string"),),
        ),
        FeatureSpec(
            name="builtin",
            level=2,
            patterns=(
                (
                    "func_call",
                    "name:",
                    ("identifier", "@builtin-function"),
                    ("#in", "@builtin-function", BUILTIN_FUNCTIONS),
                ),
                (
                    "identifier",
                    "@builtin-variable",
                    ("#in", "@builtin-variable", BUILTIN_VARIABLES),
                ),
            ),
        ),
        # Level 3
        FeatureSpec(
            name="namespace",
            level=3,
            patterns=(("ns_qualified_name", ("namespace", "@namespace")),),
        ),
        FeatureSpec(
            name="constant",
            level=3,
            patterns=(
                (
                    "identifier",
                    "@constant",
                    ("#match", "@constant", CONSTANT_PATTERN),
                ),
            ),
        ),
        FeatureSpec(
            name="escape-sequence",
            level=3,
            override=True,
            patterns=(
                ("string", ("escape_sequence", "@escape")),
            ),
        ),
        FeatureSpec(
            name="regex",
            level=3,
            patterns=(("regex", "@regex"),),
        ),
        FeatureSpec(
            name="function",
            level=3,
            patterns=(
                ("func_call", "name:", ("identifier", "@function-call")),
            ),
        ),
        FeatureSpec(
            name="number",
            level=3,
            patterns=(("number", "@number"),),
        ),
        FeatureSpec(
            name="assignment",
            level=3,
            override=True,
            patterns=(("assignment_exp", "left:", ("_", "@" + ASSIGNMENT_LHS)),),
        ),
        # Level 4
        FeatureSpec(
            name="bracket",
            level=4,
            patterns=((BRACKETS, "@bracket"),),
        ),
        FeatureSpec(
            name="delimiter",
            level=4,
            patterns=((DELIMITERS, "@delimiter"),),
        ),
        FeatureSpec(
            name="operator",
            level=4,
            patterns=((OPERATORS, "@operator"),),
        ),
        FeatureSpec(
            name="variable",
            level=4,
            patterns=(("identifier", "@variable-use"),),
        ),
        # Off at the default level 3. Enable level 4 or name "error" in
        # enabled_features to mark parse-error spans.
        FeatureSpec(
            name="error",
            level=4,
            override=True,
            patterns=(("ERROR", "@error"),),
        ),
    )
