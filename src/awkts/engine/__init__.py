"""Syntax-directed rule engine surface."""

from __future__ import annotations

from .classification import Classification
from .errors import (
    AwktsError,
    ParserUnavailableError,
    PatternError,
    RuleSetError,
    TreeError,
)
from .highlight import (
    Assignment,
    AssignmentTable,
    HighlightAnnotator,
)
from .indent import (
    ANCHORS,
    IndentContext,
    IndentDecision,
    IndentResolver,
    IndentRule,
    IndentRuleSet,
    all_of,
    build_indent_rules,
    catch_all,
    field_is,
    no_node,
    node_is,
    node_matches,
    parent_is,
    parent_matches,
)
from .language import LanguageRules
from .navigation import (
    NavigationIndex,
    NavigationRule,
    OutlineEntry,
)
from .parsing import (
    grammar_node_types,
    load_language,
    parse_source,
)
from .patterns import (
    Capture,
    CompiledPattern,
    Match,
    TypeDispatch,
    compile_pattern,
)
from .rules import (
    Composite,
    CompositeSpec,
    Emit,
    FeatureGroup,
    FeatureSpec,
    HighlightRule,
    HighlightRuleSet,
    RuleSpec,
    build_highlight_rules,
)
from .source import SourceText
from .tree import (
    ERROR_TYPE,
    SyntaxNode,
    SyntaxTree,
    TreeBuilder,
)

__all__ = [
    "ANCHORS",
    "Assignment",
    "AssignmentTable",
    "AwktsError",
    "Capture",
    "Classification",
    "CompiledPattern",
    "Composite",
    "CompositeSpec",
    "ERROR_TYPE",
    "Emit",
    "FeatureGroup",
    "FeatureSpec",
    "HighlightAnnotator",
    "HighlightRule",
    "HighlightRuleSet",
    "IndentContext",
    "IndentDecision",
    "IndentResolver",
    "IndentRule",
    "IndentRuleSet",
    "LanguageRules",
    "Match",
    "NavigationIndex",
    "NavigationRule",
    "OutlineEntry",
    "ParserUnavailableError",
    "PatternError",
    "RuleSetError",
    "RuleSpec",
    "SourceText",
    "SyntaxNode",
    "SyntaxTree",
    "TreeBuilder",
    "TreeError",
    "TypeDispatch",
    "all_of",
    "build_highlight_rules",
    "build_indent_rules",
    "catch_all",
    "compile_pattern",
    "field_is",
    "grammar_node_types",
    "load_language",
    "no_node",
    "node_is",
    "node_matches",
    "parent_is",
    "parent_matches",
    "parse_source",
]
