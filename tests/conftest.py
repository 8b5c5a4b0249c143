"""Shared pytest fixtures: hand-built tree-sitter-awk shaped trees."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from awkts.awk import build_default_rules
from awkts.engine.language import LanguageRules
from awkts.engine.source import SourceText
from awkts.engine.tree import SyntaxTree, TreeBuilder

IF_ELSE_SOURCE = """BEGIN {
if (c) {
a = 1
}
else {
a = 2
}
}
"""

IF_ELSE_INDENTED = """BEGIN {
    if (c) {
        a = 1
    }
    else {
        a = 2
    }
}
"""

NESTED_FUNCTIONS_SOURCE = """function outer(x) {
    function inner(y) {
        return y
    }
    return inner(x)
}
function helper() {
    print NR
}
"""

HIGHLIGHT_SOURCE = """# sum
function add(n) {
    total += n
    print length("a\\tb"), NR, MAX
}
"""

ERROR_SOURCE = "{ x = 1; y = = 2; z = 3 }\n"

TreeFactory = Callable[[SourceText | str], SyntaxTree]


def _assignment(b: TreeBuilder, name: str, value: str, operator: str = "="):
    return b.node(
        "assignment_exp",
        b.leaf("identifier", name, field="left"),
        operator,
        b.leaf("number", value, field="right"),
    )


def build_if_else_tree(source: SourceText | str = IF_ELSE_SOURCE) -> SyntaxTree:
    b = TreeBuilder(source)
    return b.build(
        b.node(
            "program",
            b.node(
                "rule",
                "BEGIN",
                b.node(
                    "block",
                    "{",
                    b.node(
                        "if_statement",
                        "if",
                        "(",
                        b.leaf("identifier", "c", field="condition"),
                        ")",
                        b.node("block", "{", _assignment(b, "a", "1"), "}"),
                        b.node(
                            "else_clause",
                            "else",
                            b.node("block", "{", _assignment(b, "a", "2"), "}"),
                        ),
                    ),
                    "}",
                ),
            ),
        )
    )


def build_nested_functions_tree(
    source: SourceText | str = NESTED_FUNCTIONS_SOURCE,
) -> SyntaxTree:
    b = TreeBuilder(source)
    inner = b.node(
        "func_def",
        "function",
        b.leaf("identifier", "inner", field="name"),
        "(",
        b.node("param_list", b.leaf("identifier", "y"), field="parameters"),
        ")",
        b.node(
            "block",
            "{",
            b.node("return_statement", "return", b.leaf("identifier", "y")),
            "}",
            field="body",
        ),
    )
    outer = b.node(
        "func_def",
        "function",
        b.leaf("identifier", "outer", field="name"),
        "(",
        b.node("param_list", b.leaf("identifier", "x"), field="parameters"),
        ")",
        b.node(
            "block",
            "{",
            inner,
            b.node(
                "return_statement",
                "return",
                b.node(
                    "func_call",
                    b.leaf("identifier", "inner", field="name"),
                    "(",
                    b.node("args", b.leaf("identifier", "x")),
                    ")",
                ),
            ),
            "}",
            field="body",
        ),
    )
    helper = b.node(
        "func_def",
        "function",
        b.leaf("identifier", "helper", field="name"),
        "(",
        ")",
        b.node(
            "block",
            "{",
            b.node("print_statement", "print", b.leaf("identifier", "NR")),
            "}",
            field="body",
        ),
    )
    return b.build(b.node("program", outer, helper))


def build_highlight_tree(source: SourceText | str = HIGHLIGHT_SOURCE) -> SyntaxTree:
    b = TreeBuilder(source)
    string = b.node("string", '"', b.leaf("escape_sequence", "\\t"), '"')
    return b.build(
        b.node(
            "program",
            b.leaf("comment", "# sum"),
            b.node(
                "func_def",
                "function",
                b.leaf("identifier", "add", field="name"),
                "(",
                b.node("param_list", b.leaf("identifier", "n"), field="parameters"),
                ")",
                b.node(
                    "block",
                    "{",
                    b.node(
                        "assignment_exp",
                        b.leaf("identifier", "total", field="left"),
                        "+=",
                        b.leaf("identifier", "n", field="right"),
                    ),
                    b.node(
                        "print_statement",
                        "print",
                        b.node(
                            "func_call",
                            b.leaf("identifier", "length", field="name"),
                            "(",
                            b.node("args", string),
                            ")",
                        ),
                        ",",
                        b.leaf("identifier", "NR"),
                        ",",
                        b.leaf("identifier", "MAX"),
                    ),
                    "}",
                    field="body",
                ),
            ),
        )
    )


def build_error_tree(source: SourceText | str = ERROR_SOURCE) -> SyntaxTree:
    b = TreeBuilder(source)
    return b.build(
        b.node(
            "program",
            b.node(
                "rule",
                b.node(
                    "block",
                    "{",
                    _assignment(b, "x", "1"),
                    ";",
                    b.node(
                        "ERROR",
                        b.leaf("identifier", "y"),
                        "=",
                        "=",
                        b.leaf("number", "2"),
                    ),
                    ";",
                    _assignment(b, "z", "3"),
                    "}",
                ),
            ),
        )
    )


@pytest.fixture(scope="session")
def awk_rules() -> LanguageRules:
    """Compile the bundled AWK rules once per test session."""

    return build_default_rules()


@pytest.fixture
def if_else_tree() -> SyntaxTree:
    return build_if_else_tree()


@pytest.fixture
def nested_functions_tree() -> SyntaxTree:
    return build_nested_functions_tree()


@pytest.fixture
def highlight_tree() -> SyntaxTree:
    return build_highlight_tree()


@pytest.fixture
def error_tree() -> SyntaxTree:
    return build_error_tree()


@pytest.fixture
def tree_factories() -> dict[str, TreeFactory]:
    """Builders keyed by fixture name, for tests that parse files."""

    return {
        "if_else": build_if_else_tree,
        "nested_functions": build_nested_functions_tree,
        "highlight": build_highlight_tree,
        "error": build_error_tree,
    }


@pytest.fixture
def if_else_indented() -> str:
    return IF_ELSE_INDENTED
