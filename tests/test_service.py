"""Tests for :class:`awkts.service.EditingSession`."""

from __future__ import annotations

import pytest

from awkts import service
from awkts.core.config import EngineConfig
from awkts.engine.errors import TreeError
from awkts.engine.tree import SyntaxTree, TreeBuilder
from awkts.service import EditingSession


def _session(factory, text: str | None = None, **kwargs) -> EditingSession:
    tree = factory() if text is None else factory(text)
    return EditingSession(tree.source, tree, **kwargs)


def test_reindent_uses_already_reindented_anchors(tree_factories, if_else_indented: str) -> None:
    session = _session(tree_factories["if_else"])

    assert [decision.column for decision in session.indent_lines()] == [
        0, 4, 8, 4, 4, 8, 4, 0, 0,
    ]
    assert session.reindent() == if_else_indented
    assert not session.is_indented()


def test_single_line_decisions_measure_current_text(tree_factories) -> None:
    session = _session(tree_factories["if_else"])

    assert session.indent_line(2).column == 4
    assert [d.column for d in session.indent_lines(2, 4)] == [4, 0]


def test_indented_text_is_stable(tree_factories, if_else_indented: str) -> None:
    session = _session(tree_factories["if_else"], if_else_indented)

    assert session.is_indented()
    assert session.reindent() == if_else_indented


def test_indent_unit_and_blank_lines() -> None:
    source = "BEGIN {\n  \t\n}\n"
    b = TreeBuilder(source)
    tree = b.build(b.node("program", b.node("rule", "BEGIN", b.node("block", "{", "}"))))
    session = EditingSession(source, tree, config=EngineConfig(indent_unit=2))

    assert session.indent_line(1).column == 2
    assert session.reindent() == "BEGIN {\n\n}\n"


def test_crlf_line_endings_survive_reindent() -> None:
    source = "BEGIN {\r\n    x = 1\r\n\r\n}\r\n"
    b = TreeBuilder(source)
    assignment = b.node(
        "assignment_exp",
        b.leaf("identifier", "x", field="left"),
        "=",
        b.leaf("number", "1", field="right"),
    )
    tree = b.build(
        b.node("program", b.node("rule", "BEGIN", b.node("block", "{", assignment, "}")))
    )
    session = EditingSession(source, tree)

    assert session.reindent() == source
    assert session.is_indented()


def test_outline_and_defun_queries(tree_factories) -> None:
    session = _session(tree_factories["nested_functions"])
    top = _session(
        tree_factories["nested_functions"],
        config=EngineConfig(prefer_top_level=True),
    )
    in_inner = session.source.first_nonblank(2)

    assert [entry.name for entry in session.outline()] == ["outer", "inner", "helper"]
    assert [entry.name for entry in top.outline()] == ["outer", "helper"]
    assert session.defun_name(session.defun_at(in_inner)) == "inner"
    assert top.defun_name(top.defun_at(in_inner)) == "outer"
    assert session.defun_name(session.tree.root) is None


def test_highlight_uses_session_config(tree_factories) -> None:
    session = _session(
        tree_factories["highlight"],
        config=EngineConfig(enabled_features={"comment"}),
    )

    assignments = session.highlight()

    assert [(a.start, a.end, a.classification.value) for a in assignments] == [
        (0, 5, "comment")
    ]
    assert session.highlight(start=6) == []


def test_mismatched_tree_is_rejected(tree_factories) -> None:
    tree = tree_factories["if_else"]()

    with pytest.raises(TreeError):
        EditingSession("BEGIN { }\n", tree)


def test_text_is_parsed_when_no_tree_is_given(
    monkeypatch: pytest.MonkeyPatch, tree_factories, highlight_tree: SyntaxTree
) -> None:
    seen = []

    def fake_parse(source, settings=None):
        seen.append(settings)
        return tree_factories["highlight"](source)

    monkeypatch.setattr(service, "parse_source", fake_parse)

    text = highlight_tree.source.text(0, len(highlight_tree.source))

    session = EditingSession(text)

    assert seen == [None]
    assert session.outline()[0].name == "add"
