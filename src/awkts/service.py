"""Editing session: the engine queries bundled over one snapshot."""

from __future__ import annotations

from awkts.awk import build_default_rules
from awkts.core.config import EngineConfig, ParserSettings
from awkts.core.logging import Logger, get_logger
from awkts.engine.errors import TreeError
from awkts.engine.highlight import Assignment, HighlightAnnotator
from awkts.engine.indent import IndentDecision, IndentResolver
from awkts.engine.language import LanguageRules
from awkts.engine.navigation import OutlineEntry
from awkts.engine.parsing import parse_source
from awkts.engine.source import SourceText
from awkts.engine.tree import SyntaxNode, SyntaxTree

__all__ = ["EditingSession"]


class EditingSession:
    """Indentation, highlighting and outline queries over one snapshot.

    The session never mutates its tree. :meth:`reindent` returns new text;
    callers re-parse it to continue editing.

    Args:
        text: Source text of the snapshot.
        tree: Syntax tree for ``text``. Parsed with the configured grammar
            binding when omitted.
        config: Engine configuration record.
        rules: Compiled language rules; the AWK defaults when omitted.
        parser_settings: Grammar binding used when ``tree`` is omitted.
        logger: Optional logger override.

    Raises:
        TreeError: If ``tree`` was built from different text.
        ParserUnavailableError: If ``tree`` is omitted and no parser is
            available.
    """

    def __init__(
        self,
        text: SourceText | bytes | str,
        tree: SyntaxTree | None = None,
        *,
        config: EngineConfig | None = None,
        rules: LanguageRules | None = None,
        parser_settings: ParserSettings | None = None,
        logger: Logger | None = None,
    ) -> None:
        source = text if isinstance(text, SourceText) else SourceText(text)
        if tree is None:
            tree = parse_source(source, parser_settings)
        elif tree.source.data != source.data:
            raise TreeError("The syntax tree was built from different text")
        if rules is None:
            rules = build_default_rules()
        self._tree = tree
        self._config = config or EngineConfig()
        self._rules = rules
        self._logger = logger or get_logger(__name__, component="session")
        self._annotator = HighlightAnnotator(rules.highlight, logger=self._logger)
        self._resolver = IndentResolver(rules.indent, logger=self._logger)

    @property
    def tree(self) -> SyntaxTree:
        return self._tree

    @property
    def source(self) -> SourceText:
        return self._tree.source

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def rules(self) -> LanguageRules:
        return self._rules

    # ------------------------------------------------------------------
    # Indentation
    # ------------------------------------------------------------------
    def indent_line(self, line: int) -> IndentDecision:
        """Return the indentation decision for ``line`` as the text stands."""

        return self._resolver.resolve_line(self._tree, line, self._config)

    def indent_lines(
        self,
        start: int = 0,
        end: int | None = None,
    ) -> list[IndentDecision]:
        """Return decisions for lines ``[start, end)`` in document order.

        Anchors that sit on a line already handled by this call are measured
        at that line's new indentation, as a region reindent would see them.
        """

        source = self.source
        stop = source.line_count if end is None else min(end, source.line_count)
        first = max(0, start)
        columns: dict[int, int] = {}
        tab_width = self._config.tab_width

        def column_of(pos: int) -> int:
            line = source.line_of(pos)
            column = source.column_at(pos, tab_width=tab_width)
            if line not in columns:
                return column
            bol = source.first_nonblank(line)
            if bol is None or pos < bol:
                return column
            return columns[line] + column - source.column_at(bol, tab_width=tab_width)

        decisions: list[IndentDecision] = []
        for line in range(first, stop):
            decision = self._resolver.resolve_line(
                self._tree,
                line,
                self._config,
                column_of=column_of,
            )
            decisions.append(decision)
            if source.first_nonblank(line) is not None:
                columns[line] = decision.column
        return decisions

    def reindent(self) -> str:
        """Return the text with every line re-indented using spaces.

        Blank lines come back empty apart from a CRLF line's carriage return.
        """

        source = self.source
        lines: list[str] = []
        for line, decision in enumerate(self.indent_lines()):
            bol = source.first_nonblank(line)
            if bol is None:
                lines.append("\r" if source.line_bytes(line).endswith(b"\r") else "")
                continue
            lines.append(" " * decision.column + source.text(bol, source.line_end(line)))
        text = "\n".join(lines)
        self._logger.debug("reindented", lines=len(lines))
        return text

    def is_indented(self) -> bool:
        return self.reindent() == self.source.text(0, len(self.source))

    # ------------------------------------------------------------------
    # Highlighting and navigation
    # ------------------------------------------------------------------
    def highlight(
        self,
        start: int | None = None,
        end: int | None = None,
    ) -> list[Assignment]:
        return self._annotator.annotate(self._tree, self._config, start=start, end=end)

    def outline(self) -> list[OutlineEntry]:
        return self._rules.navigation.outline(self._tree, self._config)

    def defun_at(self, pos: int) -> SyntaxNode | None:
        """Return the definition around ``pos`` (beginning-of-defun target).

        ``prefer_top_level`` selects the outermost definition.
        """

        return self._rules.navigation.definition_at(
            self._tree,
            pos,
            top_level=self._config.prefer_top_level,
        )

    def defun_name(self, node: SyntaxNode) -> str | None:
        """Return the name of definition ``node`` or ``None``."""

        name_node = self._rules.navigation.name_node(node)
        if name_node is None:
            return None
        return self._tree.text(name_node)
