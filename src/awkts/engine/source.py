"""Byte-offset aware views over source text."""

from __future__ import annotations

from bisect import bisect_right
from typing import Sequence

__all__ = ["SourceText"]

_BLANK = b" \t\r\f\v"


class SourceText:
    """Immutable source bytes with line and column arithmetic.

    Offsets are byte offsets, matching the ranges reported by tree-sitter.
    Columns are display columns: characters are counted after UTF-8 decoding
    and tabs advance to the next multiple of ``tab_width``.

    Example:
        >>> text = SourceText("a\\n\\tb\\n")
        >>> text.line_count
        3
        >>> text.column_at(text.first_nonblank(1), tab_width=8)
        8
    """

    __slots__ = ("_data", "_line_starts")

    def __init__(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = bytes(data)
        starts = [0]
        index = self._data.find(b"\n")
        while index != -1:
            starts.append(index + 1)
            index = self._data.find(b"\n", index + 1)
        self._line_starts: Sequence[int] = tuple(starts)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def __len__(self) -> int:
        return len(self._data)

    def text(self, start: int, end: int) -> str:
        """Return the decoded slice ``[start, end)``."""

        return self._data[start:end].decode("utf-8", errors="replace")

    def line_of(self, pos: int) -> int:
        """Return the zero-based line containing byte ``pos``."""

        pos = max(0, min(pos, len(self._data)))
        return bisect_right(self._line_starts, pos) - 1

    def line_start(self, line: int) -> int:
        self._check_line(line)
        return self._line_starts[line]

    def line_end(self, line: int) -> int:
        """Return the offset of the newline ending ``line`` (or EOF)."""

        self._check_line(line)
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1
        return len(self._data)

    def line_bytes(self, line: int) -> bytes:
        return self._data[self.line_start(line) : self.line_end(line)]

    def first_nonblank(self, line: int) -> int | None:
        """Return the offset of the first significant byte on ``line``.

        Returns ``None`` for blank (whitespace-only) lines.
        """

        start = self.line_start(line)
        end = self.line_end(line)
        pos = start
        while pos < end and self._data[pos] in _BLANK:
            pos += 1
        if pos >= end:
            return None
        return pos

    def bol(self, pos: int) -> int:
        """Return the first significant offset on the line holding ``pos``.

        Blank lines yield the line end, mirroring back-to-indentation.
        """

        line = self.line_of(pos)
        first = self.first_nonblank(line)
        return self.line_end(line) if first is None else first

    def column_at(self, pos: int, *, tab_width: int) -> int:
        """Return the display column of ``pos`` on its line."""

        line = self.line_of(pos)
        prefix = self._data[self.line_start(line) : pos].decode(
            "utf-8", errors="replace"
        )
        column = 0
        for char in prefix:
            if char == "\t":
                column += tab_width - (column % tab_width)
            else:
                column += 1
        return column

    def _check_line(self, line: int) -> None:
        if line < 0 or line >= len(self._line_starts):
            raise IndexError(f"Line {line} out of range (0..{self.line_count - 1})")
