"""Renderer-agnostic highlight classifications."""

from __future__ import annotations

from enum import StrEnum

__all__ = ["Classification"]


class Classification(StrEnum):
    """Tags attached to highlighted byte ranges.

    Mapping a tag to a visual style is the host editor's concern. Capture
    names in highlight patterns use these values verbatim.
    """

    KEYWORD = "keyword"
    STRING = "string"
    COMMENT = "comment"
    BUILTIN_FUNCTION = "builtin-function"
    BUILTIN_VARIABLE = "builtin-variable"
    OPERATOR = "operator"
    BRACKET = "bracket"
    DELIMITER = "delimiter"
    ESCAPE = "escape"
    ERROR = "error"
    FUNCTION_DEFINITION = "function-definition"
    FUNCTION_CALL = "function-call"
    VARIABLE_DEFINITION = "variable-definition"
    VARIABLE_USE = "variable-use"
    NAMESPACE = "namespace"
    NUMBER = "number"
    CONSTANT = "constant"
    REGEX = "regex"

    @classmethod
    def lookup(cls, name: str) -> "Classification | None":
        """Return the member whose value is ``name`` or ``None``.

        Example:
            >>> Classification.lookup("builtin-function")
            <Classification.BUILTIN_FUNCTION: 'builtin-function'>
            >>> Classification.lookup("face") is None
            True
        """

        try:
            return cls(name)
        except ValueError:
            return None
