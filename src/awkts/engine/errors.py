"""Domain-specific exceptions for the rule engine."""

from __future__ import annotations


class AwktsError(RuntimeError):
    """Base error for engine failures."""


class RuleSetError(AwktsError):
    """Raised when a rule set cannot be constructed."""


class PatternError(RuleSetError):
    """Raised when a pattern literal is structurally invalid."""

    def __init__(self, message: str, *, rule: str | None = None) -> None:
        self.rule = rule
        if rule:
            message = f"{rule}: {message}"
        super().__init__(message)


class TreeError(AwktsError):
    """Raised when a syntax tree snapshot cannot be built."""


class ParserUnavailableError(AwktsError):
    """Raised when the tree-sitter runtime or grammar binding is missing."""


__all__ = [
    "AwktsError",
    "ParserUnavailableError",
    "PatternError",
    "RuleSetError",
    "TreeError",
]
