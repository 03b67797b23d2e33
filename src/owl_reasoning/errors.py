"""
owl_reasoning/errors.py - Exceptions raised at the reasoning boundary

Inside the core nothing is fatal: unresolvable expressions degrade to
empty or ``None`` results. The only hard failures are a malformed
snapshot (rejected before an index is built) and, for callers that parse
expressions directly, a syntax error in an expression string.
"""
from __future__ import annotations


class ReasonerError(Exception):
    """Base class for all owl_reasoning errors."""


class SnapshotError(ReasonerError):
    """The input snapshot is missing required fields or is inconsistent.

    Attributes:
        field: Dotted path of the offending field, when known
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class ExpressionSyntaxError(ReasonerError):
    """A class expression could not be parsed.

    Attributes:
        expression: The source text
        position: Token index where parsing failed
    """

    def __init__(self, message: str, expression: str, position: int = 0):
        self.expression = expression
        self.position = position
        super().__init__(f"{message} (in {expression!r} at token {position})")
