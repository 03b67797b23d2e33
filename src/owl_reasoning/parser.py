"""
owl_reasoning/parser.py - Manchester Syntax Subset Parser

Recursive-descent parser producing ``expressions`` trees.

Precedence (lowest first):
    or  <  and  <  not  <  restriction (some / only / value / min / max /
    exactly / self)

So ``hasPet some Dog and Cat`` parses as ``(hasPet some Dog) and Cat``;
parenthesize to attach a compound filler.

Example:
    >>> parse_expression("Mammal and not (hasPart some Wing)")
    Mammal and not hasPart some Wing
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache

from .errors import ExpressionSyntaxError
from .expressions import (
    Cardinality,
    CardinalityKind,
    ClassExpression,
    HasSelf,
    Named,
    Not,
    Only,
    Some,
    Value,
    conjunction,
    disjunction,
)

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
    \s*(
        <[^>\s]*>             # full IRI
      | \(|\)                 # grouping
      | -?\d+(?![^\s()<>,{}])  # cardinality
      | [^\s()<>,{}]+         # name, possibly prefixed
    )
    """,
    re.VERBOSE,
)

KEYWORDS = frozenset({"and", "or", "not", "some", "only", "value", "min", "max", "exactly", "self"})
_CARDINALITY = {
    "min": CardinalityKind.MIN,
    "max": CardinalityKind.MAX,
    "exactly": CardinalityKind.EXACTLY,
}


def tokenize(text: str) -> list[str]:
    """Split expression text into tokens.

    Raises:
        ExpressionSyntaxError: on characters outside the supported subset
    """
    tokens: list[str] = []
    pos = 0
    stripped = text.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise ExpressionSyntaxError(
                f"Unexpected character {stripped[pos:].lstrip()[:1]!r}", text, len(tokens)
            )
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


def _keyword(token: str | None) -> str | None:
    """Return the keyword a token spells (``and``/``AND``), or None."""
    if token is None:
        return None
    lowered = token.lower()
    if lowered in KEYWORDS and (token.islower() or token.isupper()):
        return lowered
    return None


class _Parser:
    """Single-use parser over a token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def advance(self) -> str:
        token = self.peek()
        if token is None:
            self.fail("Unexpected end of expression")
        self.pos += 1
        return token

    def fail(self, message: str):
        raise ExpressionSyntaxError(message, self.text, self.pos)

    def expect_name(self, allow_literal: bool = False) -> str:
        token = self.advance()
        is_number = token.lstrip("-").isdigit()
        if token in ("(", ")") or _keyword(token) or (is_number and not allow_literal):
            self.pos -= 1
            self.fail(f"Expected a name, got {token!r}")
        return token

    # -------------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------------

    def parse(self) -> ClassExpression:
        if not self.tokens:
            self.fail("Empty expression")
        expr = self.parse_or()
        if self.peek() is not None:
            self.fail(f"Unexpected token {self.peek()!r}")
        return expr

    def parse_or(self) -> ClassExpression:
        operands = [self.parse_and()]
        while _keyword(self.peek()) == "or":
            self.advance()
            operands.append(self.parse_and())
        return disjunction(*operands)

    def parse_and(self) -> ClassExpression:
        operands = [self.parse_not()]
        while _keyword(self.peek()) == "and":
            self.advance()
            operands.append(self.parse_not())
        return conjunction(*operands)

    def parse_not(self) -> ClassExpression:
        if _keyword(self.peek()) == "not":
            self.advance()
            return Not(self.parse_not())
        return self.parse_primary()

    def parse_primary(self) -> ClassExpression:
        token = self.peek()
        if token == "(":
            self.advance()
            expr = self.parse_or()
            if self.peek() != ")":
                self.fail("Missing closing parenthesis")
            self.advance()
            return expr

        name = self.expect_name()
        return self.parse_restriction(name)

    def parse_restriction(self, name: str) -> ClassExpression:
        keyword = _keyword(self.peek())

        if keyword == "some":
            self.advance()
            return Some(name, self.parse_not())
        if keyword == "only":
            self.advance()
            return Only(name, self.parse_not())
        if keyword == "value":
            self.advance()
            return Value(name, self.expect_name(allow_literal=True))
        if keyword == "self":
            self.advance()
            return HasSelf(name)
        if keyword in _CARDINALITY:
            self.advance()
            count_token = self.advance()
            if not count_token.isdigit():
                self.pos -= 1
                self.fail(f"Expected a non-negative integer, got {count_token!r}")
            filler = None
            if self._starts_filler(self.peek()):
                filler = self.parse_not()
            return Cardinality(name, _CARDINALITY[keyword], int(count_token), filler)

        return Named(name)

    @staticmethod
    def _starts_filler(token: str | None) -> bool:
        if token is None or token == ")":
            return False
        keyword = _keyword(token)
        return keyword is None or keyword == "not"


@lru_cache(maxsize=1024)
def parse_expression(text: str) -> ClassExpression:
    """Parse a class expression.

    Args:
        text: Expression in the supported Manchester subset

    Returns:
        Parsed expression tree

    Raises:
        ExpressionSyntaxError: if the text is not a valid expression
    """
    return _Parser(text).parse()


def try_parse(text: str) -> ClassExpression | None:
    """Parse a class expression, returning None instead of raising."""
    try:
        return parse_expression(text)
    except ExpressionSyntaxError as e:
        logger.debug(f"Unparsed expression: {e}")
        return None


def split_operands(text: str) -> list[str]:
    """Split a list-valued axiom (``DisjointUnionOf``, ``HasKey``) into names.

    Accepts whitespace- or comma-separated operands with optional
    surrounding parentheses: ``(Cat, Dog Bird)`` -> ``['Cat', 'Dog', 'Bird']``.
    """
    return [t for t in re.split(r"[\s,]+", re.sub(r"[(){}]", " ", text)) if t]
