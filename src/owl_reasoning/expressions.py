"""
owl_reasoning/expressions.py - Class Expression Tree

Typed representation of the Manchester-syntax subset used in axioms and
DL queries. Expressions are parsed once (see ``parser``) and evaluated by
the resolver as structured data:

- Named: a class, individual or datatype referenced by label
- And / Or: n-ary intersection and union
- Not: complement
- Some / Only: existential and universal restriction
- Value: hasValue restriction on a named individual
- Cardinality: min / max / exactly, optionally qualified
- HasSelf: local reflexivity (``prop self``)

All nodes are frozen and hashable so they can be used as dictionary keys
and compared structurally.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Union


class ClassExpression(ABC):
    """Base class for all expression nodes."""

    @abstractmethod
    def names(self) -> set[str]:
        """Return every entity name referenced by the expression."""

    @property
    def is_named(self) -> bool:
        return False


@dataclass(frozen=True)
class Named(ClassExpression):
    """Reference to an entity by label, optionally prefixed (``ex:Person``)."""

    name: str

    def names(self) -> set[str]:
        return {self.name}

    @property
    def is_named(self) -> bool:
        return True

    def __repr__(self) -> str:
        return self.name


@dataclass(frozen=True)
class And(ClassExpression):
    """Intersection of two or more expressions."""

    operands: tuple[ClassExpression, ...]

    def names(self) -> set[str]:
        result: set[str] = set()
        for op in self.operands:
            result.update(op.names())
        return result

    def __repr__(self) -> str:
        return " and ".join(_wrap(op, (Or,)) for op in self.operands)


@dataclass(frozen=True)
class Or(ClassExpression):
    """Union of two or more expressions."""

    operands: tuple[ClassExpression, ...]

    def names(self) -> set[str]:
        result: set[str] = set()
        for op in self.operands:
            result.update(op.names())
        return result

    def __repr__(self) -> str:
        return " or ".join(repr(op) for op in self.operands)


@dataclass(frozen=True)
class Not(ClassExpression):
    """Complement of an expression."""

    operand: ClassExpression

    def names(self) -> set[str]:
        return self.operand.names()

    def __repr__(self) -> str:
        return f"not {_wrap(self.operand, (And, Or))}"


@dataclass(frozen=True)
class Some(ClassExpression):
    """Existential restriction: ``prop some Filler``."""

    prop: str
    filler: ClassExpression

    def names(self) -> set[str]:
        return {self.prop} | self.filler.names()

    def __repr__(self) -> str:
        return f"{self.prop} some {_wrap(self.filler, (And, Or))}"


@dataclass(frozen=True)
class Only(ClassExpression):
    """Universal restriction: ``prop only Filler``."""

    prop: str
    filler: ClassExpression

    def names(self) -> set[str]:
        return {self.prop} | self.filler.names()

    def __repr__(self) -> str:
        return f"{self.prop} only {_wrap(self.filler, (And, Or))}"


@dataclass(frozen=True)
class Value(ClassExpression):
    """hasValue restriction: ``prop value individual``."""

    prop: str
    individual: str

    def names(self) -> set[str]:
        return {self.prop, self.individual}

    def __repr__(self) -> str:
        return f"{self.prop} value {self.individual}"


class CardinalityKind(str, Enum):
    MIN = "min"
    MAX = "max"
    EXACTLY = "exactly"


@dataclass(frozen=True)
class Cardinality(ClassExpression):
    """Number restriction: ``prop min 2 Filler`` (filler optional)."""

    prop: str
    kind: CardinalityKind
    count: int
    filler: ClassExpression | None = None

    def names(self) -> set[str]:
        result = {self.prop}
        if self.filler is not None:
            result.update(self.filler.names())
        return result

    @property
    def is_qualified(self) -> bool:
        return self.filler is not None

    def admits(self, n: int) -> bool:
        """True if ``n`` distinct fillers satisfy the restriction."""
        if self.kind == CardinalityKind.MIN:
            return n >= self.count
        if self.kind == CardinalityKind.MAX:
            return n <= self.count
        return n == self.count

    def __repr__(self) -> str:
        base = f"{self.prop} {self.kind.value} {self.count}"
        if self.filler is None:
            return base
        return f"{base} {_wrap(self.filler, (And, Or))}"


@dataclass(frozen=True)
class HasSelf(ClassExpression):
    """Local reflexivity: ``prop self``."""

    prop: str

    def names(self) -> set[str]:
        return {self.prop}

    def __repr__(self) -> str:
        return f"{self.prop} self"


# Type alias for restriction nodes
Restriction = Union[Some, Only, Value, Cardinality, HasSelf]


def _wrap(expr: ClassExpression, compound: tuple[type, ...]) -> str:
    text = repr(expr)
    return f"({text})" if isinstance(expr, compound) else text


def conjunction(*operands: ClassExpression) -> ClassExpression:
    """Build an intersection, flattening nested And nodes."""
    flat: list[ClassExpression] = []
    for op in operands:
        if isinstance(op, And):
            flat.extend(op.operands)
        else:
            flat.append(op)
    return flat[0] if len(flat) == 1 else And(tuple(flat))


def disjunction(*operands: ClassExpression) -> ClassExpression:
    """Build a union, flattening nested Or nodes."""
    flat: list[ClassExpression] = []
    for op in operands:
        if isinstance(op, Or):
            flat.extend(op.operands)
        else:
            flat.append(op)
    return flat[0] if len(flat) == 1 else Or(tuple(flat))
