"""
Machinetags Core - Filter expression tree.

Small, backend-neutral boolean expression nodes produced by the finder and
compiled by a backend (SQL text, in-memory evaluation, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class TableRef:
    """A table used under an alias."""

    name: str
    alias: str


@dataclass(frozen=True)
class Column:
    """A column qualified by its table alias."""

    table: str
    name: str


@dataclass(frozen=True)
class Eq:
    """``left = right`` where ``right`` is a column or a literal value."""

    left: Column
    right: Any


@dataclass(frozen=True)
class And:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class Or:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class Join:
    """LEFT OUTER JOIN of ``table`` on ``on``."""

    table: TableRef
    on: "Expression"


@dataclass(frozen=True)
class Select:
    """
    A query over ``table`` and its joins.

    ``column`` set means the select yields that column's values (an
    identifier set); otherwise it yields ``table`` rows.
    """

    table: TableRef
    where: "Expression"
    joins: tuple[Join, ...] = ()
    column: Column | None = None
    distinct: bool = False


@dataclass(frozen=True)
class InSet:
    """``column`` is a member of the values produced by ``select``."""

    column: Column
    select: Select


@dataclass(frozen=True)
class Raw:
    """Backend-specific condition text passed through untouched."""

    sql: str
    params: tuple[Any, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MatchNothing:
    """A condition no row satisfies."""


Expression = Union[Eq, And, Or, InSet, Raw, MatchNothing]


def and_(*operands: Expression) -> Expression:
    """Conjunction that collapses a single operand."""
    return operands[0] if len(operands) == 1 else And(tuple(operands))


def or_(*operands: Expression) -> Expression:
    """Disjunction that collapses a single operand."""
    return operands[0] if len(operands) == 1 else Or(tuple(operands))


EXPRESSION_TYPES = (Eq, And, Or, InSet, Raw, MatchNothing)
