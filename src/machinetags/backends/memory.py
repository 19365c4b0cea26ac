"""
Machinetags Backends - In-memory evaluator.

Evaluates the same expression trees as the SQL compiler against plain
row dicts, with LEFT OUTER JOIN and SQL NULL semantics. Useful for tests
and for stores that keep their tag tables in process.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Iterable

from machinetags.core.expressions import (
    And,
    Column,
    Eq,
    Expression,
    InSet,
    MatchNothing,
    Or,
    Raw,
    Select,
)
from machinetags.exceptions import UnsupportedExpressionException

Row = dict[str, Any]
Context = dict[str, Row | None]


class MemoryBackend:
    """Holds tables as lists of row dicts and executes Select trees over them."""

    def __init__(self, tables: dict[str, Iterable[Row]] | None = None):
        self._lock = RLock()
        self._tables: dict[str, list[Row]] = {name: list(rows) for name, rows in (tables or {}).items()}

    def insert(self, table: str, row: Row) -> None:
        with self._lock:
            self._tables.setdefault(table, []).append(dict(row))

    def rows(self, table: str) -> list[Row]:
        with self._lock:
            return list(self._tables.get(table, []))

    def execute(self, select: Select) -> list[Any]:
        """Rows of ``select.table`` (or values of ``select.column``) that satisfy the select."""
        with self._lock:
            return self._select(select)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def _contexts(self, select: Select) -> list[Context]:
        contexts: list[Context] = [
            {select.table.alias: row} for row in self._tables.get(select.table.name, [])
        ]
        for join in select.joins:
            joined: list[Context] = []
            candidates = self._tables.get(join.table.name, [])
            for context in contexts:
                matches = [
                    {**context, join.table.alias: row}
                    for row in candidates
                    if self._evaluate(join.on, {**context, join.table.alias: row})
                ]
                joined.extend(matches or [{**context, join.table.alias: None}])
            contexts = joined
        return contexts

    def _select(self, select: Select) -> list[Any]:
        results: list[Any] = []
        for context in self._contexts(select):
            if not self._evaluate(select.where, context):
                continue
            value = self._value(select.column, context) if select.column else context[select.table.alias]
            if select.distinct and value in results:
                continue
            results.append(value)
        return results

    @staticmethod
    def _value(column: Column, context: Context) -> Any:
        row = context.get(column.table)
        return None if row is None else row.get(column.name)

    def _evaluate(self, expression: Expression, context: Context) -> bool:
        if isinstance(expression, Eq):
            left = self._value(expression.left, context)
            if expression.right is None:
                return left is None
            right = self._value(expression.right, context) if isinstance(expression.right, Column) else expression.right
            return left is not None and right is not None and left == right

        if isinstance(expression, And):
            return all(self._evaluate(operand, context) for operand in expression.operands)

        if isinstance(expression, Or):
            return any(self._evaluate(operand, context) for operand in expression.operands)

        if isinstance(expression, InSet):
            value = self._value(expression.column, context)
            return value is not None and value in self._select(expression.select)

        if isinstance(expression, MatchNothing):
            return False

        if isinstance(expression, Raw):
            raise UnsupportedExpressionException("memory", "Raw")

        raise UnsupportedExpressionException("memory", type(expression).__name__)
