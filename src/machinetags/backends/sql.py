"""
Machinetags Backends - SQL compiler.

Renders filter expression trees as SQL text with qmark (``?``) parameters,
suitable for sqlite3 and other DB-API drivers using that paramstyle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from machinetags.core.expressions import (
    And,
    Column,
    Eq,
    Expression,
    InSet,
    Join,
    MatchNothing,
    Or,
    Raw,
    Select,
    TableRef,
)
from machinetags.exceptions import UnsupportedExpressionException


@dataclass(frozen=True)
class CompiledQuery:
    sql: str
    params: tuple[Any, ...]


class SQLCompiler:
    """Compiles Select and condition nodes to SQL."""

    placeholder = "?"

    def compile(self, select: Select) -> CompiledQuery:
        params: list[Any] = []
        sql = self._select(select, params)
        return CompiledQuery(sql, tuple(params))

    def compile_condition(self, expression: Expression) -> CompiledQuery:
        params: list[Any] = []
        sql = self._condition(expression, params)
        return CompiledQuery(sql, tuple(params))

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    @staticmethod
    def _column(column: Column) -> str:
        return f"{column.table}.{column.name}"

    @staticmethod
    def _table(table: TableRef) -> str:
        return table.name if table.name == table.alias else f"{table.name} {table.alias}"

    def _select(self, select: Select, params: list[Any]) -> str:
        projection = self._column(select.column) if select.column else f"{select.table.alias}.*"
        distinct = "DISTINCT " if select.distinct else ""
        parts = [f"SELECT {distinct}{projection} FROM {self._table(select.table)}"]
        parts.extend(self._join(join, params) for join in select.joins)
        parts.append(f"WHERE {self._condition(select.where, params)}")
        return " ".join(parts)

    def _join(self, join: Join, params: list[Any]) -> str:
        return f"LEFT OUTER JOIN {self._table(join.table)} ON {self._condition(join.on, params)}"

    def _condition(self, expression: Expression, params: list[Any], nested: bool = False) -> str:
        if isinstance(expression, Eq):
            left = self._column(expression.left)
            if isinstance(expression.right, Column):
                return f"{left} = {self._column(expression.right)}"
            if expression.right is None:
                return f"{left} IS NULL"
            params.append(expression.right)
            return f"{left} = {self.placeholder}"

        if isinstance(expression, (And, Or)):
            keyword = " AND " if isinstance(expression, And) else " OR "
            sql = keyword.join(self._condition(operand, params, nested=True) for operand in expression.operands)
            return f"({sql})" if nested else sql

        if isinstance(expression, InSet):
            return f"{self._column(expression.column)} IN ({self._select(expression.select, params)})"

        if isinstance(expression, Raw):
            params.extend(expression.params)
            return f"({expression.sql})" if nested else expression.sql

        if isinstance(expression, MatchNothing):
            return "1 = 0"

        raise UnsupportedExpressionException("sql", type(expression).__name__)
