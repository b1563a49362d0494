"""SQLAlchemy-backed query runner."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine

from reportql.core.sql_ast.clauses import PLACEHOLDER


def to_named_binds(sql: str, params: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """
    Rewrite positional `?` placeholders as `:p0, :p1, ...` for `text()`.

    Compiled report SQL only contains `?` as a placeholder: values are
    always bound and identifiers are restricted to [A-Za-z0-9_.].
    """
    pieces = sql.split(PLACEHOLDER)
    if len(pieces) - 1 != len(params):
        raise ValueError(
            f"SQL has {len(pieces) - 1} placeholders but {len(params)} params were given"
        )

    parts = [pieces[0]]
    binds: dict[str, Any] = {}
    for index, (param, piece) in enumerate(zip(params, pieces[1:])):
        name = f"p{index}"
        binds[name] = param
        parts.append(f":{name}{piece}")
    return "".join(parts), binds


class SqlAlchemyRunner:
    """Runs report SQL on a SQLAlchemy engine and returns rows as dicts."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def run(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        statement, binds = to_named_binds(sql, params)
        with self._engine.connect() as conn:
            result = conn.execute(text(statement), binds)
            return [dict(row._mapping) for row in result]
