"""
Table-generic storage API used by the repositories.

Tables are resolved by name from SQLModel.metadata, so a module's models must
be imported before its tables are queried (each repository imports its own).

Filters: {column: value}; None -> IS NULL, list/tuple/set -> IN.
Order: ["col", "-col"] ("-" = descending).
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel

from ssc_api.core.errors import ConstraintError

Row = Dict[str, Any]


def _table(name: str) -> Table:
    try:
        return SQLModel.metadata.tables[name]
    except KeyError:
        raise ValueError(f"unknown table: {name!r}")


def _where(table: Table, filters: Optional[Dict[str, Any]]):
    clauses = []
    for col_name, value in (filters or {}).items():
        col = table.c[col_name]
        if value is None:
            clauses.append(col.is_(None))
        elif isinstance(value, (list, tuple, set, frozenset)):
            clauses.append(col.in_(list(value)))
        else:
            clauses.append(col == value)
    return and_(*clauses) if clauses else None


class Store:
    def __init__(self, engine: Engine, conn: Optional[Connection] = None) -> None:
        self.engine = engine
        self._conn = conn

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Yield a Store bound to one connection; commits on clean exit.

        Nested calls reuse the outer transaction.
        """
        if self._conn is not None:
            yield self
            return
        with self.engine.begin() as conn:
            yield Store(self.engine, conn)

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        if self._conn is not None:
            yield self._conn
            return
        with self.engine.begin() as conn:
            yield conn

    def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        t = _table(table)
        stmt = select(t)
        where = _where(t, filters)
        if where is not None:
            stmt = stmt.where(where)
        for key in order or ():
            if key.startswith("-"):
                stmt = stmt.order_by(t.c[key[1:]].desc())
            else:
                stmt = stmt.order_by(t.c[key].asc())
        with self._connection() as conn:
            return [dict(r) for r in conn.execute(stmt).mappings().all()]

    def insert(self, table: str, rows: Iterable[Row]) -> List[Row]:
        t = _table(table)
        data = [dict(r) for r in rows]
        if not data:
            return []
        with self._connection() as conn:
            try:
                conn.execute(insert(t), data)
            except IntegrityError as e:
                raise ConstraintError(
                    f"{table}: constraint violated ({e.orig})",
                    table=table,
                ) from e
        return data

    def update(self, table: str, filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        t = _table(table)
        where = _where(t, filters)
        if where is None:
            raise ValueError(f"refusing unfiltered update on {table!r}")
        if not patch:
            return 0
        with self._connection() as conn:
            try:
                res = conn.execute(update(t).where(where).values(**patch))
            except IntegrityError as e:
                raise ConstraintError(
                    f"{table}: constraint violated ({e.orig})",
                    table=table,
                ) from e
            return int(res.rowcount or 0)

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        t = _table(table)
        where = _where(t, filters)
        if where is None:
            raise ValueError(f"refusing unfiltered delete on {table!r}")
        with self._connection() as conn:
            try:
                res = conn.execute(delete(t).where(where))
            except IntegrityError as e:
                raise ConstraintError(
                    f"{table}: constraint violated ({e.orig})",
                    table=table,
                ) from e
            return int(res.rowcount or 0)
