"""
Record store backed by SQLite.

``Store`` is the single persistence collaborator used by the services,
the query compiler and the aggregate maintainer.  It speaks in plain
dicts and the typed structures from ``filters``; SQL is generated here
and nowhere else.  Only field names declared on a ``Collection`` ever
reach the generated SQL, all values travel as bound parameters.

Every call opens its own connection and closes it before returning, so
there is no client-side caching: reads see whatever the database holds
at that moment.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .db import get_connection
from .filters import Collection, Condition, Include, Operator, SortKey


logger = logging.getLogger(__name__)

# Largest value SQLite accepts for an INTEGER parameter.
MAX_SQL_INTEGER = 2 ** 63 - 1

# Related keys bound per lookup; stays under SQLite's host-parameter limit.
POPULATE_BATCH_SIZE = 500


USERS = Collection(
    name="users",
    fields={
        "id": int,
        "name": str,
        "email": str,
        "role": str,
        "password": str,
        "created_at": str,
    },
    hidden=("password",),
)

SCHOOLS = Collection(
    name="schools",
    fields={
        "id": int,
        "name": str,
        "description": str,
        "website": str,
        "phone": str,
        "email": str,
        "address": str,
        "latitude": float,
        "longitude": float,
        "formatted_address": str,
        "street": str,
        "city": str,
        "state": str,
        "zipcode": str,
        "country": str,
        "average_rating": float,
        "average_cost": int,
        "photo": str,
        "user_id": int,
        "created_at": str,
    },
)

COURSES = Collection(
    name="courses",
    fields={
        "id": int,
        "title": str,
        "description": str,
        "weeks": str,
        "tuition": float,
        "scholarship_available": bool,
        "school_id": int,
        "user_id": int,
        "created_at": str,
    },
)

REVIEWS = Collection(
    name="reviews",
    fields={
        "id": int,
        "title": str,
        "text": str,
        "rating": int,
        "school_id": int,
        "user_id": int,
        "created_at": str,
    },
)

# Related-entity inclusions used by list and detail endpoints.
SCHOOL_SUMMARY = Include("school", SCHOOLS, "school_id", fields=("name", "description"))
SCHOOL_COURSES = Include("courses", COURSES, "id", foreign_field="school_id", many=True)


def utc_timestamp() -> str:
    """Creation timestamp with microseconds so default ordering is stable."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _quote(field: str) -> str:
    return f'"{field}"'


def compile_where(collection: Collection, conditions: Iterable[Condition]) -> Tuple[str, List[Any]]:
    """Compile AND-ed conditions into a ``WHERE`` fragment and parameters.

    A condition on a hidden field, or one the collection does not
    declare, compares against ``NULL``: it never matches except for
    ``ne``, the same as a document store matching on an absent
    attribute.
    """
    clauses: List[str] = []
    params: List[Any] = []
    for cond in conditions:
        queryable = collection.has_field(cond.field) and cond.field not in collection.hidden
        column = _quote(cond.field) if queryable else "NULL"
        if cond.op is Operator.IN:
            values = tuple(cond.value)
            if not values:
                clauses.append("0")
                continue
            clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        elif cond.op is Operator.NE:
            clauses.append(f"({column} IS NULL OR {column} != ?)")
            params.append(cond.value)
        else:
            sql_op = {
                Operator.EQ: "=",
                Operator.GT: ">",
                Operator.GTE: ">=",
                Operator.LT: "<",
                Operator.LTE: "<=",
            }[cond.op]
            clauses.append(f"{column} {sql_op} ?")
            params.append(cond.value)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def compile_order(collection: Collection, sort: Sequence[SortKey]) -> str:
    """Compile sort keys into ``ORDER BY``; identity always breaks ties."""
    parts = [
        f"{_quote(key.field)} {'DESC' if key.descending else 'ASC'}"
        for key in sort
        if collection.has_field(key.field)
    ]
    if not any(key.field == "id" for key in sort):
        parts.append('"id" ASC')
    return " ORDER BY " + ", ".join(parts)


class Store:
    """CRUD and query access to the collections.

    ``connection_factory`` defaults to ``db.get_connection`` and is
    only replaced in tests that need to simulate an unreachable
    backend.
    """

    def __init__(self, connection_factory: Optional[Callable[[], sqlite3.Connection]] = None):
        self._connect = connection_factory or get_connection

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    def _columns(
        self,
        collection: Collection,
        projection: Optional[Sequence[str]],
        include_hidden: bool = False,
    ) -> List[str]:
        available = collection.fields if include_hidden else collection.visible_fields
        if projection is None:
            return list(available)
        columns = ["id"]
        for field in projection:
            if field in available and field not in columns:
                columns.append(field)
        return columns

    @staticmethod
    def _decode(collection: Collection, row: sqlite3.Row) -> Dict[str, Any]:
        record = dict(row)
        for field, value in record.items():
            if value is not None and collection.fields.get(field) is bool:
                record[field] = bool(value)
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(
        self,
        collection: Collection,
        conditions: Sequence[Condition] = (),
        projection: Optional[Sequence[str]] = None,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: Optional[int] = None,
        include_hidden: bool = False,
    ) -> List[Dict[str, Any]]:
        """Return matching records, projected, sorted and windowed."""
        columns = self._columns(collection, projection, include_hidden)
        where, params = compile_where(collection, conditions)
        query = (
            f"SELECT {', '.join(_quote(c) for c in columns)} FROM {collection.name}"
            f"{where}{compile_order(collection, sort)}"
        )
        skip = min(skip, MAX_SQL_INTEGER)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([min(limit, MAX_SQL_INTEGER), skip])
        elif skip:
            query += " LIMIT -1 OFFSET ?"
            params.append(skip)
        conn = self._connect()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
            return [self._decode(collection, row) for row in rows]
        finally:
            conn.close()

    def find_one(
        self,
        collection: Collection,
        conditions: Sequence[Condition],
        include_hidden: bool = False,
    ) -> Optional[Dict[str, Any]]:
        records = self.find(collection, conditions, limit=1, include_hidden=include_hidden)
        return records[0] if records else None

    def count(self, collection: Collection, conditions: Sequence[Condition] = ()) -> int:
        where, params = compile_where(collection, conditions)
        conn = self._connect()
        try:
            row = conn.execute(
                f"SELECT COUNT(*) AS count FROM {collection.name}{where}", tuple(params)
            ).fetchone()
            return row["count"]
        finally:
            conn.close()

    def get(
        self,
        collection: Collection,
        record_id: int,
        projection: Optional[Sequence[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        records = self.find(
            collection, [Condition("id", Operator.EQ, record_id)], projection=projection, limit=1
        )
        return records[0] if records else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, collection: Collection, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return it as stored.

        Constraint violations surface as ``sqlite3.IntegrityError``.
        """
        data = {k: v for k, v in values.items() if collection.has_field(k) and k != "id"}
        data.setdefault("created_at", utc_timestamp())
        columns = list(data)
        conn = self._connect()
        try:
            cursor = conn.execute(
                f"INSERT INTO {collection.name} ({', '.join(_quote(c) for c in columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(data[c] for c in columns),
            )
            record_id = cursor.lastrowid
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug("Inserted %s %s", collection.name, record_id)
        return self.get(collection, record_id)

    def update(
        self, collection: Collection, record_id: int, values: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Apply a partial update; return the new record or ``None`` if absent."""
        data = {k: v for k, v in values.items() if collection.has_field(k) and k != "id"}
        if not data:
            return self.get(collection, record_id)
        assignments = ", ".join(f"{_quote(c)} = ?" for c in data)
        conn = self._connect()
        try:
            cursor = conn.execute(
                f"UPDATE {collection.name} SET {assignments} WHERE id = ?",
                tuple(data.values()) + (record_id,),
            )
            conn.commit()
            updated = cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        if not updated:
            return None
        return self.get(collection, record_id)

    def delete(self, collection: Collection, record_id: int) -> bool:
        conn = self._connect()
        try:
            cursor = conn.execute(f"DELETE FROM {collection.name} WHERE id = ?", (record_id,))
            conn.commit()
            return cursor.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Related-entity resolution
    # ------------------------------------------------------------------

    def populate(self, records: List[Dict[str, Any]], include: Include) -> List[Dict[str, Any]]:
        """Attach related records under ``include.path``.

        Related records are fetched with one query per
        ``POPULATE_BATCH_SIZE`` keys.

        Records must carry ``include.local_field``.  A missing related
        record resolves to ``None`` (or ``[]`` for ``many``).
        """
        keys = sorted({r[include.local_field] for r in records if r.get(include.local_field) is not None})
        related: List[Dict[str, Any]] = []
        projection = None
        if include.fields is not None:
            projection = tuple(include.fields) + (include.foreign_field,)
        for start in range(0, len(keys), POPULATE_BATCH_SIZE):
            batch = tuple(keys[start:start + POPULATE_BATCH_SIZE])
            related.extend(
                self.find(
                    include.collection,
                    [Condition(include.foreign_field, Operator.IN, batch)],
                    projection=projection,
                    sort=include.collection.default_sort,
                )
            )
        strip_key = (
            include.fields is not None
            and include.foreign_field != "id"
            and include.foreign_field not in include.fields
        )

        def _public(item: Dict[str, Any]) -> Dict[str, Any]:
            if strip_key:
                return {k: v for k, v in item.items() if k != include.foreign_field}
            return item

        if include.many:
            grouped: Dict[Any, List[Dict[str, Any]]] = {}
            for item in related:
                grouped.setdefault(item[include.foreign_field], []).append(_public(item))
            for record in records:
                record[include.path] = grouped.get(record.get(include.local_field), [])
        else:
            by_key = {item[include.foreign_field]: _public(item) for item in related}
            for record in records:
                record[include.path] = by_key.get(record.get(include.local_field))
        return records
