"""
Query compiler for list endpoints.

A list request carries a flat mapping of query parameters.  Four keys
are reserved:

* ``select`` – comma-separated fields to return (identity is always
  included);
* ``sort`` – comma-separated fields, ``-field`` for descending.  The
  default is newest first (``-created_at``);
* ``page`` – 1-based page number (default 1);
* ``limit`` – page size (default ``settings.default_page_limit``).

Every other key filters on a field, either as ``field=value``
(equality), ``field[op]=value`` or ``field=op:value`` where ``op`` is
one of ``eq``, ``ne``, ``gt``, ``gte``, ``lt``, ``lte`` and ``in``
(comma-separated values).  Filters are AND-ed.  Parsing is lenient:
an unknown operator turns into an equality test against the literal
string and a bad or out-of-range ``page``/``limit`` falls back to the
default.

:func:`parse_query` builds a :class:`QuerySpec` once per request and
:func:`advanced_results` runs it against the store, returning the
``{success, count, pagination, data}`` envelope.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.config import settings
from ..core.filters import Collection, Condition, Include, Operator, SortKey
from ..core.store import MAX_SQL_INTEGER, Store


logger = logging.getLogger(__name__)

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})

_BRACKET_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")

ParamValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class QuerySpec:
    """Parsed form of a list request."""

    conditions: Tuple[Condition, ...] = ()
    projection: Optional[Tuple[str, ...]] = None
    sort: Tuple[SortKey, ...] = ()
    page: int = 1
    limit: int = 25

    @property
    def skip(self) -> int:
        return min((self.page - 1) * self.limit, MAX_SQL_INTEGER)


@dataclass
class ResultPage:
    """A page of records plus the pagination links around it."""

    records: List[Dict[str, Any]]
    total: int
    page: int
    limit: int
    pagination: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "success": True,
            "count": len(self.records),
            "pagination": self.pagination,
            "data": self.records,
        }


def flatten_query_params(items: Sequence[Tuple[str, str]]) -> Dict[str, ParamValue]:
    """Collapse ``(key, value)`` pairs; repeated keys become lists."""
    params: Dict[str, ParamValue] = {}
    for key, value in items:
        if key in params:
            existing = params[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                params[key] = [existing, value]
        else:
            params[key] = value
    return params


def _as_list(value: ParamValue) -> List[str]:
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def _last(value: ParamValue) -> str:
    values = _as_list(value)
    return values[-1] if values else ""


def _positive_int(value: Optional[ParamValue], default: int) -> int:
    if value is None:
        return default
    try:
        number = int(_last(value).strip())
    except ValueError:
        return default
    return number if 0 < number <= MAX_SQL_INTEGER else default


def _split_csv(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _coerce(collection: Collection, field_name: str, op: Operator, raw: str) -> Any:
    if op is Operator.IN:
        return tuple(collection.coerce(field_name, item) for item in _split_csv(raw))
    return collection.coerce(field_name, raw)


def parse_filter(collection: Collection, key: str, value: ParamValue) -> List[Condition]:
    """Translate one non-reserved parameter into conditions."""
    match = _BRACKET_KEY.match(key)
    if match:
        field_name = match.group("field")
        op = Operator.parse(match.group("op"))
        conditions = []
        for raw in _as_list(value):
            if op is None:
                conditions.append(Condition(field_name, Operator.EQ, raw))
            else:
                conditions.append(Condition(field_name, op, _coerce(collection, field_name, op, raw)))
        return conditions

    conditions: List[Condition] = []
    literals: List[Any] = []
    for raw in _as_list(value):
        prefix, sep, rest = raw.partition(":")
        op = Operator.parse(prefix) if sep else None
        if op is None:
            literals.append(collection.coerce(key, raw))
        else:
            conditions.append(Condition(key, op, _coerce(collection, key, op, rest)))
    if len(literals) == 1:
        conditions.insert(0, Condition(key, Operator.EQ, literals[0]))
    elif literals:
        conditions.insert(0, Condition(key, Operator.IN, tuple(literals)))
    return conditions


def parse_query(
    collection: Collection,
    params: Mapping[str, ParamValue],
    default_limit: Optional[int] = None,
) -> QuerySpec:
    """Build a :class:`QuerySpec` from raw request parameters."""
    conditions: List[Condition] = []
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        conditions.extend(parse_filter(collection, key, value))

    projection = None
    if "select" in params:
        selected = [f for f in _split_csv(_last(params["select"])) if collection.has_field(f)]
        projection = tuple(f for f in selected if f not in collection.hidden)

    sort: Tuple[SortKey, ...] = ()
    if "sort" in params:
        sort = tuple(
            key for key in (SortKey.parse(t) for t in _split_csv(_last(params["sort"])))
            if collection.has_field(key.field)
        )
    if not sort:
        sort = collection.default_sort

    return QuerySpec(
        conditions=tuple(conditions),
        projection=projection,
        sort=sort,
        page=_positive_int(params.get("page"), 1),
        limit=_positive_int(params.get("limit"), default_limit or settings.default_page_limit),
    )


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Dict[str, int]]:
    """``next`` iff more records follow this page, ``prev`` iff page > 1."""
    pagination: Dict[str, Dict[str, int]] = {}
    if page * limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return pagination


def run_query(
    collection: Collection,
    spec: QuerySpec,
    include: Optional[Include] = None,
    store: Optional[Store] = None,
) -> ResultPage:
    """Execute a parsed query.  Store failures propagate to the caller."""
    store = store or Store()
    projection = spec.projection
    drop_local = False
    if include is not None and projection is not None and include.local_field not in projection:
        projection = projection + (include.local_field,)
        drop_local = include.local_field != "id"

    total = store.count(collection, spec.conditions)
    records = store.find(
        collection,
        spec.conditions,
        projection=projection,
        sort=spec.sort,
        skip=spec.skip,
        limit=spec.limit,
    )
    if include is not None:
        records = store.populate(records, include)
        if drop_local:
            for record in records:
                record.pop(include.local_field, None)

    return ResultPage(
        records=records,
        total=total,
        page=spec.page,
        limit=spec.limit,
        pagination=build_pagination(spec.page, spec.limit, total),
    )


async def advanced_results(
    collection: Collection,
    params: Mapping[str, ParamValue],
    include: Optional[Include] = None,
    store: Optional[Store] = None,
) -> Dict[str, Any]:
    """Parse ``params``, run the query and return the list envelope."""
    spec = parse_query(collection, params)
    logger.debug("List %s: %s", collection.name, spec)
    return run_query(collection, spec, include=include, store=store).to_envelope()
