"""
Typed filter, sort and inclusion structures shared by the query
compiler and the store.

A list request is parsed once into these values; the store compiles
them into SQL.  Nothing here knows about HTTP or query strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


class Operator(str, enum.Enum):
    """Comparison operators accepted in filter parameters."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"

    @classmethod
    def parse(cls, token: str) -> Optional["Operator"]:
        """Return the operator named by ``token`` or ``None`` if unknown."""
        try:
            return cls(token.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class Condition:
    """A single ``field <op> value`` predicate.

    For ``Operator.IN`` the value is a tuple of candidates.  Conditions
    in a list are combined with logical AND.
    """

    field: str
    op: Operator
    value: Any


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False

    @classmethod
    def parse(cls, token: str) -> "SortKey":
        token = token.strip()
        if token.startswith("-"):
            return cls(token[1:], True)
        return cls(token.lstrip("+"), False)


@dataclass(frozen=True)
class Collection:
    """A named table and the types of the fields clients may touch.

    ``fields`` maps field name to one of ``int``, ``float``, ``bool`` or
    ``str`` and drives both value coercion and row decoding.  Fields
    listed in ``hidden`` are stored but never returned.
    """

    name: str
    fields: Dict[str, type]
    hidden: Tuple[str, ...] = ()
    default_sort: Tuple[SortKey, ...] = (SortKey("created_at", True),)

    def has_field(self, field: str) -> bool:
        return field in self.fields

    @property
    def visible_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in self.fields if f not in self.hidden)

    def coerce(self, field: str, raw: Any) -> Any:
        """Convert a raw query-string value to the field's type.

        Values that do not parse are returned unchanged so they are
        compared as literal strings.
        """
        kind = self.fields.get(field)
        if not isinstance(raw, str) or kind is None or kind is str:
            return raw
        text = raw.strip()
        if kind is bool:
            lowered = text.lower()
            if lowered in {"true", "1", "yes"}:
                return True
            if lowered in {"false", "0", "no"}:
                return False
            return raw
        try:
            return kind(text)
        except ValueError:
            if kind is int:
                try:
                    return float(text)
                except ValueError:
                    return raw
            return raw


@dataclass(frozen=True)
class Include:
    """One level of related-entity inclusion.

    ``many=False`` resolves ``record[local_field]`` to a single related
    record (e.g. a course's school); ``many=True`` attaches the list of
    related records whose ``foreign_field`` equals ``record[local_field]``
    (e.g. a school's courses).  ``fields`` restricts the related
    projection; ``None`` exposes every visible field.
    """

    path: str
    collection: Collection
    local_field: str
    foreign_field: str = "id"
    fields: Optional[Tuple[str, ...]] = None
    many: bool = False
