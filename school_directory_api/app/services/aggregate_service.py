"""
Maintenance of the derived averages stored on schools.

``average_cost`` (mean course tuition, rounded up to the next multiple
of ten) and ``average_rating`` (mean review rating, unrounded) are
cached on the school row.  The course and review services call
:meth:`AggregateService.recompute_cost` / ``recompute_rating`` right
after every successful create, update or delete of a dependent.

A recompute always reads the whole current group, so it is idempotent
and running it again repairs any earlier drift.  It is also
best-effort: errors are logged and swallowed, the triggering write has
already been committed and is never affected.  When a school has no
dependents left, nothing is written and the field keeps its last value.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..core.filters import Collection, Condition, Operator
from ..core.store import COURSES, REVIEWS, SCHOOLS, Store


logger = logging.getLogger(__name__)


def ceil_to_ten(value: float) -> int:
    """Round up to the nearest multiple of 10."""
    return int(math.ceil(value / 10) * 10)


def mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return math.fsum(values) / len(values)


@dataclass(frozen=True)
class AggregateRule:
    dependents: Collection
    value_field: str
    target_field: str
    finish: Callable[[float], float]


COST_RULE = AggregateRule(COURSES, "tuition", "average_cost", ceil_to_ten)
RATING_RULE = AggregateRule(REVIEWS, "rating", "average_rating", float)


class AggregateService:
    """Recomputes a school's derived fields from its dependents."""

    @classmethod
    def compute(cls, rule: AggregateRule, school_id: int, store: Store) -> Optional[float]:
        """Return the value ``rule`` yields for ``school_id`` or ``None`` if no dependents."""
        rows = store.find(
            rule.dependents,
            [Condition("school_id", Operator.EQ, school_id)],
            projection=(rule.value_field,),
        )
        average = mean([row[rule.value_field] for row in rows if row[rule.value_field] is not None])
        if average is None:
            return None
        return rule.finish(average)

    @classmethod
    async def recompute(cls, rule: AggregateRule, school_id: int, store: Optional[Store] = None) -> None:
        store = store or Store()
        try:
            value = cls.compute(rule, school_id, store)
            if value is None:
                logger.debug(
                    "School %s has no %s; %s left unchanged",
                    school_id,
                    rule.dependents.name,
                    rule.target_field,
                )
                return
            updated = store.update(SCHOOLS, school_id, {rule.target_field: value})
            if updated is None:
                logger.warning(
                    "Cannot store %s=%s: school %s not found", rule.target_field, value, school_id
                )
                return
            logger.info("School %s %s set to %s", school_id, rule.target_field, value)
        except Exception:
            logger.exception("Failed to recompute %s for school %s", rule.target_field, school_id)

    @classmethod
    async def recompute_cost(cls, school_id: int, store: Optional[Store] = None) -> None:
        await cls.recompute(COST_RULE, school_id, store)

    @classmethod
    async def recompute_rating(cls, school_id: int, store: Optional[Store] = None) -> None:
        await cls.recompute(RATING_RULE, school_id, store)
