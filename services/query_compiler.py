"""
Filter compilation for expense listings.

An ``ExpenseFilter`` is a plain value object built from request parameters.
``compile_filter`` turns it into a backend-agnostic ``CompiledQuery`` (a
tuple of conditions plus an ordering) and ``to_sqlalchemy`` renders that for
the ORM. The owner condition is always added by the compiler itself, so no
combination of filter values can reach another user's records.

There is no pagination: the whole matching set is returned.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Tuple

from sqlalchemy import asc, desc

from core.exceptions import ValidationError
from schemas.expenses import SortOrder

EQ = "eq"
ICONTAINS = "icontains"
GTE = "gte"
LTE = "lte"

@dataclass(frozen=True)
class ExpenseFilter:
    category: Optional[str] = None
    search: Optional[str] = None
    sort: SortOrder = SortOrder.DATE_DESC
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def build(
        cls,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[SortOrder] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> "ExpenseFilter":
        """Normalize raw request values; blank strings mean "no filter"."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError.single("startDate", "Start date must not be after end date")
        return cls(
            category=(category or "").strip() or None,
            search=(search or "").strip() or None,
            sort=SortOrder(sort) if sort else SortOrder.DATE_DESC,
            start_date=start_date,
            end_date=end_date,
        )

@dataclass(frozen=True)
class Condition:
    field: str
    op: str
    value: Any

@dataclass(frozen=True)
class CompiledQuery:
    conditions: Tuple[Condition, ...]
    order_by: str
    descending: bool

def compile_filter(owner_id: str, flt: ExpenseFilter) -> CompiledQuery:
    conditions: List[Condition] = [Condition("owner_id", EQ, owner_id)]

    if flt.category:
        conditions.append(Condition("category", EQ, flt.category))
    if flt.search:
        conditions.append(Condition("description", ICONTAINS, flt.search))
    if flt.start_date:
        conditions.append(Condition("date", GTE, flt.start_date))
    if flt.end_date:
        # date is a calendar-date column, so the whole end day is included
        conditions.append(Condition("date", LTE, flt.end_date))

    return CompiledQuery(
        conditions=tuple(conditions),
        order_by="date",
        descending=flt.sort == SortOrder.DATE_DESC,
    )

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def to_sqlalchemy(compiled: CompiledQuery, model) -> Tuple[list, list]:
    """Render a compiled query as (criteria, order_by clauses) for ``model``."""
    criteria = []
    for condition in compiled.conditions:
        column = getattr(model, condition.field)
        if condition.op == EQ:
            criteria.append(column == condition.value)
        elif condition.op == ICONTAINS:
            criteria.append(column.ilike(f"%{_escape_like(condition.value)}%", escape="\\"))
        elif condition.op == GTE:
            criteria.append(column >= condition.value)
        elif condition.op == LTE:
            criteria.append(column <= condition.value)
        else:
            raise ValueError(f"Unsupported operator: {condition.op}")

    direction = desc if compiled.descending else asc
    # created_at and id break ties so the same data always comes back in the same order
    ordering = [
        direction(getattr(model, compiled.order_by)),
        direction(model.created_at),
        direction(model.id),
    ]
    return criteria, ordering
