"""
Closed operator -> predicate-construction table.

Each operator maps to one factory that normalizes the value shape the
operator needs.  The table covers every :class:`FilterOperator`; an
operator without a factory is a programming error.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .operators import FilterOperator
from .query import Predicate

PredicateFactory = Callable[[str, Any], Predicate]


def _comparison(operator: FilterOperator) -> PredicateFactory:
    def build(field: str, value: Any) -> Predicate:
        return Predicate(field, operator, value)

    return build


def _contains(field: str, value: Any) -> Predicate:
    text = value if isinstance(value, str) else str(value)
    return Predicate(field, FilterOperator.LK, text)


def _membership(field: str, value: Any) -> Predicate:
    if isinstance(value, str) or not hasattr(value, "__iter__"):
        values: tuple[Any, ...] = (value,)
    else:
        values = tuple(value)
    return Predicate(field, FilterOperator.IN, values)


PREDICATE_FACTORIES: dict[FilterOperator, PredicateFactory] = {
    FilterOperator.EQ: _comparison(FilterOperator.EQ),
    FilterOperator.NE: _comparison(FilterOperator.NE),
    FilterOperator.GT: _comparison(FilterOperator.GT),
    FilterOperator.GTE: _comparison(FilterOperator.GTE),
    FilterOperator.LT: _comparison(FilterOperator.LT),
    FilterOperator.LTE: _comparison(FilterOperator.LTE),
    FilterOperator.LK: _contains,
    FilterOperator.IN: _membership,
}


def build_predicate(operator: FilterOperator, field: str, value: Any) -> Predicate:
    return PREDICATE_FACTORIES[operator](field, value)
