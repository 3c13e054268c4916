"""
Filter operators compiled to SQLAlchemy boolean expressions.

``SQLA_OPERATORS`` maps every :class:`FilterOperator` to a function of
``(column, value)``.  ``SQLAlchemyOperatorRegistry`` wraps a copy of it
so an adapter can swap individual operators (e.g. a dialect-specific
``lk``) without touching the defaults.
"""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any

from ..operators import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from sqlalchemy import ColumnElement

    SQLAlchemyOperatorFn = Callable[[Any, Any], ColumnElement[bool]]


def _contains(column: Any, value: Any) -> Any:
    # "%" and "_" in the value match literally.
    return column.icontains(value, autoescape=True)


def _in(column: Any, value: Any) -> Any:
    return column.in_(list(value))


SQLA_OPERATORS: Mapping[FilterOperator, SQLAlchemyOperatorFn] = {
    FilterOperator.EQ: operator.eq,
    FilterOperator.NE: operator.ne,
    FilterOperator.GT: operator.gt,
    FilterOperator.GTE: operator.ge,
    FilterOperator.LT: operator.lt,
    FilterOperator.LTE: operator.le,
    FilterOperator.LK: _contains,
    FilterOperator.IN: _in,
}


class SQLAlchemyOperatorRegistry:
    """Per-adapter operator table, seeded from :data:`SQLA_OPERATORS`."""

    def __init__(
        self, overrides: Mapping[FilterOperator, SQLAlchemyOperatorFn] | None = None
    ) -> None:
        self._operators = dict(SQLA_OPERATORS)
        if overrides:
            self._operators.update(overrides)

    def has(self, name: FilterOperator) -> bool:
        return name in self._operators

    def apply(self, name: FilterOperator, column: Any, value: Any) -> Any:
        """
        Compile ``column <name> value``.

        Raises:
            ValueError: If no function is registered for *name*.
        """
        fn = self._operators.get(name)
        if fn is None:
            raise ValueError(f"Unsupported operator for SQLAlchemy: {name}")
        return fn(column, value)


DEFAULT_SQLA_REGISTRY = SQLAlchemyOperatorRegistry()
