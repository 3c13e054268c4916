"""ScopeConstraintInjector — pre-scope a base query (tenant, owner, ...)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import ScopeConstraintError
from .operators import FilterOperator
from .paths import BindingPath
from .planner import JoinPlanner
from .predicates import build_predicate

if TYPE_CHECKING:
    from collections.abc import Callable

    from .query import QueryRepresentation
    from .relations import RelationRegistry

logger = logging.getLogger(__name__)


class ScopeConstraintInjector:
    """
    Adds a mandatory equality constraint, joining through *path* if needed.

    The resulting query is meant to be passed as the base query of
    :meth:`QueryComposer.build`; request-driven filters on the same path
    reuse the scope's binding instead of joining again.
    """

    def __init__(
        self,
        registry: RelationRegistry,
        *,
        get_scope_value: Callable[[], Any],
        field: str = "tenant_id",
        path: str = "",
        required: bool = True,
    ) -> None:
        """
        Initialize ScopeConstraintInjector.

        Args:
            registry: Relation registry used to bind *path*.
            get_scope_value: Callable that returns the current scope value.
            field: Field compared against the scope value.
            path: Dotted relation path holding *field*; empty for the root.
            required: Raise if the scope value is ``None``.
        """
        self._planner = JoinPlanner(registry)
        self._get_scope_value = get_scope_value
        self._field = field
        self._path = BindingPath.from_dotted(path)
        self._required = required

    def inject(self, query: QueryRepresentation) -> QueryRepresentation:
        """Return *query* AND ``path.field == scope value``."""
        value = self._get_scope_value()
        if value is None:
            if self._required:
                raise ScopeConstraintError(
                    f"Scope value for '{self._field}' is required"
                )
            return query
        query = self._planner.resolve(query, [self._path])
        alias = query.alias_for(self._path)
        logger.debug("Scoping %r on %s.%s", query.root_alias, alias, self._field)
        return query.with_predicate(
            alias, build_predicate(FilterOperator.EQ, self._field, value)
        )
