"""
QueryComposer — fold filter/sort/include specs onto a base query.

``build`` is the top-level entry point: parse, plan every referenced
path once, then attach predicates, orderings and include markers.
Failures come back as a :class:`BuildResult` carrying the untouched
base query and the error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import ComposerError
from .parser import ParameterParser
from .planner import JoinPlanner, collect_paths
from .predicates import build_predicate

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .query import QueryRepresentation
    from .relations import RelationRegistry
    from .specs import FilterSpec, IncludeSpec, ParsedParameters, SortSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of :meth:`QueryComposer.build`.

    On failure ``query`` is the caller's base query, unchanged.
    """

    query: QueryRepresentation
    error: ComposerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> QueryRepresentation:
        """Return the query, raising the carried error if there is one."""
        if self.error is not None:
            raise self.error
        return self.query


class QueryComposer:
    """Apply specs to a query against resolved bindings."""

    def __init__(
        self,
        registry: RelationRegistry,
        *,
        parser: ParameterParser | None = None,
    ) -> None:
        self._planner = JoinPlanner(registry)
        self._parser = parser or ParameterParser()

    @property
    def planner(self) -> JoinPlanner:
        return self._planner

    # -- individual folds -----------------------------------------------------

    def apply_filters(
        self, query: QueryRepresentation, filters: Iterable[FilterSpec]
    ) -> QueryRepresentation:
        """
        AND one predicate per spec onto *query*.

        Raises:
            BindingNotFoundError: If a spec's path was not planned first.
        """
        for spec in filters:
            alias = query.alias_for(spec.binding_path)
            predicate = build_predicate(spec.operator, spec.field, spec.value)
            query = query.with_predicate(alias, predicate)
        return query

    def apply_sorts(
        self, query: QueryRepresentation, sorts: Iterable[SortSpec]
    ) -> QueryRepresentation:
        """Append orderings; the first spec is the primary key."""
        for spec in sorts:
            alias = query.alias_for(spec.binding_path)
            query = query.with_ordering(alias, spec.field, spec.direction)
        return query

    def apply_includes(
        self, query: QueryRepresentation, includes: Iterable[IncludeSpec]
    ) -> QueryRepresentation:
        """Bind (if needed) and mark each include path and its prefixes."""
        for spec in includes:
            path = spec.binding_path
            query = self._planner.resolve(query, [path])
            for prefix in path.prefixes():
                query = query.with_include(prefix)
        return query

    # -- pipeline -------------------------------------------------------------

    def compose(
        self, parsed: ParsedParameters, base_query: QueryRepresentation
    ) -> BuildResult:
        """Plan and apply already-parsed specs to *base_query*."""
        try:
            query = self._planner.resolve(
                base_query,
                collect_paths(parsed.filters, parsed.sorts, parsed.includes),
            )
            query = self.apply_filters(query, parsed.filters)
            query = self.apply_sorts(query, parsed.sorts)
            query = self.apply_includes(query, parsed.includes)
        except ComposerError as exc:
            return self._failure(base_query, exc)
        return BuildResult(query=query)

    def build(
        self, raw_params: Mapping[str, Any], base_query: QueryRepresentation
    ) -> BuildResult:
        """Parse *raw_params* and compose them onto *base_query*."""
        try:
            parsed = self._parser.parse(raw_params)
        except ComposerError as exc:
            return self._failure(base_query, exc)
        return self.compose(parsed, base_query)

    @staticmethod
    def _failure(base_query: QueryRepresentation, exc: ComposerError) -> BuildResult:
        logger.warning(
            "Query build on %r failed: %s: %s",
            base_query.root_alias,
            type(exc).__name__,
            exc,
        )
        return BuildResult(query=base_query, error=exc)
