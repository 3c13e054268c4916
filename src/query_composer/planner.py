"""
Binding resolution / join planning.

Computes the bindings a set of paths needs that the query does not
already have (including bindings a caller added up front, e.g. for an
authorization scope) and asks the registry to materialize each one,
parents before children.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import JoinResolutionError
from .query import QueryRepresentation
from .relations import JoinRequest

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .paths import BindingPath
    from .relations import RelationRegistry
    from .specs import FilterSpec, IncludeSpec, SortSpec

logger = logging.getLogger(__name__)


def collect_paths(
    filters: Iterable[FilterSpec] = (),
    sorts: Iterable[SortSpec] = (),
    includes: Iterable[IncludeSpec] = (),
) -> list[BindingPath]:
    """Deduplicated non-root paths in first-seen order across all specs."""
    seen: dict[BindingPath, None] = {}
    for specs in (filters, sorts, includes):
        for spec in specs:
            if not spec.binding_path.is_root:
                seen.setdefault(spec.binding_path, None)
    return list(seen)


class JoinPlanner:
    """Binds missing paths through the registry's join materializers."""

    def __init__(self, registry: RelationRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> RelationRegistry:
        return self._registry

    def plan(
        self, query: QueryRepresentation, paths: Iterable[BindingPath]
    ) -> list[BindingPath]:
        """Return the unbound prefixes of *paths*, parents first."""
        missing: list[BindingPath] = []
        seen: set[BindingPath] = set()
        for path in paths:
            for prefix in path.prefixes():
                if prefix in seen or query.has_binding(prefix):
                    continue
                seen.add(prefix)
                missing.append(prefix)
        return missing

    def resolve(
        self, query: QueryRepresentation, paths: Iterable[BindingPath]
    ) -> QueryRepresentation:
        """
        Return a query with every path in *paths* bound.

        Raises:
            JoinResolutionError: If a relation is unknown or its
                materializer fails.  *query* itself is never modified.
        """
        missing = self.plan(query, paths)
        if not missing:
            return query
        logger.debug(
            "Planning %d join(s) on %r: %s",
            len(missing),
            query.root_alias,
            ", ".join(str(p) for p in missing),
        )
        current = query
        for path in missing:
            current = self._materialize(current, path)
        return current

    def _materialize(
        self, query: QueryRepresentation, path: BindingPath
    ) -> QueryRepresentation:
        parent = path.parent
        descriptor = self._registry.relation(
            self._parent_entity(query, parent), path.relation, path=path
        )
        request = JoinRequest(
            path=path,
            parent_alias=query.alias_for(parent),
            relation_name=path.relation,
            alias=path.alias,
            descriptor=descriptor,
        )
        try:
            result = descriptor.materialize(query, request)
        except JoinResolutionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise JoinResolutionError(
                f"Join materializer failed for {str(path)!r}: {exc}", path=path
            ) from exc
        self._verify(query, result, path)
        logger.debug("Bound %s as %r", path, result.alias_for(path))
        return result

    def _parent_entity(self, query: QueryRepresentation, parent: BindingPath) -> Any:
        entity = query.entity_for(parent)
        if entity is None:
            # Caller-supplied binding without a recorded target.
            entity = self._registry.target_of(query.root_entity, parent)
        return entity

    @staticmethod
    def _verify(
        before: QueryRepresentation, after: Any, path: BindingPath
    ) -> None:
        if not isinstance(after, QueryRepresentation):
            raise JoinResolutionError(
                f"Join materializer for {str(path)!r} returned "
                f"{type(after).__name__}, not a query",
                path=path,
            )
        if not after.has_binding(path):
            raise JoinResolutionError(
                f"Join materializer did not bind {str(path)!r}", path=path
            )
        if not before.current_bindings() <= after.current_bindings():
            raise JoinResolutionError(
                f"Join materializer for {str(path)!r} dropped existing bindings",
                path=path,
            )


def resolve_paths(
    query: QueryRepresentation,
    paths: Iterable[BindingPath],
    registry: RelationRegistry,
) -> QueryRepresentation:
    """Functional shortcut for ``JoinPlanner(registry).resolve(query, paths)``."""
    return JoinPlanner(registry).resolve(query, paths)
