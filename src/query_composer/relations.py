"""
Relation descriptors and the caller-owned relation registry.

The composer never discovers foreign keys itself.  Callers describe,
per entity, which relation names are navigable and how a join is
materialized for each of them.  A materializer receives the current
query and a :class:`JoinRequest` and must return a new query with the
requested path bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from .exceptions import UnknownRelationError

if TYPE_CHECKING:
    from .paths import BindingPath
    from .query import QueryRepresentation


@dataclass(frozen=True)
class JoinRequest:
    """
    A single "bind this path" request emitted by the planner.

    Attributes:
        path: Full binding path to bind.
        parent_alias: Alias of the already-bound parent (root alias for
            top-level relations).
        relation_name: Relation to traverse from the parent.
        alias: Alias the planner suggests (derived from ``path``).
        descriptor: Registry entry for the relation.
    """

    path: BindingPath
    parent_alias: str
    relation_name: str
    alias: str
    descriptor: RelationDescriptor


class JoinMaterializer(Protocol):
    """Add the join described by *request* to *query*."""

    def __call__(
        self, query: QueryRepresentation, request: JoinRequest
    ) -> QueryRepresentation:
        ...


def bind_relation(
    query: QueryRepresentation, request: JoinRequest
) -> QueryRepresentation:
    """Default materializer: bind the path, using the descriptor as join payload."""
    return query.with_binding(
        request.path,
        request.alias,
        join=request.descriptor,
        target_entity=request.descriptor.target_entity,
    )


@dataclass(frozen=True)
class RelationDescriptor:
    name: str
    target_entity: Any
    join_materializer: JoinMaterializer | None = None

    def materialize(
        self, query: QueryRepresentation, request: JoinRequest
    ) -> QueryRepresentation:
        materializer = self.join_materializer or bind_relation
        return materializer(query, request)


def entity_name(entity: Any) -> str:
    if isinstance(entity, str):
        return entity
    return getattr(entity, "__name__", repr(entity))


class RelationRegistry:
    """
    Registry of :class:`RelationDescriptor` instances keyed by entity.

    Usage::

        registry = RelationRegistry()
        registry.register(
            "Rocket", RelationDescriptor("space_center", "SpaceCenter")
        )
        registry.register(
            "SpaceCenter", RelationDescriptor("country", "Country")
        )
    """

    def __init__(self) -> None:
        self._relations: dict[Any, dict[str, RelationDescriptor]] = {}

    # -- registration --------------------------------------------------------

    def register(self, entity: Any, *descriptors: RelationDescriptor) -> None:
        relations = self._relations.setdefault(entity, {})
        for descriptor in descriptors:
            relations[descriptor.name] = descriptor

    def unregister(self, entity: Any, name: str) -> None:
        self._relations.get(entity, {}).pop(name, None)

    # -- look-up -------------------------------------------------------------

    def relations_of(self, entity: Any) -> tuple[str, ...]:
        return tuple(self._relations.get(entity, {}))

    def find(self, entity: Any, name: str) -> RelationDescriptor | None:
        """Return the registered descriptor or ``None``."""
        return self._relations.get(entity, {}).get(name)

    def relation(
        self, entity: Any, name: str, path: BindingPath | None = None
    ) -> RelationDescriptor:
        """
        Look up a relation.

        Raises:
            UnknownRelationError: If *entity* has no relation *name*.
        """
        descriptor = self.find(entity, name)
        if descriptor is None:
            raise UnknownRelationError(
                name, entity_name(entity), list(self.relations_of(entity)), path=path
            )
        return descriptor

    def target_of(self, root: Any, path: BindingPath) -> Any:
        """Walk *path* from *root* and return the entity it lands on."""
        entity = root
        for prefix in path.prefixes():
            entity = self.relation(entity, prefix.relation, path=prefix).target_entity
        return entity
