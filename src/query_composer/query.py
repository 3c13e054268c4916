"""
QueryRepresentation — immutable, unexecuted query value.

The parser and composer decide *what* to filter, sort and include;
``QueryRepresentation`` records it against path-keyed bindings so an
execution adapter can turn it into a runnable query later.  Every
``with_*`` method returns a new value and leaves the receiver intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .exceptions import BindingConflictError, BindingNotFoundError
from .operators import FilterOperator, SortDirection
from .paths import BindingPath

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class Binding:
    """A relation joined into the query under ``alias``."""

    path: BindingPath
    alias: str
    target_entity: Any = None
    join: Any = None


@dataclass(frozen=True)
class Predicate:
    """An alias-free ``field operator value`` condition."""

    field: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class BoundPredicate:
    alias: str
    predicate: Predicate


@dataclass(frozen=True)
class Ordering:
    alias: str
    field: str
    direction: SortDirection = SortDirection.ASC


def _empty_bindings() -> Mapping[BindingPath, Binding]:
    return MappingProxyType({})


@dataclass(frozen=True)
class QueryRepresentation:
    """
    Immutable container for an unexecuted query.

    Attributes:
        root_entity: The entity queried (a name, a mapped class, ...).
        root_alias: Alias of the root entity; root-level predicates use it.
        bindings: Read-only ``{path: Binding}`` in join order; parents
            always precede their children.
        predicates: Conjoined conditions, each scoped to an alias.
        orderings: Sort keys, primary first.
        includes: Paths marked for eager materialization.
    """

    root_entity: Any
    root_alias: str
    bindings: Mapping[BindingPath, Binding] = field(default_factory=_empty_bindings)
    predicates: tuple[BoundPredicate, ...] = ()
    orderings: tuple[Ordering, ...] = ()
    includes: tuple[BindingPath, ...] = ()

    @classmethod
    def for_entity(cls, entity: Any, alias: str | None = None) -> QueryRepresentation:
        """Return an empty query over *entity*."""
        if alias is None:
            alias = getattr(entity, "__tablename__", None) or (
                entity.lower() if isinstance(entity, str) else entity.__name__.lower()
            )
        return cls(root_entity=entity, root_alias=alias)

    def __hash__(self) -> int:
        # Mapping equality ignores insertion order.
        return hash(
            (
                self.root_entity,
                self.root_alias,
                frozenset(self.bindings.items()),
                self.predicates,
                self.orderings,
                self.includes,
            )
        )

    # -- inspection -----------------------------------------------------------

    def has_binding(self, path: BindingPath) -> bool:
        return path.is_root or path in self.bindings

    def current_bindings(self) -> frozenset[BindingPath]:
        return frozenset(self.bindings)

    def binding(self, path: BindingPath) -> Binding:
        try:
            return self.bindings[path]
        except KeyError:
            raise BindingNotFoundError(path) from None

    def alias_for(self, path: BindingPath) -> str:
        if path.is_root:
            return self.root_alias
        return self.binding(path).alias

    def has_alias(self, alias: str) -> bool:
        return alias == self.root_alias or any(
            b.alias == alias for b in self.bindings.values()
        )

    def path_for_alias(self, alias: str) -> BindingPath:
        if alias == self.root_alias:
            return BindingPath.ROOT
        for binding in self.bindings.values():
            if binding.alias == alias:
                return binding.path
        raise BindingNotFoundError(alias)

    def entity_for(self, path: BindingPath) -> Any:
        """Target entity recorded for *path* (root entity for ROOT)."""
        if path.is_root:
            return self.root_entity
        return self.binding(path).target_entity

    # -- pure mutators --------------------------------------------------------

    def with_binding(
        self,
        path: BindingPath,
        alias: str,
        join: Any = None,
        target_entity: Any = None,
    ) -> QueryRepresentation:
        """Return a copy with *path* joined under *alias*."""
        if path.is_root:
            raise BindingConflictError("The root entity is always bound")
        if path in self.bindings:
            raise BindingConflictError(f"Path {str(path)!r} is already bound")
        if self.has_alias(alias):
            raise BindingConflictError(f"Alias {alias!r} is already in use")
        if not self.has_binding(path.parent):
            raise BindingNotFoundError(path.parent)
        bindings = dict(self.bindings)
        bindings[path] = Binding(
            path=path, alias=alias, target_entity=target_entity, join=join
        )
        return replace(self, bindings=MappingProxyType(bindings))

    def with_predicate(self, alias: str, predicate: Predicate) -> QueryRepresentation:
        """Return a copy with *predicate* AND-ed onto the existing ones."""
        self._require_alias(alias)
        return replace(
            self, predicates=(*self.predicates, BoundPredicate(alias, predicate))
        )

    def with_ordering(
        self,
        alias: str,
        field: str,
        direction: SortDirection = SortDirection.ASC,
    ) -> QueryRepresentation:
        """Return a copy with one more (lowest priority) sort key."""
        self._require_alias(alias)
        return replace(
            self, orderings=(*self.orderings, Ordering(alias, field, direction))
        )

    def with_include(self, path: BindingPath) -> QueryRepresentation:
        """Return a copy marking *path* for eager materialization."""
        if path.is_root or path not in self.bindings:
            raise BindingNotFoundError(path)
        if path in self.includes:
            return self
        return replace(self, includes=(*self.includes, path))

    def _require_alias(self, alias: str) -> None:
        if not self.has_alias(alias):
            raise BindingNotFoundError(alias)

    # -- hand-off -------------------------------------------------------------

    def to_executable(self, adapter: IQueryAdapter) -> Any:
        """Hand the query to an execution adapter (e.g. SQLAlchemy ``Select``)."""
        return adapter.to_backend_query(self)


@runtime_checkable
class IQueryAdapter(Protocol):
    """Translate a ``QueryRepresentation`` into a backend-native query."""

    def to_backend_query(self, query: QueryRepresentation) -> Any:
        """Return backend-native query structure."""
        ...
