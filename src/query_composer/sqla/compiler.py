"""
Compile a ``QueryRepresentation`` into a SQLAlchemy ``Select``.

Each binding becomes one aliased JOIN.  The ON clause comes from the
binding's ``join`` payload when a materializer supplied one:

- a SQL expression written against the plain mapped classes, e.g.
  ``Rocket.space_center_id == SpaceCenter.id``; its columns are
  re-pointed at the parent and target aliases;
- a callable ``(parent, target) -> expression`` receiving the aliased
  entities (needed for self-referential joins).

Anything else joins along the mapped relationship named by the path's
last segment.  Bindings that carry a predicate (directly or through a
descendant) are INNER joins; the rest, e.g. include-only or caller-added
joins, are LEFT OUTER so they never drop root rows.  Include markers
become ``contains_eager`` loader options that reuse the same aliases.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, asc, desc, inspect, select
from sqlalchemy.orm import aliased, contains_eager
from sqlalchemy.sql.elements import ClauseElement
from sqlalchemy.sql.util import ClauseAdapter

from ..exceptions import UnknownFieldError
from ..operators import SortDirection
from ..paths import BindingPath
from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy import Select

    from ..query import Binding, QueryRepresentation
    from .operators import SQLAlchemyOperatorRegistry

logger = logging.getLogger(__name__)


def sql_alias(alias: str) -> str:
    """SQL-safe identifier for a path alias (``a.b`` -> ``a__b``)."""
    return alias.replace(".", "__")


def _unique_sql_alias(alias: str, taken: set[str]) -> str:
    """``sql_alias`` plus a numeric suffix when the name is already taken."""
    base = sql_alias(alias)
    name, n = base, 2
    while name in taken:
        name = f"{base}_{n}"
        n += 1
    taken.add(name)
    return name


def _relationship_target(model: Any, relation: str) -> Any:
    mapper = inspect(model)
    if relation not in mapper.relationships:
        raise UnknownFieldError(relation, mapper.class_.__name__)
    return mapper.relationships[relation].mapper.class_


def _adapt_to(entity: Any, clause: Any) -> Any:
    insp = inspect(entity)
    if not insp.is_aliased_class:
        return clause
    return ClauseAdapter(insp.selectable).traverse(clause)


class SQLAlchemyQueryAdapter:
    """``IQueryAdapter`` producing SQLAlchemy 2.0 ``Select`` statements."""

    def __init__(self, registry: SQLAlchemyOperatorRegistry | None = None) -> None:
        self._registry = registry or DEFAULT_SQLA_REGISTRY

    def to_backend_query(self, query: QueryRepresentation) -> Select[Any]:
        model = query.root_entity
        entities: dict[BindingPath, Any] = {BindingPath.ROOT: model}
        models: dict[BindingPath, Any] = {BindingPath.ROOT: model}
        by_alias: dict[str, Any] = {query.root_alias: model}
        taken = {table.name for table in inspect(model).tables}
        inner = self._inner_paths(query)

        stmt = select(model)
        for binding in query.bindings.values():
            parent_path = binding.path.parent
            parent = entities[parent_path]
            target = binding.target_entity
            if not isinstance(target, type):
                target = _relationship_target(
                    models[parent_path], binding.path.relation
                )
            target_alias = aliased(
                target, name=_unique_sql_alias(binding.alias, taken)
            )
            isouter = binding.path not in inner
            onclause = self._custom_onclause(binding, parent, target_alias)
            if onclause is not None:
                stmt = stmt.join(target_alias, onclause, isouter=isouter)
            else:
                relationship = self._attribute(
                    parent, binding.path.relation, binding.alias
                )
                stmt = stmt.join(relationship.of_type(target_alias), isouter=isouter)
            entities[binding.path] = target_alias
            models[binding.path] = target
            by_alias[binding.alias] = target_alias

        clauses = [
            self._registry.apply(
                bound.predicate.operator,
                self._attribute(
                    by_alias[bound.alias], bound.predicate.field, bound.alias
                ),
                bound.predicate.value,
            )
            for bound in query.predicates
        ]
        if clauses:
            stmt = stmt.where(and_(*clauses))

        if query.orderings:
            stmt = stmt.order_by(
                *(
                    (desc if o.direction is SortDirection.DESC else asc)(
                        self._attribute(by_alias[o.alias], o.field, o.alias)
                    )
                    for o in query.orderings
                )
            )

        loaders = [self._loader(path, entities) for path in self._include_leaves(query)]
        if loaders:
            stmt = stmt.options(*loaders)

        logger.debug(
            "Compiled query on %r: %d join(s), %d predicate(s), %d ordering(s)",
            query.root_alias,
            len(query.bindings),
            len(clauses),
            len(query.orderings),
        )
        return stmt

    @staticmethod
    def _custom_onclause(binding: Binding, parent: Any, target_alias: Any) -> Any:
        join = binding.join
        if isinstance(join, ClauseElement):
            return _adapt_to(parent, _adapt_to(target_alias, join))
        if callable(join) and not isinstance(join, type):
            return join(parent, target_alias)
        return None

    @staticmethod
    def _attribute(entity: Any, name: str, alias: str) -> Any:
        attr = getattr(entity, name, None)
        if attr is None or not hasattr(attr, "__clause_element__"):
            raise UnknownFieldError(name, alias)
        return attr

    @staticmethod
    def _inner_paths(query: QueryRepresentation) -> set[BindingPath]:
        inner: set[BindingPath] = set()
        for bound in query.predicates:
            inner.update(query.path_for_alias(bound.alias).prefixes())
        return inner

    @staticmethod
    def _include_leaves(query: QueryRepresentation) -> list[BindingPath]:
        """Include paths that are not a prefix of another include path."""
        marked = set(query.includes)
        return [
            path
            for path in query.includes
            if not any(
                other != path and other.parts[: len(path)] == path.parts
                for other in marked
            )
        ]

    def _loader(self, path: BindingPath, entities: dict[BindingPath, Any]) -> Any:
        loader: Any = None
        for prefix in path.prefixes():
            attr = self._attribute(
                entities[prefix.parent], prefix.relation, prefix.alias
            ).of_type(entities[prefix])
            if loader is None:
                loader = contains_eager(attr)
            else:
                loader = loader.contains_eager(attr)
        return loader
