"""
Relation registry backed by SQLAlchemy mapper metadata.

Relations registered explicitly win; anything else is looked up on the
mapped class's ``relationships`` the first time it is requested.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect

from ..relations import RelationDescriptor, RelationRegistry


def _mapper(entity: Any) -> Any:
    if not isinstance(entity, type):
        return None
    return inspect(entity, raiseerr=False)


class SQLAlchemyRelationRegistry(RelationRegistry):
    """:class:`RelationRegistry` that falls back to mapped relationships."""

    def find(self, entity: Any, name: str) -> RelationDescriptor | None:
        descriptor = super().find(entity, name)
        if descriptor is not None:
            return descriptor
        mapper = _mapper(entity)
        if mapper is None or name not in mapper.relationships:
            return None
        descriptor = RelationDescriptor(
            name=name, target_entity=mapper.relationships[name].mapper.class_
        )
        self.register(entity, descriptor)
        return descriptor

    def relations_of(self, entity: Any) -> tuple[str, ...]:
        names = dict.fromkeys(super().relations_of(entity))
        mapper = _mapper(entity)
        if mapper is not None:
            names.update(dict.fromkeys(mapper.relationships.keys()))
        return tuple(names)
