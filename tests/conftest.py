"""Shared fixtures for query composer tests."""

from __future__ import annotations

import pytest
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, relationship

from query_composer import (
    FieldCatalog,
    ParameterParser,
    QueryComposer,
    QueryRepresentation,
    RelationDescriptor,
    RelationRegistry,
)
from query_composer.sqla import SQLAlchemyRelationRegistry


@pytest.fixture
def registry() -> RelationRegistry:
    """Rocket -> SpaceCenter -> Country, plus a direct Rocket -> Country."""
    reg = RelationRegistry()
    reg.register(
        "Rocket",
        RelationDescriptor("space_center", "SpaceCenter"),
        RelationDescriptor("country", "Country"),
        RelationDescriptor("launches", "Launch"),
    )
    reg.register(
        "SpaceCenter",
        RelationDescriptor("country", "Country"),
        RelationDescriptor("operator", "Agency"),
    )
    reg.register("Launch", RelationDescriptor("site", "SpaceCenter"))
    return reg


@pytest.fixture
def base_query() -> QueryRepresentation:
    return QueryRepresentation.for_entity("Rocket")


@pytest.fixture
def catalog() -> FieldCatalog:
    return FieldCatalog(
        field_types={
            "name": "str",
            "age": "int",
            "launched_at": "datetime",
            "space_center.name": "str",
            "space_center.country.name": "str",
        }
    )


@pytest.fixture
def composer(registry: RelationRegistry, catalog: FieldCatalog) -> QueryComposer:
    return QueryComposer(registry, parser=ParameterParser(catalog))


# ---------------------------------------------------------------------------
# SQLAlchemy models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class CountryRecord(Base):
    __tablename__ = "country"
    id = Column(Integer, primary_key=True)
    name = Column(String)


class SpaceCenterRecord(Base):
    __tablename__ = "space_center"
    id = Column(Integer, primary_key=True)
    name = Column(String)
    country_id = Column(Integer, ForeignKey("country.id"))
    country = relationship("CountryRecord")


class RocketRecord(Base):
    __tablename__ = "rocket"
    id = Column(Integer, primary_key=True)
    name = Column(String)
    age = Column(Integer)
    space_center_id = Column(Integer, ForeignKey("space_center.id"))
    space_center = relationship("SpaceCenterRecord")


@pytest.fixture
def sqla_registry() -> SQLAlchemyRelationRegistry:
    return SQLAlchemyRelationRegistry()


@pytest.fixture
def rocket_query() -> QueryRepresentation:
    return QueryRepresentation.for_entity(RocketRecord)
