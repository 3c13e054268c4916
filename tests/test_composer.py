"""Tests for QueryComposer.build / compose."""

from __future__ import annotations

import logging

import pytest

from query_composer import (
    BindingNotFoundError,
    BindingPath,
    FilterOperator,
    FilterSpec,
    IncludeSpec,
    ParsedParameters,
    QueryComposer,
    QueryRepresentation,
    RelationRegistry,
    SortDirection,
    SortSpec,
    UnknownOperatorError,
    UnknownRelationError,
    collect_paths,
)
from query_composer.query import Ordering, Predicate

SPACE_CENTER = BindingPath.of("space_center")
NESTED_COUNTRY = BindingPath.of("space_center", "country")


def test_root_filter_sort_and_include(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    result = composer.build(
        {"filter[name]": "Apollo", "sort": "-age", "include": "space_center"},
        base_query,
    )
    assert result.ok
    query = result.query
    assert [(b.alias, b.predicate) for b in query.predicates] == [
        ("rocket", Predicate("name", FilterOperator.EQ, "Apollo"))
    ]
    assert query.orderings == (Ordering("rocket", "age", SortDirection.DESC),)
    assert query.current_bindings() == {SPACE_CENTER}
    assert query.includes == (SPACE_CENTER,)
    assert base_query.predicates == ()


def test_nested_filter_joins_every_prefix(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    result = composer.build({"filter[space_center.country.name][lk]": "uk"}, base_query)
    query = result.unwrap()
    assert list(query.bindings) == [SPACE_CENTER, NESTED_COUNTRY]
    (bound,) = query.predicates
    assert bound.alias == "space_center.country"
    assert bound.predicate == Predicate("name", FilterOperator.LK, "uk")
    assert query.includes == ()


def test_caller_binding_is_reused(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    scoped = base_query.with_binding(
        SPACE_CENTER, "auth_sc", join="caller-join", target_entity="SpaceCenter"
    )
    query = composer.build(
        {"filter[space_center.name]": "Kourou", "sort": "space_center.name"}, scoped
    ).unwrap()
    assert len(query.bindings) == 1
    assert query.binding(SPACE_CENTER).join == "caller-join"
    assert query.predicates[0].alias == "auth_sc"
    assert query.orderings[0].alias == "auth_sc"


def test_shared_path_is_joined_once(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    query = composer.build(
        {
            "filter[space_center.name]": "Kourou",
            "filter[space_center.country.name]": "France",
            "sort": "space_center.name",
            "include": "space_center.country",
        },
        base_query,
    ).unwrap()
    assert list(query.bindings) == [SPACE_CENTER, NESTED_COUNTRY]
    assert query.includes == (SPACE_CENTER, NESTED_COUNTRY)
    assert [b.alias for b in query.predicates] == [
        "space_center",
        "space_center.country",
    ]


def test_filters_and_sorts_keep_request_order(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    query = composer.build(
        {"filter[age][gt]": "3", "filter[name][ne]": "x", "sort": "name,-age"},
        base_query,
    ).unwrap()
    assert [b.predicate.field for b in query.predicates] == ["age", "name"]
    assert [(o.field, o.direction) for o in query.orderings] == [
        ("name", SortDirection.ASC),
        ("age", SortDirection.DESC),
    ]


def test_build_is_idempotent(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    raw = {
        "filter[space_center.country.name][lk]": "uk",
        "sort": "-age",
        "include": "space_center",
    }
    assert composer.build(raw, base_query) == composer.build(raw, base_query)


def test_folds_commute_after_planning(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    parsed = ParsedParameters(
        filters=[
            FilterSpec(
                binding_path=NESTED_COUNTRY,
                field="name",
                operator=FilterOperator.EQ,
                value="France",
            )
        ],
        sorts=[
            SortSpec(
                binding_path=SPACE_CENTER, field="name", direction=SortDirection.ASC
            )
        ],
        includes=[IncludeSpec(binding_path=SPACE_CENTER)],
    )
    planned = composer.planner.resolve(
        base_query, collect_paths(parsed.filters, parsed.sorts, parsed.includes)
    )

    forward = composer.apply_includes(
        composer.apply_sorts(
            composer.apply_filters(planned, parsed.filters), parsed.sorts
        ),
        parsed.includes,
    )
    backward = composer.apply_filters(
        composer.apply_sorts(
            composer.apply_includes(planned, parsed.includes), parsed.sorts
        ),
        parsed.filters,
    )
    assert forward == backward
    assert forward == composer.compose(parsed, base_query).query


def test_apply_filters_without_planning(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    spec = FilterSpec(
        binding_path=SPACE_CENTER,
        field="name",
        operator=FilterOperator.EQ,
        value="x",
    )
    with pytest.raises(BindingNotFoundError):
        composer.apply_filters(base_query, [spec])


def test_apply_includes_binds_on_demand(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    query = composer.apply_includes(
        base_query, [IncludeSpec(binding_path=NESTED_COUNTRY)]
    )
    assert query.includes == (SPACE_CENTER, NESTED_COUNTRY)


def test_parse_error_returns_base_query(
    composer: QueryComposer,
    base_query: QueryRepresentation,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="query_composer.composer"):
        result = composer.build({"filter[age][ZZ]": "5"}, base_query)
    assert not result.ok
    assert result.query is base_query
    assert isinstance(result.error, UnknownOperatorError)
    assert "UnknownOperatorError" in caplog.text
    with pytest.raises(UnknownOperatorError):
        result.unwrap()


def test_unknown_relation_returns_base_query(
    composer: QueryComposer, base_query: QueryRepresentation
) -> None:
    result = composer.build(
        {"filter[name]": "Apollo", "filter[space_centre.name]": "x"}, base_query
    )
    assert result.query is base_query
    assert isinstance(result.error, UnknownRelationError)
    assert result.error.to_dict()["suggestions"] == ["space_center"]


def test_default_parser(registry: RelationRegistry) -> None:
    result = QueryComposer(registry).build(
        {"filter[age][gt]": "3"}, QueryRepresentation.for_entity("Rocket")
    )
    assert result.unwrap().predicates[0].predicate.value == "3"
