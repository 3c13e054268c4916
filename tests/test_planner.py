"""Tests for JoinPlanner / resolve_paths."""

from __future__ import annotations

from typing import Any

import pytest

from query_composer.exceptions import JoinResolutionError, UnknownRelationError
from query_composer.paths import BindingPath
from query_composer.planner import JoinPlanner, collect_paths, resolve_paths
from query_composer.query import QueryRepresentation
from query_composer.relations import (
    JoinRequest,
    RelationDescriptor,
    RelationRegistry,
)
from query_composer.specs import FilterSpec, IncludeSpec, SortSpec

SPACE_CENTER = BindingPath.of("space_center")
NESTED_COUNTRY = BindingPath.of("space_center", "country")
DIRECT_COUNTRY = BindingPath.of("country")


def test_collect_paths_first_seen_across_categories() -> None:
    filters = [
        FilterSpec(binding_path=BindingPath.ROOT, field="name", value="x"),
        FilterSpec(binding_path=NESTED_COUNTRY, field="name", value="x"),
    ]
    sorts = [SortSpec(binding_path=SPACE_CENTER, field="name")]
    includes = [
        IncludeSpec(binding_path=NESTED_COUNTRY),
        IncludeSpec(binding_path=DIRECT_COUNTRY),
    ]
    assert collect_paths(filters, sorts, includes) == [
        NESTED_COUNTRY,
        SPACE_CENTER,
        DIRECT_COUNTRY,
    ]


def test_plan_lists_missing_prefixes_parents_first(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    planner = JoinPlanner(registry)
    assert planner.plan(base_query, [NESTED_COUNTRY, SPACE_CENTER]) == [
        SPACE_CENTER,
        NESTED_COUNTRY,
    ]


def test_resolve_binds_each_path_once(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    query = resolve_paths(
        base_query, [NESTED_COUNTRY, SPACE_CENTER, NESTED_COUNTRY], registry
    )
    assert list(query.bindings) == [SPACE_CENTER, NESTED_COUNTRY]
    assert query.alias_for(SPACE_CENTER) == "space_center"
    assert query.alias_for(NESTED_COUNTRY) == "space_center.country"
    assert query.binding(NESTED_COUNTRY).target_entity == "Country"


def test_resolve_is_idempotent(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    once = resolve_paths(base_query, [NESTED_COUNTRY], registry)
    assert resolve_paths(once, [NESTED_COUNTRY], registry) is once


def test_same_terminal_relation_at_different_depths(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    query = resolve_paths(base_query, [DIRECT_COUNTRY, NESTED_COUNTRY], registry)
    assert query.current_bindings() == {DIRECT_COUNTRY, SPACE_CENTER, NESTED_COUNTRY}
    assert query.alias_for(DIRECT_COUNTRY) == "country"
    assert query.alias_for(NESTED_COUNTRY) == "space_center.country"


def test_pre_existing_binding_is_reused(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    scoped = base_query.with_binding(SPACE_CENTER, "auth_sc", join="caller-join")
    query = resolve_paths(scoped, [NESTED_COUNTRY], registry)
    assert query.binding(SPACE_CENTER).join == "caller-join"
    assert query.binding(SPACE_CENTER).alias == "auth_sc"
    assert len(query.bindings) == 2


def test_materializer_receives_parent_alias(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    requests: list[JoinRequest] = []

    def recording(query: QueryRepresentation, request: JoinRequest) -> Any:
        requests.append(request)
        return query.with_binding(
            request.path, f"j{len(requests)}", target_entity="Country"
        )

    registry.register(
        "SpaceCenter", RelationDescriptor("country", "Country", recording)
    )
    scoped = base_query.with_binding(
        SPACE_CENTER, "auth_sc", target_entity="SpaceCenter"
    )
    query = resolve_paths(scoped, [NESTED_COUNTRY], registry)
    (request,) = requests
    assert request.parent_alias == "auth_sc"
    assert request.relation_name == "country"
    assert request.alias == "space_center.country"
    assert query.alias_for(NESTED_COUNTRY) == "j1"


def test_unknown_relation(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    with pytest.raises(UnknownRelationError) as exc_info:
        resolve_paths(base_query, [BindingPath.of("space_centre")], registry)
    err = exc_info.value
    assert isinstance(err, JoinResolutionError)
    assert "space_center" in err.suggestions
    assert err.to_dict()["path"] == "space_centre"


def _failing(
    query: QueryRepresentation, request: JoinRequest
) -> QueryRepresentation:
    raise RuntimeError("schema lookup timed out")


def _forgetful(
    query: QueryRepresentation, request: JoinRequest
) -> QueryRepresentation:
    return query


def _not_a_query(query: QueryRepresentation, request: JoinRequest) -> Any:
    return "nope"


def _drops_bindings(
    query: QueryRepresentation, request: JoinRequest
) -> QueryRepresentation:
    fresh = QueryRepresentation.for_entity(query.root_entity)
    return fresh.with_binding(request.path.parent, "sc").with_binding(
        request.path, request.alias
    )


@pytest.mark.parametrize("materializer", [_failing, _forgetful, _not_a_query])
def test_materializer_contract_violations(
    registry: RelationRegistry,
    base_query: QueryRepresentation,
    materializer: Any,
) -> None:
    registry.register(
        "SpaceCenter", RelationDescriptor("country", "Country", materializer)
    )
    with pytest.raises(JoinResolutionError) as exc_info:
        resolve_paths(base_query, [NESTED_COUNTRY], registry)
    assert exc_info.value.path == NESTED_COUNTRY
    assert not base_query.current_bindings()


def test_materializer_must_keep_existing_bindings(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    registry.register(
        "SpaceCenter", RelationDescriptor("country", "Country", _drops_bindings)
    )
    scoped = base_query.with_binding(DIRECT_COUNTRY, "country")
    with pytest.raises(JoinResolutionError, match="dropped existing bindings"):
        resolve_paths(scoped, [NESTED_COUNTRY], registry)


def test_caller_binding_without_target_walks_registry(
    registry: RelationRegistry, base_query: QueryRepresentation
) -> None:
    scoped = base_query.with_binding(SPACE_CENTER, "space_center")
    query = resolve_paths(scoped, [NESTED_COUNTRY], registry)
    assert query.binding(NESTED_COUNTRY).target_entity == "Country"
