"""Typed filter / sort / include specifications produced by the parser."""

from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

from .operators import FilterOperator, SortDirection
from .paths import BindingPath


class _Spec(BaseModel):
    """Immutable value object; equality is structural."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    binding_path: BindingPath = BindingPath.ROOT


class FilterSpec(_Spec):
    """``field operator value`` scoped to ``binding_path``."""

    field: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None

    @property
    def dotted(self) -> str:
        return ".".join((*self.binding_path.parts, self.field))


class SortSpec(_Spec):
    field: str
    direction: SortDirection = SortDirection.ASC

    @property
    def dotted(self) -> str:
        return ".".join((*self.binding_path.parts, self.field))


class IncludeSpec(_Spec):
    """Marks a relation for eager materialization in the result shape."""

    @field_validator("binding_path")
    @classmethod
    def _not_root(cls, value: BindingPath) -> BindingPath:
        if value.is_root:
            raise ValueError("include path must name at least one relation")
        return value


class ParsedParameters(NamedTuple):
    """Parser output, in first-encounter order."""

    filters: list[FilterSpec]
    sorts: list[SortSpec]
    includes: list[IncludeSpec]

    @classmethod
    def empty(cls) -> ParsedParameters:
        return cls(filters=[], sorts=[], includes=[])
