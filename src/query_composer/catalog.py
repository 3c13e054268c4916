"""FieldCatalog — per-resource declared field types and allow-lists."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import FieldNotAllowedError
from .utils import SUPPORTED_VALUE_TYPES

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class FieldCatalog:
    """
    Declared semantic types of dotted fields plus optional allow-lists.

    Every allow-list defaults to ``None`` which means "unrestricted".
    Fields without a declared type keep their raw string value.

    Example::

        catalog = FieldCatalog(
            field_types={"age": "int", "space_center.country.name": "str"},
            filterable_fields={"age": {"eq", "gt", "lt"}, "name": None},
            sortable_fields={"age", "name"},
            includable_paths={"space_center"},
        )
    """

    def __init__(
        self,
        *,
        field_types: Mapping[str, str] | None = None,
        filterable_fields: Mapping[str, Iterable[str] | None] | None = None,
        sortable_fields: Iterable[str] | None = None,
        includable_paths: Iterable[str] | None = None,
    ) -> None:
        self.field_types = {k: v.lower() for k, v in (field_types or {}).items()}
        for name, value_type in self.field_types.items():
            if value_type not in SUPPORTED_VALUE_TYPES:
                raise ValueError(
                    f"Unsupported value type {value_type!r} declared for {name!r}"
                )
        self.filterable_fields: dict[str, frozenset[str] | None] | None = (
            {
                name: frozenset(op.lower() for op in ops) if ops is not None else None
                for name, ops in filterable_fields.items()
            }
            if filterable_fields is not None
            else None
        )
        self.sortable_fields = (
            frozenset(sortable_fields) if sortable_fields is not None else None
        )
        self.includable_paths = (
            frozenset(includable_paths) if includable_paths is not None else None
        )

    def value_type(self, field: str) -> str | None:
        return self.field_types.get(field)

    def allow_filter(self, field: str, op: str, parameter: str | None = None) -> None:
        """Raise FieldNotAllowedError if field or operator is not allowed."""
        if self.filterable_fields is None:
            return
        if field not in self.filterable_fields:
            raise FieldNotAllowedError(
                f"Field {field!r} is not filterable", parameter=parameter
            )
        allowed_ops = self.filterable_fields[field]
        if allowed_ops is not None and op not in allowed_ops:
            raise FieldNotAllowedError(
                f"Operator {op!r} not allowed for field {field!r}",
                parameter=parameter,
            )

    def allow_sort(self, field: str, parameter: str | None = None) -> None:
        if self.sortable_fields is not None and field not in self.sortable_fields:
            raise FieldNotAllowedError(
                f"Field {field!r} is not sortable", parameter=parameter
            )

    def allow_include(self, path: str, parameter: str | None = None) -> None:
        if self.includable_paths is not None and path not in self.includable_paths:
            raise FieldNotAllowedError(
                f"Relation {path!r} cannot be included", parameter=parameter
            )
