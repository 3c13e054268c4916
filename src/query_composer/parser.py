"""ParameterParser — JSON:API style request params -> typed specs."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .exceptions import (
    MalformedParameterError,
    TypeMismatchError,
    UnknownOperatorError,
)
from .operators import FilterOperator, SortDirection
from .paths import BindingPath, is_valid_segment
from .specs import FilterSpec, IncludeSpec, ParsedParameters, SortSpec
from .utils import STRING_TYPES, coerce_value, split_list_value

if TYPE_CHECKING:
    from .catalog import FieldCatalog

logger = logging.getLogger(__name__)

_OPERATORS: dict[str, FilterOperator] = {op.value: op for op in FilterOperator}


class ParameterParser:
    """
    Parse raw request parameters into filter, sort and include specs.

    Grammar::

        filter[field]=value                 -> EQ
        filter[field][OP]=value             -> explicit operator
        filter[rel.sub.field][OP]=value     -> BindingPath [rel, sub] + field
        sort=field,-other                   -> ASC field, DESC other
        include=rel,rel.sub                 -> eager-load markers

    ``filter`` may also arrive as a nested mapping
    (``{"filter": {"age": {"gt": "5"}}}``), the shape most frameworks
    produce for bracketed keys.  Other keys are ignored.
    """

    def __init__(
        self,
        catalog: FieldCatalog | None = None,
        *,
        filter_key: str = "filter",
        sort_key: str = "sort",
        include_key: str = "include",
        max_depth: int | None = None,
    ) -> None:
        """
        Initialize ParameterParser.

        Args:
            catalog: Optional declared field types and allow-lists.
            filter_key: Parameter name carrying filters.
            sort_key: Parameter name carrying the sort list.
            include_key: Parameter name carrying the include list.
            max_depth: Maximum number of relations in a binding path.
        """
        if max_depth is not None and max_depth < 1:
            raise ValueError("max_depth must be a positive integer")
        self._catalog = catalog
        self._filter_key = filter_key
        self._sort_key = sort_key
        self._include_key = include_key
        self._max_depth = max_depth
        self._filter_re = re.compile(
            rf"^{re.escape(filter_key)}\[([^\[\]]*)\](?:\[([^\[\]]*)\])?$"
        )

    def parse(self, raw_params: Mapping[str, Any]) -> ParsedParameters:
        """Return specs in first-encounter order of *raw_params*."""
        filters: list[FilterSpec] = []
        sorts: list[SortSpec] = []
        includes: list[IncludeSpec] = []
        seen_includes: set[BindingPath] = set()

        for key, raw in raw_params.items():
            if key == self._filter_key:
                filters.extend(self._parse_filter_mapping(raw))
            elif key.startswith(f"{self._filter_key}["):
                filters.append(self._parse_filter_key(key, raw))
            elif key == self._sort_key:
                sorts.extend(self._parse_sort(raw))
            elif key == self._include_key:
                for spec in self._parse_include(raw):
                    if spec.binding_path not in seen_includes:
                        seen_includes.add(spec.binding_path)
                        includes.append(spec)
            else:
                logger.debug("Ignoring parameter %r", key)

        logger.debug(
            "Parsed %d filter(s), %d sort(s), %d include(s)",
            len(filters),
            len(sorts),
            len(includes),
        )
        return ParsedParameters(filters=filters, sorts=sorts, includes=includes)

    # -- filters --------------------------------------------------------------

    def _parse_filter_key(self, key: str, raw: Any) -> FilterSpec:
        match = self._filter_re.match(key)
        if match is None:
            raise MalformedParameterError(
                f"Expected {self._filter_key}[field] or "
                f"{self._filter_key}[field][op], got {key!r}",
                parameter=key,
            )
        field_expr, op_token = match.group(1), match.group(2)
        return self._build_filter(field_expr, op_token, raw, parameter=key)

    def _parse_filter_mapping(self, raw: Any) -> list[FilterSpec]:
        if not isinstance(raw, Mapping):
            raise MalformedParameterError(
                f"{self._filter_key!r} must be given as "
                f"{self._filter_key}[field]=value",
                parameter=self._filter_key,
            )
        out: list[FilterSpec] = []
        for field_expr, value in raw.items():
            parameter = f"{self._filter_key}[{field_expr}]"
            if isinstance(value, Mapping):
                for op_token, op_value in value.items():
                    out.append(
                        self._build_filter(
                            field_expr,
                            str(op_token),
                            op_value,
                            parameter=f"{parameter}[{op_token}]",
                        )
                    )
            else:
                out.append(self._build_filter(field_expr, None, value, parameter))
        return out

    def _build_filter(
        self,
        field_expr: str,
        op_token: str | None,
        raw: Any,
        parameter: str,
    ) -> FilterSpec:
        path, field = self._split_field(field_expr, parameter)
        operator = self._parse_operator(op_token, parameter)
        if self._catalog is not None:
            self._catalog.allow_filter(field_expr, operator.value, parameter)
        value = self._coerce(field_expr, operator, raw, parameter)
        return FilterSpec(
            binding_path=path,
            field=field,
            operator=operator,
            value=value,
        )

    def _parse_operator(self, token: str | None, parameter: str) -> FilterOperator:
        if token is None:
            return FilterOperator.EQ
        normalized = token.strip().lower()
        if not normalized:
            raise MalformedParameterError(
                "Empty operator brackets", parameter=parameter
            )
        operator = _OPERATORS.get(normalized)
        if operator is None:
            raise UnknownOperatorError(token, list(_OPERATORS), parameter=parameter)
        return operator

    def _coerce(
        self,
        field_expr: str,
        operator: FilterOperator,
        raw: Any,
        parameter: str,
    ) -> Any:
        value_type = self._catalog.value_type(field_expr) if self._catalog else None

        if operator is FilterOperator.LK and (
            value_type is not None and value_type not in STRING_TYPES
        ):
            raise TypeMismatchError(
                field_expr, raw, f"text field for 'lk' ({value_type})", parameter
            )

        if operator is FilterOperator.IN:
            items = split_list_value(raw)
            if not items:
                raise MalformedParameterError(
                    "'in' requires at least one value", parameter=parameter
                )
            return tuple(
                self._coerce_one(field_expr, item, value_type, parameter)
                for item in items
            )

        if isinstance(raw, list | tuple):
            if len(raw) != 1:
                raise MalformedParameterError(
                    f"'{operator.value}' expects a single value, got {len(raw)}",
                    parameter=parameter,
                )
            raw = raw[0]
        if raw is None or isinstance(raw, Mapping):
            raise MalformedParameterError("Missing filter value", parameter=parameter)
        return self._coerce_one(field_expr, raw, value_type, parameter)

    def _coerce_one(
        self,
        field_expr: str,
        value: Any,
        value_type: str | None,
        parameter: str,
    ) -> Any:
        try:
            return coerce_value(value, value_type)
        except ValueError as exc:
            raise TypeMismatchError(
                field_expr, value, value_type or "value", parameter
            ) from exc

    # -- sort / include -------------------------------------------------------

    def _parse_sort(self, raw: Any) -> list[SortSpec]:
        out: list[SortSpec] = []
        for token in self._tokens(raw, self._sort_key):
            direction = SortDirection.ASC
            field_expr = token
            if token.startswith("-"):
                direction = SortDirection.DESC
                field_expr = token[1:]
            path, field = self._split_field(field_expr, self._sort_key)
            if self._catalog is not None:
                self._catalog.allow_sort(field_expr, self._sort_key)
            out.append(SortSpec(binding_path=path, field=field, direction=direction))
        return out

    def _parse_include(self, raw: Any) -> list[IncludeSpec]:
        out: list[IncludeSpec] = []
        for token in self._tokens(raw, self._include_key):
            path = self._split_path(token.split("."), token, self._include_key)
            if self._catalog is not None:
                self._catalog.allow_include(token, self._include_key)
            out.append(IncludeSpec(binding_path=path))
        return out

    def _tokens(self, raw: Any, parameter: str) -> list[str]:
        """Comma-separated tokens from a string or list of strings."""
        if isinstance(raw, str):
            chunks = [raw]
        elif isinstance(raw, list | tuple):
            chunks = list(raw)
        else:
            raise MalformedParameterError(
                f"Expected a comma-separated string, got {type(raw).__name__}",
                parameter=parameter,
            )
        if all(isinstance(c, str) and not c.strip() for c in chunks):
            return []
        tokens: list[str] = []
        for chunk in chunks:
            if not isinstance(chunk, str):
                raise MalformedParameterError(
                    f"Expected string items, got {type(chunk).__name__}",
                    parameter=parameter,
                )
            for token in chunk.split(","):
                stripped = token.strip()
                if not stripped:
                    raise MalformedParameterError(
                        f"Empty item in {chunk!r}", parameter=parameter
                    )
                tokens.append(stripped)
        return tokens

    # -- dotted names ---------------------------------------------------------

    def _split_field(self, expr: str, parameter: str) -> tuple[BindingPath, str]:
        if not expr:
            raise MalformedParameterError("Empty field name", parameter=parameter)
        parts = expr.split(".")
        path = self._split_path(parts[:-1], expr, parameter)
        if not is_valid_segment(parts[-1]):
            raise MalformedParameterError(
                f"Invalid field name {parts[-1]!r} in {expr!r}", parameter=parameter
            )
        return path, parts[-1]

    def _split_path(self, parts: list[str], expr: str, parameter: str) -> BindingPath:
        for part in parts:
            if not is_valid_segment(part):
                raise MalformedParameterError(
                    f"Invalid relation name {part!r} in {expr!r}", parameter=parameter
                )
        if self._max_depth is not None and len(parts) > self._max_depth:
            raise MalformedParameterError(
                f"Path {expr!r} exceeds the maximum depth of {self._max_depth}",
                parameter=parameter,
            )
        return BindingPath(tuple(parts))
