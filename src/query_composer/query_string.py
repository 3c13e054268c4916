"""QueryStringBuilder — specs -> query string (self / pagination links)."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

from .operators import FilterOperator, SortDirection
from .utils import format_value

if TYPE_CHECKING:
    from .specs import ParsedParameters, SortSpec


def _sort_token(spec: SortSpec) -> str:
    return f"-{spec.dotted}" if spec.direction is SortDirection.DESC else spec.dotted


class QueryStringBuilder:
    """Build a query string in the grammar ``ParameterParser`` accepts."""

    def build(
        self,
        parsed: ParsedParameters,
        *,
        filter_key: str = "filter",
        sort_key: str = "sort",
        include_key: str = "include",
        extra: dict[str, str | int] | None = None,
    ) -> str:
        """Produce a query string; *extra* params (e.g. ``page[number]``) go last."""
        params: list[tuple[str, str]] = []
        for spec in parsed.filters:
            key = f"{filter_key}[{spec.dotted}]"
            if spec.operator is not FilterOperator.EQ:
                key += f"[{spec.operator.value}]"
            if spec.operator is FilterOperator.IN:
                value = ",".join(format_value(v) for v in spec.value)
            else:
                value = format_value(spec.value)
            params.append((key, value))
        if parsed.sorts:
            params.append((sort_key, ",".join(_sort_token(s) for s in parsed.sorts)))
        if parsed.includes:
            params.append(
                (include_key, ",".join(i.binding_path.alias for i in parsed.includes))
            )
        if extra:
            params.extend((k, str(v)) for k, v in extra.items())
        return urlencode(params) if params else ""
