"""
Value coercion helpers for raw request parameter values.

These are pure-Python helpers with no infrastructure dependencies.
Unlike lenient casting, every helper here raises ``ValueError`` when a
value does not fit the requested type.
"""

from __future__ import annotations

import datetime
import decimal
import math
import uuid as uuid_module
from typing import Any

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})

# ---------------------------------------------------------------------------
# List parsing
# ---------------------------------------------------------------------------


def split_list_value(value: Any) -> list[Any]:
    """
    Turn a raw value into a list of items.

    Supports Python collections and comma-separated strings.  Blank items
    are dropped.
    """
    if isinstance(value, list | tuple | set | frozenset):
        items = list(value)
    elif isinstance(value, str):
        items = value.split(",")
    else:
        items = [value]
    return [
        item.strip() if isinstance(item, str) else item
        for item in items
        if not (isinstance(item, str) and not item.strip())
    ]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, int):
        return value
    return int(str(value).strip())


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError("float must be finite")
    return result


def _to_decimal(value: Any) -> decimal.Decimal:
    try:
        result = decimal.Decimal(str(value).strip())
    except decimal.InvalidOperation as exc:
        raise ValueError(str(exc)) from exc
    if not result.is_finite():
        raise ValueError("decimal must be finite")
    return result


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    low = str(value).strip().lower()
    if low in _TRUE_STRINGS:
        return True
    if low in _FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value))


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        result = value
    else:
        result = datetime.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if result.tzinfo is not None:
        result = result.astimezone(datetime.timezone.utc)
    return result


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    return datetime.time.fromisoformat(str(value))


def _to_uuid(value: Any) -> uuid_module.UUID:
    if isinstance(value, uuid_module.UUID):
        return value
    return uuid_module.UUID(str(value))


_COERCERS = {
    "str": _to_str,
    "string": _to_str,
    "text": _to_str,
    "int": _to_int,
    "integer": _to_int,
    "float": _to_float,
    "double": _to_float,
    "decimal": _to_decimal,
    "numeric": _to_decimal,
    "bool": _to_bool,
    "boolean": _to_bool,
    "date": _to_date,
    "datetime": _to_datetime,
    "time": _to_time,
    "uuid": _to_uuid,
}

STRING_TYPES = frozenset({"str", "string", "text"})
SUPPORTED_VALUE_TYPES = frozenset(_COERCERS)


def coerce_value(value: Any, value_type: str | None = None) -> Any:
    """
    Coerce *value* to *value_type*.

    ``None`` as *value_type* leaves the value untouched.

    Raises:
        ValueError: If the value does not fit, or the type is unknown.
    """
    if value_type is None:
        return value
    coercer = _COERCERS.get(value_type.lower())
    if coercer is None:
        raise ValueError(f"Unsupported value type: {value_type!r}")
    try:
        return coercer(value)
    except (TypeError, OverflowError) as exc:
        raise ValueError(str(exc)) from exc


def format_value(value: Any) -> str:
    """Render a coerced value back into its request-parameter form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()
    return str(value)
