from enum import Enum


class FilterOperator(str, Enum):
    """Supported filter operators."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    # Case-insensitive substring match
    LK = "lk"
    IN = "in"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
