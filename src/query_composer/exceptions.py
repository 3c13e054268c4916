"""
Composer exception hierarchy.

All exceptions inherit from ``ComposerError`` and provide ``to_dict()``
for API-friendly error responses.  Parse errors carry the offending
parameter, planner errors carry the offending binding path.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class ComposerError(Exception):
    """Root exception for the query composer."""

    code = "COMPOSER_ERROR"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
        }


# ---------------------------------------------------------------------------
# Parse-time errors
# ---------------------------------------------------------------------------


class ParseError(ComposerError):
    """Request parameters could not be turned into specs."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, parameter: str | None = None) -> None:
        self.message = message
        self.parameter = parameter
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "parameter": self.parameter,
        }


class UnknownOperatorError(ParseError):
    """
    Unrecognised operator token in ``filter[field][OP]``.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    code = "UNKNOWN_OPERATOR"

    def __init__(
        self,
        operator: str,
        valid_operators: list[str],
        parameter: str | None = None,
    ) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(
            operator.lower(), valid_operators, n=3, cutoff=0.6
        )

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(message, parameter=parameter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "operator": self.operator,
            "parameter": self.parameter,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class MalformedParameterError(ParseError):
    """Bracket/dot syntax or value shape is invalid."""

    code = "MALFORMED_PARAMETER"


class TypeMismatchError(ParseError):
    """A value could not be coerced to the field's declared type."""

    code = "TYPE_MISMATCH"

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        parameter: str | None = None,
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Value {value!r} for field '{field}' is not a valid {expected}",
            parameter=parameter,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "field": self.field,
            "value": self.value if isinstance(self.value, str) else repr(self.value),
            "expected": self.expected,
            "parameter": self.parameter,
        }


class FieldNotAllowedError(ParseError):
    """A field, operator or include path is outside the catalog allow-list."""

    code = "FIELD_NOT_ALLOWED"


# ---------------------------------------------------------------------------
# Planning / composition errors
# ---------------------------------------------------------------------------


class JoinResolutionError(ComposerError):
    """The join materializer failed or broke its contract for a path."""

    code = "JOIN_RESOLUTION_ERROR"

    def __init__(self, message: str, path: Any = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "path": str(self.path) if self.path is not None else None,
        }


class UnknownRelationError(JoinResolutionError):
    """The registry has no relation with this name on the parent entity."""

    code = "UNKNOWN_RELATION"

    def __init__(
        self,
        relation: str,
        entity_name: str,
        available: list[str],
        path: Any = None,
    ) -> None:
        self.relation = relation
        self.entity_name = entity_name
        self.available = available
        self.suggestions = get_close_matches(relation, available, n=3, cutoff=0.6)

        message = f"Unknown relation '{relation}' on '{entity_name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["relation"] = self.relation
        data["entity"] = self.entity_name
        data["suggestions"] = self.suggestions
        data["available_relations"] = sorted(self.available)
        return data


class BindingNotFoundError(ComposerError):
    """
    A predicate, ordering or include referenced an unbound path or alias.

    Raised by the composer when planning did not run first; this is a
    planner defect, not bad input.
    """

    code = "BINDING_NOT_FOUND"

    def __init__(self, reference: Any) -> None:
        self.reference = reference
        super().__init__(f"No binding for {str(reference)!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "reference": str(self.reference),
        }


class BindingConflictError(ComposerError):
    """A path or alias is already bound in the query."""

    code = "BINDING_CONFLICT"


class UnknownFieldError(ComposerError):
    """The execution adapter cannot find a field on a bound entity."""

    code = "UNKNOWN_FIELD"

    def __init__(self, field: str, alias: str) -> None:
        self.field = field
        self.alias = alias
        super().__init__(f"Field '{field}' does not exist on '{alias}'")


class ScopeConstraintError(ComposerError):
    """Scope injection failed (e.g. missing tenant)."""

    code = "SCOPE_CONSTRAINT_ERROR"
