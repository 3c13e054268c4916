"""JSON:API filter/sort/include parameters -> composable, unexecuted queries."""

from __future__ import annotations

from .catalog import FieldCatalog
from .composer import BuildResult, QueryComposer
from .exceptions import (
    BindingConflictError,
    BindingNotFoundError,
    ComposerError,
    FieldNotAllowedError,
    JoinResolutionError,
    MalformedParameterError,
    ParseError,
    ScopeConstraintError,
    TypeMismatchError,
    UnknownFieldError,
    UnknownOperatorError,
    UnknownRelationError,
)
from .operators import FilterOperator, SortDirection
from .parser import ParameterParser
from .paths import BindingPath
from .planner import JoinPlanner, collect_paths, resolve_paths
from .predicates import PREDICATE_FACTORIES, build_predicate
from .query import (
    Binding,
    BoundPredicate,
    IQueryAdapter,
    Ordering,
    Predicate,
    QueryRepresentation,
)
from .query_string import QueryStringBuilder
from .relations import (
    JoinMaterializer,
    JoinRequest,
    RelationDescriptor,
    RelationRegistry,
    bind_relation,
)
from .scoping import ScopeConstraintInjector
from .specs import FilterSpec, IncludeSpec, ParsedParameters, SortSpec

__version__ = "0.1.0"

__all__ = [
    # Specs
    "BindingPath",
    "FilterOperator",
    "FilterSpec",
    "IncludeSpec",
    "ParsedParameters",
    "SortDirection",
    "SortSpec",
    # Parsing
    "FieldCatalog",
    "ParameterParser",
    "QueryStringBuilder",
    # Query value
    "Binding",
    "BoundPredicate",
    "IQueryAdapter",
    "Ordering",
    "Predicate",
    "QueryRepresentation",
    # Relations / planning
    "JoinMaterializer",
    "JoinPlanner",
    "JoinRequest",
    "RelationDescriptor",
    "RelationRegistry",
    "bind_relation",
    "collect_paths",
    "resolve_paths",
    # Composition
    "BuildResult",
    "PREDICATE_FACTORIES",
    "QueryComposer",
    "ScopeConstraintInjector",
    "build_predicate",
    # Exceptions
    "BindingConflictError",
    "BindingNotFoundError",
    "ComposerError",
    "FieldNotAllowedError",
    "JoinResolutionError",
    "MalformedParameterError",
    "ParseError",
    "ScopeConstraintError",
    "TypeMismatchError",
    "UnknownFieldError",
    "UnknownOperatorError",
    "UnknownRelationError",
]
