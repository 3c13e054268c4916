"""
QueryRepresentation-to-SQLAlchemy compilation.

Public API:
    - ``SQLAlchemyQueryAdapter`` — ``query.to_executable(adapter)`` target
      producing a ``Select``
    - ``SQLAlchemyRelationRegistry`` — relation registry that falls back to
      mapped relationships
    - ``SQLA_OPERATORS`` / ``SQLAlchemyOperatorRegistry`` — operator
      compilation table, overridable per adapter
"""

from .compiler import SQLAlchemyQueryAdapter, sql_alias
from .operators import DEFAULT_SQLA_REGISTRY, SQLA_OPERATORS, SQLAlchemyOperatorRegistry
from .relations import SQLAlchemyRelationRegistry

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "SQLA_OPERATORS",
    "SQLAlchemyOperatorRegistry",
    "SQLAlchemyQueryAdapter",
    "SQLAlchemyRelationRegistry",
    "sql_alias",
]
