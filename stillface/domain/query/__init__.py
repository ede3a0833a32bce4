"""
Query Domain

Schema definition and SQL building.
"""

from stillface.domain.query.builder import ALL, BuiltQuery, QueryBuilder, dialect_for
from stillface.domain.query.schema import TABLES, TABLE_NAMES, metadata

__all__ = ["ALL", "BuiltQuery", "QueryBuilder", "dialect_for", "TABLES", "TABLE_NAMES", "metadata"]
