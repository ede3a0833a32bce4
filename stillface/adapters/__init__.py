"""
Database Adapters for StillFace

Each adapter handles, for one DatabaseMode:
- Connection management
- Statement execution
- Generated key retrieval
- Result formatting

Supported Engines:
- SQLite (built-in, zero dependencies)
- MySQL / MariaDB
- PostgreSQL
"""

from stillface.adapters.base import BaseAdapter, AdapterResult, AdapterError, ConnectionError, QueryError
from stillface.adapters.factory import (
    get_adapter,
    adapter_from_settings,
    register_adapter,
    list_adapters,
    is_mode_supported,
)

__all__ = [
    "BaseAdapter",
    "AdapterResult",
    "AdapterError",
    "ConnectionError",
    "QueryError",
    "get_adapter",
    "adapter_from_settings",
    "register_adapter",
    "list_adapters",
    "is_mode_supported",
]
