"""
Adapter Factory for StillFace

Maps each DatabaseMode to its adapter class.

Usage:
    from stillface.adapters import get_adapter
    
    adapter = get_adapter("sqlite", {"database": "stillface.db", "create": True})
    
    # Or straight from settings
    adapter = adapter_from_settings(get_settings())
"""

import logging
from typing import Any, Dict, List, Type, Union

from stillface.adapters.base import BaseAdapter, ConnectionError
from stillface.shared.types import DatabaseMode

logger = logging.getLogger(__name__)


# =============================================================================
# ADAPTER REGISTRY
# =============================================================================

# Map of mode -> adapter class
_ADAPTER_REGISTRY: Dict[DatabaseMode, Type[BaseAdapter]] = {}


def register_adapter(mode: Union[DatabaseMode, str], adapter_class: Type[BaseAdapter]) -> None:
    """
    Register an adapter class for a mode.
    
    Args:
        mode: Database mode (or its name)
        adapter_class: Adapter class to use for this mode
    """
    _ADAPTER_REGISTRY[DatabaseMode.parse(mode)] = adapter_class
    logger.debug(f"Registered adapter for mode: {mode}")


def list_adapters() -> List[str]:
    """Get list of registered modes."""
    return [mode.value for mode in _ADAPTER_REGISTRY]


def is_mode_supported(mode: Union[DatabaseMode, str]) -> bool:
    """Check if a mode has a registered adapter."""
    try:
        return DatabaseMode.parse(mode) in _ADAPTER_REGISTRY
    except ValueError:
        return False


# =============================================================================
# ADAPTER FACTORY
# =============================================================================

def get_adapter(mode: Union[DatabaseMode, str], config: Dict[str, Any]) -> BaseAdapter:
    """
    Create an adapter instance for the specified mode.
    
    The adapter is not connected; the DAO opens and closes it per operation.
    
    Args:
        mode: Database mode (e.g., "sqlite", "mysql", "postgres")
        config: Connection configuration dict
    
    Returns:
        Adapter instance
    
    Raises:
        ConnectionError: If mode not supported or config is invalid
    """
    if not is_mode_supported(mode):
        available = ", ".join(list_adapters())
        raise ConnectionError(
            f"Unsupported mode: {mode}. Available: {available}",
            engine=str(mode)
        )
    
    adapter_class = _ADAPTER_REGISTRY[DatabaseMode.parse(mode)]
    return adapter_class(config)


def adapter_from_settings(settings) -> BaseAdapter:
    """Create the adapter described by a Settings instance."""
    return get_adapter(settings.db_mode, settings.adapter_config())


# =============================================================================
# AUTO-REGISTER BUILT-IN ADAPTERS
# =============================================================================

def _register_builtin_adapters():
    """Register all built-in adapters."""
    from stillface.adapters.sqlite_adapter import SQLiteAdapter
    from stillface.adapters.mysql_adapter import MySQLAdapter
    from stillface.adapters.postgres_adapter import PostgresAdapter
    
    register_adapter(DatabaseMode.SQLITE, SQLiteAdapter)
    register_adapter(DatabaseMode.MYSQL, MySQLAdapter)
    register_adapter(DatabaseMode.POSTGRES, PostgresAdapter)


# Register on module load
_register_builtin_adapters()
