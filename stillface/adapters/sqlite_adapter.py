"""
SQLite Adapter for StillFace

SQLite is the embedded backend:
- Local coding stations with no database server
- Tests and quick prototyping
- Single-file databases that travel with the recordings

Requirements:
    None - sqlite3 is included in Python standard library
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict

from sqlalchemy.engine import URL
from sqlalchemy.pool import NullPool, StaticPool

from stillface.adapters.base import BaseAdapter, ConnectionError
from stillface.shared.types import DatabaseMode

logger = logging.getLogger(__name__)


class SQLiteAdapter(BaseAdapter):
    """
    Adapter for SQLite databases.
    
    Supports file-based and in-memory SQLite databases.
    
    Config options:
        database: Path to SQLite file or ':memory:' (required)
        create: Create the file if it does not exist (default: False)
        timeout: Busy timeout in seconds (default: 30)
    
    Every connect() opens a new physical connection and disconnect() closes
    it, except for ':memory:' where one shared connection is kept so the
    data survives between sessions.
        
    Example (File):
        adapter = SQLiteAdapter({
            "database": "/path/to/stillface.db"
        })
        
    Example (In-Memory):
        adapter = SQLiteAdapter({
            "database": ":memory:"
        })
    """
    
    ENGINE = "sqlite"
    MODE = DatabaseMode.SQLITE
    
    def __init__(self, config: Dict[str, Any]):
        """Initialize SQLite adapter."""
        super().__init__(config)
        
        # Validate required config
        if "database" not in config:
            raise ConnectionError(
                "Missing required config: database",
                engine=self.ENGINE
            )
        
        self.database = str(config["database"])
        self.is_memory = self.database == ":memory:"
        self.timeout = config.get("timeout", 30.0)
        
        # Validate file exists (unless in-memory or creating new)
        if not self.is_memory and not config.get("create", False):
            if not os.path.exists(self.database):
                raise ConnectionError(
                    f"Database file not found: {self.database}",
                    engine=self.ENGINE
                )
        
        if not self.is_memory and config.get("create", False):
            Path(self.database).parent.mkdir(parents=True, exist_ok=True)
    
    def build_url(self) -> URL:
        """Build SQLite URL."""
        return URL.create("sqlite", database=self.database)
    
    def engine_options(self) -> Dict[str, Any]:
        if self.is_memory:
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {
            "poolclass": NullPool,
            "connect_args": {"timeout": self.timeout, "check_same_thread": False},
        }
    
    def describe(self) -> str:
        return self.database
