"""
PostgreSQL Adapter for StillFace

Client/server backend, an alternative to MySQL for shared lab databases.

Requirements:
    pip install psycopg2-binary
"""

import logging
from typing import Any, Dict

from sqlalchemy.engine import URL
from sqlalchemy.pool import NullPool

try:
    import psycopg2
    PSYCOPG2_AVAILABLE = True
except ImportError:
    PSYCOPG2_AVAILABLE = False
    psycopg2 = None

from stillface.adapters.base import BaseAdapter, ConnectionError
from stillface.shared.exceptions import ErrorCode
from stillface.shared.types import DatabaseMode

logger = logging.getLogger(__name__)


class PostgresAdapter(BaseAdapter):
    """
    Adapter for PostgreSQL database.
    
    Config options:
        host: Database host (required)
        port: Database port (default: 5432)
        database: Database name (required)
        user: Username (required)
        password: Password (required)
        sslmode: SSL mode (default: prefer)
        connect_timeout: Connection timeout in seconds (default: 10)
    
    Generated keys come back through INSERT ... RETURNING, which
    SQLAlchemy adds on this dialect.
    """
    
    ENGINE = "postgres"
    MODE = DatabaseMode.POSTGRES
    
    def __init__(self, config: Dict[str, Any]):
        """Initialize PostgreSQL adapter."""
        super().__init__(config)
        
        if not PSYCOPG2_AVAILABLE:
            raise ConnectionError(
                "psycopg2 not installed. Run: pip install psycopg2-binary",
                engine=self.ENGINE,
                code=ErrorCode.ERR_DRIVER_MISSING
            )
        
        # Validate required config
        required = ["host", "database", "user", "password"]
        missing = [k for k in required if k not in config]
        if missing:
            raise ConnectionError(
                f"Missing required config: {', '.join(missing)}",
                engine=self.ENGINE
            )
        
        self.host = config["host"]
        self.port = config.get("port", 5432)
        self.database = config["database"]
        self.user = config["user"]
        self.password = config["password"]
        self.sslmode = config.get("sslmode", "prefer")
        self.connect_timeout = config.get("connect_timeout", 10)
    
    def build_url(self) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )
    
    def engine_options(self) -> Dict[str, Any]:
        return {
            "poolclass": NullPool,
            "connect_args": {
                "connect_timeout": self.connect_timeout,
                "sslmode": self.sslmode,
            },
        }
