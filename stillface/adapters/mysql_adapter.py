"""
MySQL Adapter for StillFace

MySQL is the client/server backend for labs that share one coding
database between several stations.

Requirements:
    pip install mysql-connector-python
"""

import logging
from typing import Any, Dict

from sqlalchemy.engine import URL
from sqlalchemy.pool import NullPool

try:
    import mysql.connector
    MYSQL_AVAILABLE = True
except ImportError:
    MYSQL_AVAILABLE = False
    mysql = None

from stillface.adapters.base import BaseAdapter, ConnectionError
from stillface.shared.exceptions import ErrorCode
from stillface.shared.types import DatabaseMode

logger = logging.getLogger(__name__)


class MySQLAdapter(BaseAdapter):
    """
    Adapter for MySQL / MariaDB.
    
    Config options:
        host: MySQL server host (required)
        port: MySQL port (default: 3306)
        database: Database name (required)
        user: Username (required)
        password: Password (required)
        charset: Character set (default: utf8mb4)
        connect_timeout: Connection timeout in seconds (default: 10)
        
    Example:
        adapter = MySQLAdapter({
            "host": "mysql.example.com",
            "database": "stillface",
            "user": "coder",
            "password": "secret"
        })
    """
    
    ENGINE = "mysql"
    MODE = DatabaseMode.MYSQL
    
    def __init__(self, config: Dict[str, Any]):
        """Initialize MySQL adapter."""
        super().__init__(config)
        
        if not MYSQL_AVAILABLE:
            raise ConnectionError(
                "mysql-connector-python not installed. "
                "Run: pip install mysql-connector-python",
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
        self.port = config.get("port", 3306)
        self.database = config["database"]
        self.user = config["user"]
        self.password = config["password"]
        self.charset = config.get("charset", "utf8mb4")
        self.connect_timeout = config.get("connect_timeout", 10)
    
    def build_url(self) -> URL:
        return URL.create(
            "mysql+mysqlconnector",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"charset": self.charset},
        )
    
    def engine_options(self) -> Dict[str, Any]:
        return {
            "poolclass": NullPool,
            "connect_args": {"connection_timeout": self.connect_timeout},
        }
