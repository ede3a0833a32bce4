"""
Base Adapter Interface for StillFace

Every supported backend is reached through an adapter so the data access
object never touches a driver directly.

DESIGN PRINCIPLES:
-----------------
1. One adapter instance owns at most one live connection
2. Statements are SQLAlchemy Core constructs (or raw SQL text)
3. Results returned as list of dicts (engine-agnostic)
4. Errors wrapped in AdapterError for consistent handling
5. Connections run in autocommit: every statement commits on its own
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import Insert, create_engine, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from stillface.shared.exceptions import ErrorCode, StillFaceError
from stillface.shared.types import DatabaseMode

logger = logging.getLogger(__name__)


class AdapterError(StillFaceError):
    """Base exception for adapter errors."""
    
    def __init__(
        self,
        message: str,
        engine: str,
        original_error: Optional[Exception] = None,
        code: Optional[ErrorCode] = None,
    ):
        super().__init__(message, code=code, details={"engine": engine})
        self.engine = engine
        self.original_error = original_error


class ConnectionError(AdapterError):
    """Failed to connect to database."""
    default_code = ErrorCode.ERR_CONNECTION_FAILED


class QueryError(AdapterError):
    """Statement execution failed."""
    default_code = ErrorCode.ERR_STATEMENT_FAILED


@dataclass
class AdapterResult:
    """
    Standardized result from statement execution.
    
    Attributes:
        rows: List of result rows as dicts (empty for DML/DDL)
        row_count: Number of rows returned
        affected_rows: Rows matched by UPDATE/DELETE (-1 if unknown)
        last_insert_id: Store-generated key of an INSERT, else None
    """
    rows: List[Dict[str, Any]]
    row_count: int = 0
    affected_rows: int = -1
    last_insert_id: Optional[int] = None

    def __post_init__(self):
        self.row_count = len(self.rows)


class BaseAdapter(ABC):
    """
    Abstract base class for database adapters.
    
    Each adapter must implement:
    - build_url(): SQLAlchemy URL for the backend
    
    and may override:
    - engine_options(): extra create_engine() keyword arguments
    
    Usage:
        adapter = SQLiteAdapter({"database": "stillface.db", "create": True})
        adapter.connect()
        
        result = adapter.execute(select(codes).where(codes.c.cid == 1))
        
        adapter.disconnect()
    """
    
    # Engine identifier (e.g., "sqlite", "mysql", "postgres")
    ENGINE: str = "base"
    
    # Schema dialect this adapter speaks
    MODE: DatabaseMode = DatabaseMode.SQLITE
    
    def __init__(self, config: Dict[str, Any]):
        """
        Initialize adapter with connection configuration.
        
        Args:
            config: Database-specific configuration dict
                    (host, port, user, password, database, etc.)
        """
        self.config = config
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._connected = False

    @abstractmethod
    def build_url(self) -> URL:
        """Build the SQLAlchemy connection URL."""
        pass
    
    def engine_options(self) -> Dict[str, Any]:
        """Extra keyword arguments for create_engine()."""
        return {}
    
    def describe(self) -> str:
        """Connection target for log messages (password hidden)."""
        return self.build_url().render_as_string(hide_password=True)
    
    @property
    def engine(self) -> Engine:
        """SQLAlchemy engine, created on first use."""
        if self._engine is None:
            self._engine = create_engine(
                self.build_url(),
                isolation_level="AUTOCOMMIT",
                **self.engine_options()
            )
        return self._engine
    
    def connect(self) -> None:
        """
        Establish connection to database.
        
        Raises:
            ConnectionError: If connection fails
        """
        try:
            self._connection = self.engine.connect()
            self._connected = True
            logger.info(f"{self.ENGINE} connected: {self.describe()}")
        except SQLAlchemyError as e:
            self._connection = None
            self._connected = False
            raise ConnectionError(
                f"Failed to connect to {self.ENGINE}: {e}",
                engine=self.ENGINE,
                original_error=e
            )
    
    def disconnect(self) -> None:
        """
        Close database connection.
        
        Safe to call even if not connected; never raises.
        """
        try:
            if self._connection is not None:
                self._connection.close()
        except SQLAlchemyError as e:
            logger.warning(f"Error closing {self.ENGINE} connection: {e}")
        finally:
            self._connection = None
            self._connected = False
    
    def execute(
        self,
        statement: Union[Executable, str],
        params: Optional[Dict[str, Any]] = None
    ) -> AdapterResult:
        """
        Execute a statement and return results.
        
        Args:
            statement: SQLAlchemy Core statement, DDL element or SQL text
            params: Bound parameter values for text statements
        
        Returns:
            AdapterResult with rows, affected rows and generated key

        Raises:
            QueryError: If not connected or execution fails
        """
        if not self._connected or self._connection is None:
            raise QueryError(
                f"Not connected to {self.ENGINE}",
                engine=self.ENGINE
            )

        if isinstance(statement, str):
            statement = text(statement)
        
        try:
            if params:
                result = self._connection.execute(statement, params)
            else:
                result = self._connection.execute(statement)
            
            rows: List[Dict[str, Any]] = []
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings()]

            last_insert_id = None
            if isinstance(statement, Insert) and result.inserted_primary_key:
                last_insert_id = result.inserted_primary_key[0]

            return AdapterResult(
                rows=rows,
                affected_rows=result.rowcount,
                last_insert_id=last_insert_id,
            )
            
        except SQLAlchemyError as e:
            raise QueryError(
                f"{self.ENGINE} statement failed: {e}",
                engine=self.ENGINE,
                original_error=e
            )
    
    def is_connected(self) -> bool:
        """Check if adapter has an active connection."""
        return self._connected

    def dispose(self) -> None:
        """Disconnect and release the engine's pool."""
        self.disconnect()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
    
    def __enter__(self):
        """Context manager support."""
        self.connect()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.disconnect()
        return False
