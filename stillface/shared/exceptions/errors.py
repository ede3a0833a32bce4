"""
StillFace - Structured Error Handling

Every failure inside the data access layer is expressed as a StillFaceError
carrying a unique code, so a log line can be traced back to the kind of
failure that produced it.

ERROR KINDS:
------------
1. Connection  - a store session could not be opened
2. Statement   - SQL was rejected or violated a constraint
3. Mapping     - a result row did not have the expected shape
4. Validation  - a record was unusable for the requested operation
5. Build       - a statement could not be constructed
6. Config      - settings do not describe a usable store
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCode(str, Enum):
    """Unique error codes for every error type."""
    
    # Store (1xxx)
    ERR_CONNECTION_FAILED = "ERR_1001"
    ERR_STATEMENT_FAILED = "ERR_1002"
    ERR_DRIVER_MISSING = "ERR_1003"
    
    # Rows and records (2xxx)
    ERR_MAPPING_FAILED = "ERR_2001"
    ERR_RECORD_INVALID = "ERR_2002"
    
    # Query construction (3xxx)
    ERR_QUERY_BUILD = "ERR_3001"
    ERR_MODE_UNSUPPORTED = "ERR_3002"
    
    # Configuration (4xxx)
    ERR_CONFIG_INVALID = "ERR_4001"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class StillFaceError(Exception):
    """
    Structured error with the context needed for debugging.
    
    Attributes:
        message: Human-readable error message
        code: Unique error code for searching logs
        details: Additional context (dict)
        suggestion: How to fix the issue
    """
    
    default_code: ErrorCode = ErrorCode.ERR_STATEMENT_FAILED
    
    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.suggestion = suggestion
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict (for CLI JSON output)."""
        error_dict: Dict[str, Any] = {
            "code": self.code.value,
            "kind": self.code.name,
            "message": self.message,
        }
        if self.details:
            error_dict["details"] = self.details
        if self.suggestion:
            error_dict["suggestion"] = self.suggestion
        return {"error": error_dict}
    
    def log(self, operation: str, level: str = "error") -> None:
        """Log the error with the failing operation's name."""
        log_msg = f"{operation} failed: [{self.code.value}] {self.message}"
        if self.details:
            log_msg += f" | details={self.details}"
        getattr(logger, level)(log_msg)


class MappingError(StillFaceError):
    """A result row is missing a column or holds an unusable value."""
    default_code = ErrorCode.ERR_MAPPING_FAILED


class RecordValidationError(StillFaceError):
    """A record cannot be used for the requested statement."""
    default_code = ErrorCode.ERR_RECORD_INVALID


class QueryBuildError(StillFaceError):
    """A statement could not be constructed."""
    default_code = ErrorCode.ERR_QUERY_BUILD


class ConfigurationError(StillFaceError):
    """Settings do not describe a usable store."""
    default_code = ErrorCode.ERR_CONFIG_INVALID


# =============================================================================
# ERROR FACTORY FUNCTIONS
# =============================================================================

def record_id_missing(entity: str, operation: str, record_id: Optional[int]) -> RecordValidationError:
    """Create the error raised when update/delete is asked for an unsaved record."""
    return RecordValidationError(
        f"Cannot {operation} {entity} without a stored id (got {record_id!r})",
        details={"entity": entity, "operation": operation, "id": record_id},
        suggestion=f"Insert the {entity} first and use the id returned by the store",
    )


def column_missing(table: str, column: str, available: Optional[list] = None) -> MappingError:
    """Create the error raised when a result row lacks an expected column."""
    details: Dict[str, Any] = {"table": table, "column": column}
    if available is not None:
        details["available_columns"] = sorted(available)[:10]
    return MappingError(
        f"Result row from '{table}' has no column '{column}'",
        details=details,
        suggestion="Check that the schema was created by this version (stillface db init)",
    )


def mode_unsupported(mode: Any, supported: list) -> QueryBuildError:
    """Create the error raised for an unknown database mode."""
    return QueryBuildError(
        f"Unsupported database mode: {mode}",
        code=ErrorCode.ERR_MODE_UNSUPPORTED,
        details={"mode": str(mode), "supported": supported},
    )
