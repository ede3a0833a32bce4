"""
Shared Exceptions

Application-wide exception classes.
"""

from stillface.shared.exceptions.errors import (
    StillFaceError,
    ErrorCode,
    MappingError,
    RecordValidationError,
    QueryBuildError,
    ConfigurationError,
    record_id_missing,
    column_missing,
    mode_unsupported,
)

__all__ = [
    "StillFaceError",
    "ErrorCode",
    "MappingError",
    "RecordValidationError",
    "QueryBuildError",
    "ConfigurationError",
    "record_id_missing",
    "column_missing",
    "mode_unsupported",
]
