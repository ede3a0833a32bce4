"""
Shared Types

Domain records and the database mode discriminator.
"""

from stillface.shared.types.models import (
    DatabaseMode,
    StillFaceRecord,
    ImportData,
    Code,
    Tag,
    CodeData,
)

__all__ = [
    "DatabaseMode",
    "StillFaceRecord",
    "ImportData",
    "Code",
    "Tag",
    "CodeData",
]
