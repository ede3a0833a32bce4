import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# DATABASE MODES
# =============================================================================
# The closed set of relational backends the schema can be created on.

class DatabaseMode(str, Enum):
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @classmethod
    def parse(cls, value) -> "DatabaseMode":
        """Resolve a mode from its name or a common alias (e.g. "postgresql")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _MODE_ALIASES.get(key, key)
        return cls(key)


_MODE_ALIASES = {
    "sqlite3": "sqlite",
    "mariadb": "mysql",
    "postgresql": "postgres",
    "pg": "postgres",
}


# =============================================================================
# RECORDS
# =============================================================================
# Records are immutable; change one with record.model_copy(update={...}).
# id is None until the store assigns one, so a placeholder can never
# collide with a stored id (0 is a legal stored id for the sentinel rows).

class StillFaceRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(default=None, ge=0)

    @property
    def is_stored(self) -> bool:
        return self.id is not None


class ImportData(StillFaceRecord):
    """One recorded observation session."""
    filename: str
    year: int
    family_id: int = Field(ge=0)
    participant_number: int = Field(ge=0)
    alias: str = ""
    date: Optional[datetime.date] = None


class Code(StillFaceRecord):
    """A reusable categorical label (e.g. a behavior type)."""
    name: str

    def __str__(self) -> str:
        return self.name


class Tag(StillFaceRecord):
    """A reusable free-form annotation."""
    value: str

    def __str__(self) -> str:
        return self.value


class CodeData(StillFaceRecord):
    """
    One application of a Code to the interval [time, time + duration]
    of an Import.

    The code is embedded by value and resolved by a join at read time, so
    it reflects sf_codes as of the query that produced this record.
    """
    import_id: int = Field(ge=0)
    time: int = Field(ge=0)
    duration: int = Field(ge=0)
    code: Code
    comment: str = ""

    @property
    def end(self) -> int:
        return self.time + self.duration
