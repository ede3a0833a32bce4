"""
SQL Builder using SQLAlchemy Core

Provides dialect-aware statement construction for the StillFace DAO.
Every value taken from a record is a bound parameter, so free text such as
filenames, aliases, comments, code names and tag values can never change
the structure of a statement.

Usage:
    builder = QueryBuilder(mode="sqlite")
    query = builder.build_insert_code(Code(name="Gaze aversion"))
    query.sql      # INSERT INTO sf_codes (name) VALUES (?)
    query.params   # {"name": "Gaze aversion"}
    adapter.execute(query.statement)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.schema import CreateTable, DropTable, Table
from sqlalchemy.sql.base import Executable

from stillface.domain.query.schema import (
    codes_table,
    data_table,
    imports_table,
    metadata,
    tags_table,
)
from stillface.shared.exceptions import (
    QueryBuildError,
    RecordValidationError,
    mode_unsupported,
    record_id_missing,
)
from stillface.shared.types import Code, CodeData, DatabaseMode, ImportData, StillFaceRecord, Tag

logger = logging.getLogger(__name__)


# Dialect used to render SQL text for each mode
DIALECT_MAP = {
    DatabaseMode.SQLITE: sqlite.dialect,
    DatabaseMode.MYSQL: mysql.dialect,
    DatabaseMode.POSTGRES: postgresql.dialect,
}

# Filter id meaning "all rows"
ALL = 0


def dialect_for(mode: Union[DatabaseMode, str]) -> Dialect:
    """Get a SQLAlchemy dialect instance for a mode."""
    try:
        return DIALECT_MAP[DatabaseMode.parse(mode)]()
    except (KeyError, ValueError):
        raise mode_unsupported(mode, [m.value for m in DIALECT_MAP])


@dataclass(frozen=True)
class BuiltQuery:
    """
    A statement plus the mode it was built for.

    Attributes:
        statement: SQLAlchemy Core statement or DDL element (executable)
        mode: Dialect used when rendering sql
    """
    statement: Executable
    mode: DatabaseMode

    @property
    def sql(self) -> str:
        """SQL text in the mode's dialect, with placeholders."""
        return str(self.statement.compile(dialect=dialect_for(self.mode)))

    @property
    def params(self) -> Dict[str, Any]:
        """Bound parameter values, keyed by placeholder name."""
        return dict(self.statement.compile(dialect=dialect_for(self.mode)).params)


class QueryBuilder:
    """
    Builds every statement the DAO executes.

    DML statements are the same on every backend; the mode only decides how
    they are rendered. DDL is mode-specific: identity columns come out as
    AUTOINCREMENT (SQLite), AUTO_INCREMENT (MySQL) or SERIAL (PostgreSQL).
    """

    def __init__(self, mode: Union[DatabaseMode, str] = DatabaseMode.SQLITE):
        try:
            self.mode = DatabaseMode.parse(mode)
        except ValueError:
            raise mode_unsupported(mode, [m.value for m in DIALECT_MAP])

    def _built(self, statement: Executable, mode: Optional[DatabaseMode] = None) -> BuiltQuery:
        return BuiltQuery(statement=statement, mode=mode or self.mode)

    # =========================================================================
    # IMPORTS
    # =========================================================================

    def build_insert_import(self, data: ImportData) -> BuiltQuery:
        stmt = insert(imports_table).values(
            filename=data.filename,
            syear=data.year,
            fid=data.family_id,
            pid=data.participant_number,
            alias=data.alias,
            date=data.date,
        )
        return self._built(stmt)

    def build_select_import_data(self, import_id: int = ALL) -> BuiltQuery:
        stmt = select(imports_table).order_by(imports_table.c.iid)
        if _filter_id(import_id, "import"):
            stmt = stmt.where(imports_table.c.iid == import_id)
        return self._built(stmt)

    def build_update_import(self, data: ImportData) -> BuiltQuery:
        record_id = _require_id(data, "import", "update")
        stmt = (
            update(imports_table)
            .where(imports_table.c.iid == record_id)
            .values(
                filename=data.filename,
                syear=data.year,
                fid=data.family_id,
                pid=data.participant_number,
                alias=data.alias,
                date=data.date,
            )
        )
        return self._built(stmt)

    # =========================================================================
    # CODE DATA
    # =========================================================================

    def _select_code_data(self):
        return select(
            data_table.c.did,
            data_table.c.iid,
            data_table.c.time,
            data_table.c.duration,
            data_table.c.cid,
            data_table.c.comment,
            codes_table.c.name,
        )

    def build_insert_code_data(self, data: CodeData) -> BuiltQuery:
        code_id = _require_id(data.code, "code", "reference")
        stmt = insert(data_table).values(
            iid=data.import_id,
            time=data.time,
            duration=data.duration,
            cid=code_id,
            comment=data.comment,
        )
        return self._built(stmt)

    def build_select_code_data_from_import(self, import_id: int = ALL) -> BuiltQuery:
        """Code data joined to its code; 0 returns every import's data."""
        stmt = (
            self._select_code_data()
            .select_from(data_table.join(codes_table, data_table.c.cid == codes_table.c.cid))
            .order_by(data_table.c.did)
        )
        if _filter_id(import_id, "import"):
            stmt = stmt.where(data_table.c.iid == import_id)
        return self._built(stmt)

    def build_select_code_data_from_family_id(self, family_id: int = ALL) -> BuiltQuery:
        """Code data for every import of one family; 0 returns all data."""
        joined = data_table.join(
            codes_table, data_table.c.cid == codes_table.c.cid
        ).join(
            imports_table, data_table.c.iid == imports_table.c.iid
        )
        stmt = self._select_code_data().select_from(joined).order_by(data_table.c.did)
        if _filter_id(family_id, "family"):
            stmt = stmt.where(imports_table.c.fid == family_id)
        return self._built(stmt)

    def build_update_code_data(self, data: CodeData) -> BuiltQuery:
        record_id = _require_id(data, "code data", "update")
        code_id = _require_id(data.code, "code", "reference")
        stmt = (
            update(data_table)
            .where(data_table.c.did == record_id)
            .values(
                iid=data.import_id,
                time=data.time,
                duration=data.duration,
                cid=code_id,
                comment=data.comment,
            )
        )
        return self._built(stmt)

    def build_delete_code_data(self, data: CodeData) -> BuiltQuery:
        record_id = _require_id(data, "code data", "delete")
        return self._built(delete(data_table).where(data_table.c.did == record_id))

    # =========================================================================
    # CODES
    # =========================================================================

    def build_insert_code(self, code: Code) -> BuiltQuery:
        return self._built(insert(codes_table).values(name=code.name))

    def build_select_code(self, code_id: int = ALL) -> BuiltQuery:
        stmt = select(codes_table).order_by(codes_table.c.cid)
        if _filter_id(code_id, "code"):
            stmt = stmt.where(codes_table.c.cid == code_id)
        return self._built(stmt)

    def build_update_code(self, code: Code) -> BuiltQuery:
        record_id = _require_id(code, "code", "update")
        stmt = update(codes_table).where(codes_table.c.cid == record_id).values(name=code.name)
        return self._built(stmt)

    def build_delete_code(self, code: Code) -> BuiltQuery:
        record_id = _require_id(code, "code", "delete")
        return self._built(delete(codes_table).where(codes_table.c.cid == record_id))

    # =========================================================================
    # TAGS
    # =========================================================================

    def build_insert_tag(self, tag: Tag) -> BuiltQuery:
        return self._built(insert(tags_table).values(value=tag.value))

    def build_select_tag(self, tag_id: int = ALL) -> BuiltQuery:
        stmt = select(tags_table).order_by(tags_table.c.tid)
        if _filter_id(tag_id, "tag"):
            stmt = stmt.where(tags_table.c.tid == tag_id)
        return self._built(stmt)

    def build_update_tag(self, tag: Tag) -> BuiltQuery:
        record_id = _require_id(tag, "tag", "update")
        stmt = update(tags_table).where(tags_table.c.tid == record_id).values(value=tag.value)
        return self._built(stmt)

    def build_delete_tag(self, tag: Tag) -> BuiltQuery:
        record_id = _require_id(tag, "tag", "delete")
        return self._built(delete(tags_table).where(tags_table.c.tid == record_id))

    # =========================================================================
    # DDL
    # =========================================================================

    def _create(self, table: Table, mode: Optional[Union[DatabaseMode, str]]) -> BuiltQuery:
        target = self.mode if mode is None else QueryBuilder(mode).mode
        return self._built(CreateTable(table, if_not_exists=True), target)

    def build_create_imports_table(self, mode: Optional[Union[DatabaseMode, str]] = None) -> BuiltQuery:
        return self._create(imports_table, mode)

    def build_create_data_table(self, mode: Optional[Union[DatabaseMode, str]] = None) -> BuiltQuery:
        return self._create(data_table, mode)

    def build_create_codes_table(self, mode: Optional[Union[DatabaseMode, str]] = None) -> BuiltQuery:
        return self._create(codes_table, mode)

    def build_create_tags_table(self, mode: Optional[Union[DatabaseMode, str]] = None) -> BuiltQuery:
        return self._create(tags_table, mode)

    def build_drop_imports_table(self) -> BuiltQuery:
        return self._built(DropTable(imports_table, if_exists=True))

    def build_drop_data_table(self) -> BuiltQuery:
        return self._built(DropTable(data_table, if_exists=True))

    def build_drop_codes_table(self) -> BuiltQuery:
        return self._built(DropTable(codes_table, if_exists=True))

    def build_drop_tags_table(self) -> BuiltQuery:
        return self._built(DropTable(tags_table, if_exists=True))

    def build_count(self, table_name: str) -> BuiltQuery:
        """Row-count query used to check that a table exists."""
        table = metadata.tables.get(table_name)
        if table is None:
            raise QueryBuildError(
                f"Unknown table: {table_name}",
                details={"table": table_name, "available": sorted(metadata.tables)},
            )
        return self._built(select(func.count()).select_from(table))


def _filter_id(value: int, entity: str) -> bool:
    """True if value selects one row, False if it means "all"."""
    if value is None or value == ALL:
        return False
    if value < 0:
        raise RecordValidationError(
            f"Invalid {entity} id filter: {value}",
            details={"entity": entity, "id": value},
            suggestion="Use 0 to select all rows or a stored id",
        )
    return True


def _require_id(record: StillFaceRecord, entity: str, operation: str) -> int:
    if record.id is None or record.id < 0:
        raise record_id_missing(entity, operation, record.id)
    return record.id
