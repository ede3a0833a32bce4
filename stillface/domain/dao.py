"""
StillFace Data Access Object

Runs one store operation per public method over a single adapter and maps
rows to and from StillFace records.

CONNECTION DISCIPLINE:
----------------------
Every public operation opens the adapter's connection if it is not open,
executes, then closes it. Between lock_connection() and unlock_connection()
closing is skipped, so a batch of calls shares one physical session:

    with dao.locked_session():
        imports = dao.get_import_data(0)
        codes = dao.get_code(0)

The lock is a single layer (locking twice and unlocking once unlocks) and
is exclusive: it holds a per-DAO mutex until unlocked, and every operation
runs under the same mutex, so other threads wait instead of sharing the
session. Only the thread that locked can unlock.

FAULT CONTAINMENT:
------------------
No exception leaves this class for a store-level failure. Each method logs
one message with its own name and the underlying error text, and returns
its documented failure value:

    inserts  -> INSERT_FAILED (-1)
    selects  -> QueryOutcome with .error set
    updates  -> False
    deletes  -> False
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterator, Mapping, Optional, TypeVar

from pydantic import ValidationError

from stillface.adapters.base import AdapterResult, BaseAdapter, ConnectionError
from stillface.domain.query.builder import ALL, BuiltQuery, QueryBuilder
from stillface.domain.query.schema import TABLE_NAMES
from stillface.shared.exceptions import MappingError, StillFaceError, column_missing
from stillface.shared.types import Code, CodeData, DatabaseMode, ImportData, StillFaceRecord, Tag

logger = logging.getLogger(__name__)

INSERT_FAILED = -1

R = TypeVar("R", bound=StillFaceRecord)
T = TypeVar("T")


@dataclass(frozen=True)
class QueryOutcome(Generic[R]):
    """
    Result of a select.

    A failed query and a query that matched no rows are different outcomes:
    check .ok (or .error) before reading .records.
    """
    records: Mapping[int, R] = field(default_factory=dict)
    error: Optional[StillFaceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def empty(self) -> bool:
        """True only for a successful query that matched no rows."""
        return self.ok and not self.records


# =============================================================================
# ROW MAPPING
# =============================================================================

def _column(row: Dict[str, Any], table: str, name: str) -> Any:
    if name not in row:
        raise column_missing(table, name, list(row))
    return row[name]


def _record(model, table: str, row: Dict[str, Any], **columns: str):
    """Build model from row, mapping field name -> column name."""
    values = {field_name: _column(row, table, col) for field_name, col in columns.items()}
    try:
        return model(**values)
    except ValidationError as e:
        raise MappingError(
            f"Row from '{table}' does not form a valid {model.__name__}: {e.error_count()} error(s)",
            details={"table": table, "row": row, "errors": e.errors(include_url=False)},
        )


def map_import_row(row: Dict[str, Any]) -> ImportData:
    return _record(
        ImportData, "sf_imports", row,
        id="iid", filename="filename", year="syear", family_id="fid",
        participant_number="pid", alias="alias", date="date",
    )


def map_code_row(row: Dict[str, Any]) -> Code:
    return _record(Code, "sf_codes", row, id="cid", name="name")


def map_tag_row(row: Dict[str, Any]) -> Tag:
    return _record(Tag, "sf_tags", row, id="tid", value="value")


def map_code_data_row(row: Dict[str, Any]) -> CodeData:
    code = map_code_row(row)
    values = {
        "id": _column(row, "sf_data", "did"),
        "import_id": _column(row, "sf_data", "iid"),
        "time": _column(row, "sf_data", "time"),
        "duration": _column(row, "sf_data", "duration"),
        "comment": _column(row, "sf_data", "comment"),
    }
    try:
        return CodeData(code=code, **values)
    except ValidationError as e:
        raise MappingError(
            f"Row from 'sf_data' does not form a valid CodeData: {e.error_count()} error(s)",
            details={"table": "sf_data", "row": row, "errors": e.errors(include_url=False)},
        )


# =============================================================================
# DATA ACCESS OBJECT
# =============================================================================

class StillFaceDAO:
    """
    Data access for imports, code data, codes and tags.

    Args:
        adapter: Connection handle for the store (not necessarily connected)
        builder: Statement builder (defaults to one for the adapter's mode)
    """

    def __init__(self, adapter: BaseAdapter, builder: Optional[QueryBuilder] = None):
        self.adapter = adapter
        self.builder = builder or QueryBuilder(adapter.MODE)
        self._session_lock = threading.RLock()
        self._connection_locked = False
        self._lock_owner: Optional[int] = None

    @property
    def mode(self) -> DatabaseMode:
        return self.builder.mode

    @property
    def connection_locked(self) -> bool:
        return self._connection_locked

    # =========================================================================
    # CONNECTION LIFECYCLE
    # =========================================================================

    def open_connection(self) -> None:
        """
        Open the adapter's connection if it is not already open.

        Raises:
            ConnectionError: If the connection cannot be established
        """
        with self._session_lock:
            if not self.adapter.is_connected():
                try:
                    self.adapter.connect()
                except ConnectionError:
                    logger.error("DAO unable to open database connection")
                    raise

    def close_connection(self) -> None:
        """Close the connection unless it is locked. Never raises."""
        with self._session_lock:
            if self.adapter.is_connected() and not self._connection_locked:
                self.adapter.disconnect()

    def lock_connection(self) -> None:
        """Keep the connection open across calls until unlock_connection()."""
        if self._lock_owner == threading.get_ident():
            return
        self._session_lock.acquire()
        self._lock_owner = threading.get_ident()
        self._connection_locked = True

    def unlock_connection(self) -> None:
        """Allow the connection to be closed again. Does not close it."""
        if self._lock_owner != threading.get_ident():
            if self._connection_locked:
                logger.warning("unlock_connection ignored: connection is locked by another thread")
            return
        self._connection_locked = False
        self._lock_owner = None
        self._session_lock.release()

    @contextmanager
    def locked_session(self) -> Iterator["StillFaceDAO"]:
        """Lock, run the block over one session, then unlock and close."""
        self.lock_connection()
        try:
            yield self
        finally:
            with self._session_lock:
                self.unlock_connection()
                self.close_connection()

    def _session(self, work: Callable[[], T]) -> T:
        with self._session_lock:
            self.open_connection()
            try:
                return work()
            finally:
                self.close_connection()

    def _execute(self, query: BuiltQuery) -> AdapterResult:
        return self._session(lambda: self.adapter.execute(query.statement))

    # =========================================================================
    # OPERATION TEMPLATES
    # =========================================================================

    def _insert(self, operation: str, build: Callable[[], BuiltQuery]) -> int:
        try:
            result = self._execute(build())
        except StillFaceError as e:
            e.log(operation)
            return INSERT_FAILED
        if result.last_insert_id is None:
            logger.error(f"{operation} failed: store returned no generated key")
            return INSERT_FAILED
        return int(result.last_insert_id)

    def _select(
        self,
        operation: str,
        build: Callable[[], BuiltQuery],
        mapper: Callable[[Dict[str, Any]], R],
    ) -> QueryOutcome[R]:
        try:
            result = self._execute(build())
            records: Dict[int, R] = {}
            for row in result.rows:
                record = mapper(row)
                records[record.id] = record
        except StillFaceError as e:
            e.log(operation)
            return QueryOutcome(error=e)
        return QueryOutcome(records=records)

    def _modify(self, operation: str, build: Callable[[], BuiltQuery], record: StillFaceRecord) -> bool:
        try:
            result = self._execute(build())
        except StillFaceError as e:
            e.log(operation)
            return False
        if result.affected_rows != 1:
            logger.error(
                f"{operation} failed: expected 1 row with id {record.id}, "
                f"store matched {result.affected_rows}"
            )
            return False
        return True

    def _run_ddl(self, operation: str, build: Callable[[], list]) -> bool:
        # Each statement commits on its own; a failure part-way leaves
        # the earlier tables in place.
        try:
            queries = build()

            def work():
                for query in queries:
                    self.adapter.execute(query.sql)

            self._session(work)
        except StillFaceError as e:
            e.log(operation)
            return False
        return True

    # =========================================================================
    # IMPORTS
    # =========================================================================

    def insert_import_data(self, data: ImportData) -> int:
        """Insert an import. Returns its generated id, or INSERT_FAILED."""
        return self._insert("insert_import_data", lambda: self.builder.build_insert_import(data))

    def get_import_data(self, import_id: int = ALL) -> QueryOutcome[ImportData]:
        """Imports keyed by id; 0 returns every import."""
        return self._select(
            "get_import_data",
            lambda: self.builder.build_select_import_data(import_id),
            map_import_row,
        )

    def update_import_data(self, data: ImportData) -> bool:
        return self._modify("update_import_data", lambda: self.builder.build_update_import(data), data)

    # =========================================================================
    # CODE DATA
    # =========================================================================

    def insert_code_data(self, data: CodeData) -> int:
        """Insert a coded interval. data.code must be a stored code."""
        return self._insert("insert_code_data", lambda: self.builder.build_insert_code_data(data))

    def get_code_data_from_import(self, import_id: int = ALL) -> QueryOutcome[CodeData]:
        """Code data of one import keyed by id; 0 returns all code data."""
        return self._select(
            "get_code_data_from_import",
            lambda: self.builder.build_select_code_data_from_import(import_id),
            map_code_data_row,
        )

    def get_code_data_from_family_id(self, family_id: int = ALL) -> QueryOutcome[CodeData]:
        """Code data of every import sharing a family id; 0 returns all."""
        return self._select(
            "get_code_data_from_family_id",
            lambda: self.builder.build_select_code_data_from_family_id(family_id),
            map_code_data_row,
        )

    def update_code_data(self, data: CodeData) -> bool:
        return self._modify("update_code_data", lambda: self.builder.build_update_code_data(data), data)

    def delete_code_data(self, data: CodeData) -> bool:
        return self._modify("delete_code_data", lambda: self.builder.build_delete_code_data(data), data)

    # =========================================================================
    # CODES
    # =========================================================================

    def insert_new_code(self, code: Code) -> int:
        return self._insert("insert_new_code", lambda: self.builder.build_insert_code(code))

    def get_code(self, code_id: int = ALL) -> QueryOutcome[Code]:
        return self._select("get_code", lambda: self.builder.build_select_code(code_id), map_code_row)

    def update_existing_code(self, code: Code) -> bool:
        return self._modify("update_existing_code", lambda: self.builder.build_update_code(code), code)

    def delete_existing_code(self, code: Code) -> bool:
        return self._modify("delete_existing_code", lambda: self.builder.build_delete_code(code), code)

    # =========================================================================
    # TAGS
    # =========================================================================

    def insert_new_tag(self, tag: Tag) -> int:
        return self._insert("insert_new_tag", lambda: self.builder.build_insert_tag(tag))

    def get_tag(self, tag_id: int = ALL) -> QueryOutcome[Tag]:
        return self._select("get_tag", lambda: self.builder.build_select_tag(tag_id), map_tag_row)

    def update_existing_tag(self, tag: Tag) -> bool:
        return self._modify("update_existing_tag", lambda: self.builder.build_update_tag(tag), tag)

    def delete_existing_tag(self, tag: Tag) -> bool:
        return self._modify("delete_existing_tag", lambda: self.builder.build_delete_tag(tag), tag)

    # =========================================================================
    # SCHEMA
    # =========================================================================

    def create_tables(self, mode: Optional[DatabaseMode] = None) -> bool:
        """
        Create the four tables (imports, data, codes, tags) in that order.

        Args:
            mode: Dialect for the DDL (defaults to the adapter's mode)

        Returns:
            True if every statement succeeded. The first failure stops the
            sequence; tables created before it are not rolled back.
        """
        return self._run_ddl("create_tables", lambda: [
            self.builder.build_create_imports_table(mode),
            self.builder.build_create_data_table(mode),
            self.builder.build_create_codes_table(mode),
            self.builder.build_create_tags_table(mode),
        ])

    def drop_tables(self) -> bool:
        """Drop the four tables in the same order as create_tables()."""
        return self._run_ddl("drop_tables", lambda: [
            self.builder.build_drop_imports_table(),
            self.builder.build_drop_data_table(),
            self.builder.build_drop_codes_table(),
            self.builder.build_drop_tags_table(),
        ])

    def is_database_initialized(self) -> bool:
        """True only if a row count succeeds on all four tables."""
        try:
            queries = [self.builder.build_count(name) for name in TABLE_NAMES]

            def work():
                for query in queries:
                    self.adapter.execute(query.statement)

            self._session(work)
        except StillFaceError as e:
            e.log("is_database_initialized", level="warning")
            return False
        return True
