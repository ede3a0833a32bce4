"""
In-Memory Model Cache for StillFace

Mirrors the four store collections (imports, code data, codes, tags) so the
coding GUI can look records up without a round trip to the database.

ARCHITECTURE:
-------------
┌─────────────┐     ┌─────────────┐     ┌─────────────┐
│     GUI     │────▶│ StillFace   │────▶│    DAO      │────▶ store
│             │◀────│   Model     │◀────│             │
└─────────────┘     └─────────────┘     └─────────────┘

KEY DESIGN PRINCIPLES:
----------------------
1. Cache is a MIRROR, not a source of truth: all writes go through the DAO
2. Replace-or-nothing: a failed read never touches the published data
3. Readers never lock: everything a reader can see hangs off one immutable
   ModelState, and a refresh swaps that single reference
4. Collections refresh independently; code data embeds codes by value and
   is not refreshed when codes are

LIFECYCLE:
----------
    model = StillFaceModel()
    model.initialize(dao)        # uninitialized -> initialized, once
    model.get_code(3)
    model.refresh_codes()
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, Tuple, TypeVar

from pydantic import ValidationError

from stillface.core.config import get_settings
from stillface.domain.dao import QueryOutcome, StillFaceDAO
from stillface.domain.query.builder import ALL
from stillface.shared.types import Code, CodeData, ImportData, StillFaceRecord, Tag

logger = logging.getLogger(__name__)

# Placeholder row excluded from the sorted code/tag lists
SENTINEL_ID = 0

IMPORTS = "imports"
CODE_DATA = "code_data"
CODES = "codes"
TAGS = "tags"
COLLECTIONS = (IMPORTS, CODE_DATA, CODES, TAGS)

R = TypeVar("R", bound=StillFaceRecord)

# Label each sorted list is ordered by
SORT_KEYS: Dict[str, Callable[[Any], str]] = {
    CODES: lambda code: code.name,
    TAGS: lambda tag: tag.value,
}


# =============================================================================
# SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class CollectionSnapshot(Generic[R]):
    """
    One published, read-only version of a collection.

    by_label is the sorted list derived from the same records (sentinel
    excluded); it is empty for collections without a label order.
    """
    by_id: Mapping[int, R] = field(default_factory=lambda: MappingProxyType({}))
    ordered: Tuple[R, ...] = ()
    by_label: Tuple[R, ...] = ()

    @classmethod
    def of(
        cls,
        records: Mapping[int, R],
        sort_key: Optional[Callable[[R], str]] = None,
    ) -> "CollectionSnapshot[R]":
        items = dict(sorted(records.items()))
        ordered = tuple(items.values())
        by_label: Tuple[R, ...] = ()
        if sort_key is not None:
            by_label = tuple(sorted((r for r in ordered if r.id != SENTINEL_ID), key=sort_key))
        return cls(by_id=MappingProxyType(items), ordered=ordered, by_label=by_label)

    def get(self, record_id: int) -> Optional[R]:
        return self.by_id.get(record_id)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.by_id

    def __iter__(self) -> Iterator[R]:
        return iter(self.ordered)

    def __len__(self) -> int:
        return len(self.ordered)


@dataclass(frozen=True)
class ModelState:
    """Everything a reader can see, published as one reference."""
    imports: CollectionSnapshot[ImportData] = field(default_factory=CollectionSnapshot)
    code_data: CollectionSnapshot[CodeData] = field(default_factory=CollectionSnapshot)
    codes: CollectionSnapshot[Code] = field(default_factory=CollectionSnapshot)
    tags: CollectionSnapshot[Tag] = field(default_factory=CollectionSnapshot)


def _snapshot(name: str, records: Mapping[int, StillFaceRecord]) -> CollectionSnapshot:
    return CollectionSnapshot.of(records, SORT_KEYS.get(name))


# =============================================================================
# MODEL
# =============================================================================

class StillFaceModel:
    """
    Cache of every StillFace collection, fed by a StillFaceDAO.

    Constructed explicitly by the application (see stillface.bootstrap) and
    initialized once. Consumers read through the accessors below; changes go
    through the DAO followed by the matching refresh_*() call.

    A reader that needs two views to agree (e.g. codes and code_list) should
    take the snapshot once: ``snapshot = model.codes`` then use
    ``snapshot.by_id`` and ``snapshot.by_label``.
    """

    def __init__(self):
        self._dao: Optional[StillFaceDAO] = None
        self._cached = False
        self._initialized = False
        self._init_lock = threading.Lock()
        # Serializes read+publish of one collection
        self._locks: Dict[str, threading.Lock] = {name: threading.Lock() for name in COLLECTIONS}
        # Serializes the state swap itself
        self._state_lock = threading.Lock()
        self._state = ModelState()
        self._subscribers: List[Callable[[str], None]] = []

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def initialize(self, dao: StillFaceDAO, cache_code_data: Optional[bool] = None) -> bool:
        """
        Populate every collection from the DAO over one locked session.

        Args:
            dao: Data access object to read from (and refresh from later)
            cache_code_data: Serve code data from memory. Defaults to the
                STILLFACE_MODEL_CACHE setting. When False, the code data
                collection stays empty and consumers query the DAO for it.

        Returns:
            True on success. On any failed read (or unreadable settings)
            nothing is published and the model stays uninitialized.
        """
        with self._init_lock:
            if self._initialized:
                logger.warning("Model is already initialized; use refresh_all() instead")
                return False

            if cache_code_data is None:
                try:
                    cache_code_data = get_settings().model_cache
                except ValidationError as e:
                    logger.error(f"Error initializing model: invalid settings ({e.error_count()} error(s)): {e}")
                    return False

            with dao.locked_session():
                reads: Dict[str, QueryOutcome] = {
                    IMPORTS: dao.get_import_data(ALL),
                    CODES: dao.get_code(ALL),
                    TAGS: dao.get_tag(ALL),
                    CODE_DATA: dao.get_code_data_from_import(ALL),
                }

            failed = [name for name, outcome in reads.items() if not outcome.ok]
            if failed:
                logger.error(f"Error initializing model: could not read {', '.join(failed)}")
                return False

            if not cache_code_data:
                del reads[CODE_DATA]

            # Build every snapshot first, then publish them together
            snapshots = {name: _snapshot(name, outcome.records) for name, outcome in reads.items()}
            with self._state_lock:
                self._state = dataclasses.replace(self._state, **snapshots)

            self._dao = dao
            self._cached = cache_code_data
            self._initialized = True

        for name in reads:
            self._notify(name)
        return True

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_cached(self) -> bool:
        """True if code data is served from memory."""
        return self._cached

    @property
    def dao(self) -> Optional[StillFaceDAO]:
        return self._dao

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def state(self) -> ModelState:
        """The currently published state (all four collections)."""
        return self._state

    @property
    def import_data(self) -> CollectionSnapshot[ImportData]:
        return self._state.imports

    @property
    def code_data(self) -> CollectionSnapshot[CodeData]:
        return self._state.code_data

    @property
    def codes(self) -> CollectionSnapshot[Code]:
        return self._state.codes

    @property
    def tags(self) -> CollectionSnapshot[Tag]:
        return self._state.tags

    @property
    def code_list(self) -> Tuple[Code, ...]:
        """Codes ordered by name, without the sentinel."""
        return self._state.codes.by_label

    @property
    def tag_list(self) -> Tuple[Tag, ...]:
        """Tags ordered by value, without the sentinel."""
        return self._state.tags.by_label

    def get_import(self, import_id: int) -> Optional[ImportData]:
        return self._state.imports.get(import_id)

    def get_code_data(self, data_id: int) -> Optional[CodeData]:
        return self._state.code_data.get(data_id)

    def get_code(self, code_id: int) -> Optional[Code]:
        return self._state.codes.get(code_id)

    def get_tag(self, tag_id: int) -> Optional[Tag]:
        return self._state.tags.get(tag_id)

    def code_data_for_import(self, import_id: int) -> Tuple[CodeData, ...]:
        """Cached code data of one import, ordered by start time."""
        snapshot = self._state.code_data
        return tuple(sorted(
            (d for d in snapshot if d.import_id == import_id),
            key=lambda d: (d.time, d.id),
        ))

    # =========================================================================
    # REFRESH
    # =========================================================================

    def refresh_import_data(self) -> bool:
        return self._refresh(IMPORTS, lambda dao: dao.get_import_data(ALL))

    def refresh_code_data(self) -> bool:
        """Re-read code data. A successful no-op when code data is not cached."""
        if self._initialized and not self._cached:
            return True
        return self._refresh(CODE_DATA, lambda dao: dao.get_code_data_from_import(ALL))

    def refresh_codes(self) -> bool:
        return self._refresh(CODES, lambda dao: dao.get_code(ALL))

    def refresh_tags(self) -> bool:
        return self._refresh(TAGS, lambda dao: dao.get_tag(ALL))

    def refresh_all(self) -> bool:
        """Refresh imports, code data, codes, tags; stops at the first failure."""
        return (
            self.refresh_import_data()
            and self.refresh_code_data()
            and self.refresh_codes()
            and self.refresh_tags()
        )

    def _refresh(self, name: str, read: Callable[[StillFaceDAO], QueryOutcome]) -> bool:
        if not self._initialized or self._dao is None:
            logger.warning(f"Failed to refresh {name}: model is not initialized")
            return False

        with self._locks[name]:
            outcome = read(self._dao)
            if not outcome.ok:
                logger.warning(f"Failed to refresh {name}: {outcome.error.message}")
                return False
            snapshot = _snapshot(name, outcome.records)
            with self._state_lock:
                self._state = dataclasses.replace(self._state, **{name: snapshot})

        self._notify(name)
        return True

    # =========================================================================
    # CHANGE NOTIFICATION
    # =========================================================================

    def subscribe(self, callback: Callable[[str], None]) -> None:
        """Call callback(collection_name) after each successful publish."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[str], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self, name: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(name)
            except Exception:
                logger.exception(f"Model subscriber failed while handling '{name}' refresh")
