from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar, Union
from uuid import UUID

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .models import Record, matches_search
from .preferences import PreferenceBackend

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)

RecordId = Union[UUID, str]


class PersistenceError(Exception):
    """Raised when records cannot be read from or written to the preference store."""


class DecodeError(PersistenceError):
    """A stored blob could not be decoded back into records."""


class EncodeError(PersistenceError):
    """Records could not be encoded into a blob."""


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a store mutation.

    - changed: the in-memory collection was modified
    - persisted: the whole collection was written to the preference store
    - error: the persistence failure, if any. In-memory state is kept either way.
    """
    changed: bool
    persisted: bool = False
    error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# PUBLIC_INTERFACE
class RecordCodec(Generic[T]):
    """Encodes a list of records to JSON bytes and back."""

    def __init__(self, record_type: Type[T]) -> None:
        self.record_type = record_type
        self._adapter: TypeAdapter[List[T]] = TypeAdapter(List[record_type])  # type: ignore[valid-type]

    def encode(self, records: Iterable[T]) -> bytes:
        try:
            return self._adapter.dump_json(list(records))
        except PydanticSerializationError as e:
            raise EncodeError(f"could not encode {self.record_type.__name__} records: {e}") from e

    def decode(self, blob: bytes) -> List[T]:
        try:
            return self._adapter.validate_json(blob)
        except ValidationError as e:
            raise DecodeError(f"could not decode {self.record_type.__name__} records: {e}") from e


def _coerce_id(value: RecordId) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


# PUBLIC_INTERFACE
class RecordStore(Generic[T]):
    """
    Ordered in-memory collection of one record type, mirrored under a fixed key
    in a PreferenceBackend.

    Every mutation updates the in-memory list first and then rewrites the whole
    collection. A failed write is reported through MutationResult and never
    undoes the in-memory change. Access is serialized by a re-entrant lock.
    """

    def __init__(self, backend: PreferenceBackend, key: str, record_type: Type[T]) -> None:
        self.key = key
        self.record_type = record_type
        self._backend = backend
        self._codec: RecordCodec[T] = RecordCodec(record_type)
        self._lock = RLock()
        self._items: List[T] = []
        self.load_error: Optional[PersistenceError] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    @property
    def records(self) -> Tuple[T, ...]:
        with self._lock:
            return tuple(self._items)

    def load(self) -> List[T]:
        """
        Replace the in-memory collection with the persisted one.

        A missing blob yields an empty collection. An unreadable or undecodable
        blob also yields an empty collection; the error is kept on load_error.
        """
        with self._lock:
            self.load_error = None
            try:
                blob = self._backend.get(self.key)
                self._items = [] if blob is None else self._codec.decode(blob)
            except PersistenceError as e:
                logger.warning("Discarding stored %s: %s", self.key, e)
                self.load_error = e
                self._items = []
            logger.debug("Loaded %d record(s) from %s", len(self._items), self.key)
            return list(self._items)

    def _persist(self) -> MutationResult:
        try:
            self._backend.set(self.key, self._codec.encode(self._items))
        except PersistenceError as e:
            logger.warning("Could not persist %s: %s", self.key, e)
            return MutationResult(changed=True, persisted=False, error=e)
        return MutationResult(changed=True, persisted=True)

    def get(self, record_id: RecordId) -> Optional[T]:
        rid = _coerce_id(record_id)
        with self._lock:
            return next((r for r in self._items if r.id == rid), None)

    def insert(self, record: T) -> MutationResult:
        if not isinstance(record, self.record_type):
            raise TypeError(f"{self.key} stores {self.record_type.__name__}, got {type(record).__name__}")
        with self._lock:
            if any(r.id == record.id for r in self._items):
                raise ValueError(f"record {record.id} is already in {self.key}")
            self._items.append(record)
            return self._persist()

    def update(self, record_id: RecordId, mutator: Callable[[T], T]) -> MutationResult:
        """
        Replace the record with the given id by mutator(record), keeping its
        position. Unknown ids are a no-op.
        """
        rid = _coerce_id(record_id)
        with self._lock:
            for index, current in enumerate(self._items):
                if current.id != rid:
                    continue
                replacement = mutator(current)
                if replacement.id != current.id:
                    raise ValueError("record id is immutable")
                self._items[index] = replacement
                return self._persist()
            return MutationResult(changed=False)

    def replace(self, record: T) -> MutationResult:
        return self.update(record.id, lambda _: record)

    def delete(self, positions: Iterable[int]) -> MutationResult:
        """Remove records at absolute positions; out-of-range positions are ignored."""
        with self._lock:
            doomed = {p for p in positions if 0 <= p < len(self._items)}
            if not doomed:
                return MutationResult(changed=False)
            self._items = [r for i, r in enumerate(self._items) if i not in doomed]
            return self._persist()

    def delete_ids(self, record_ids: Iterable[RecordId]) -> MutationResult:
        ids = {_coerce_id(i) for i in record_ids}
        with self._lock:
            return self.delete(i for i, r in enumerate(self._items) if r.id in ids)

    def delete_displayed(self, positions: Iterable[int], displayed: Sequence[T]) -> MutationResult:
        """
        Remove records at positions of a displayed (possibly filtered) sequence.

        Positions are resolved to record ids against the displayed sequence and
        only then to absolute positions in the collection.
        """
        ids = [displayed[p].id for p in positions if 0 <= p < len(displayed)]
        return self.delete_ids(ids)

    def filter(self, predicate: Callable[[T], bool]) -> Iterator[T]:
        return (r for r in self.records if predicate(r))

    def search(self, text: Optional[str]) -> List[T]:
        return list(self.filter(lambda r: matches_search(r, text)))
