"""In-memory id-keyed record store used for results, scenarios and runs."""
from __future__ import annotations

from typing import Callable, Generic, Iterator, Optional, Protocol, TypeVar

from loguru import logger

from neuronet.utils.exceptions import NotFoundError


class HasId(Protocol):
    id: str


T = TypeVar("T", bound=HasId)


class InMemoryRepository(Generic[T]):
    """
    Insertion-ordered store keyed by record id.

    Single-writer-per-key contract: each record is written only by the engine
    call that created it. The repository does no locking of its own; a host
    that dispatches calls from several threads must serialize writes.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._records: dict[str, T] = {}

    def create(self, record: T) -> T:
        if record.id in self._records:
            raise ValueError(f"{self.kind} {record.id} already exists")
        self._records[record.id] = record
        logger.debug(f"Stored {self.kind} {record.id}")
        return record

    def get(self, record_id: str) -> Optional[T]:
        return self._records.get(record_id)

    def require(self, record_id: str) -> T:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(self.kind, record_id)
        return record

    def list(self, predicate: Callable[[T], bool] | None = None) -> list[T]:
        if predicate is None:
            return list(self._records.values())
        return [r for r in self._records.values() if predicate(r)]

    def delete(self, record_id: str) -> bool:
        if record_id not in self._records:
            return False
        del self._records[record_id]
        logger.debug(f"Deleted {self.kind} {record_id}")
        return True

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._records.values()))
