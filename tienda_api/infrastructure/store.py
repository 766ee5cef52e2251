"""Document store gateway.

The service never talks to Firestore directly: repositories go through the
``DocumentStore`` interface below, which exposes just what they need (a
filtered/ordered/limited collection query plus single-document CRUD).
Records cross the boundary as plain dicts carrying their ``id``.

The process keeps one long-lived store client, created lazily by
``get_document_store`` and closed on shutdown.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from tienda_api.core.config import settings
from tienda_api.core.logging import get_logger

logger = get_logger(__name__)

Record = Dict[str, Any]

# Comparison operators every backend must understand
OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


@dataclass(frozen=True)
class Predicate:
    """A native filter: ``field <op> value``."""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    """A native ordering on a single field."""
    field: str
    descending: bool = False


class DocumentStore(ABC):
    """Async capability over named document collections."""

    @abstractmethod
    async def query_collection(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Return the records matching every predicate."""

    @abstractmethod
    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Record]:
        """Return the record with ``doc_id`` or None."""

    @abstractmethod
    async def insert(self, collection: str, data: Record) -> Record:
        """Store a new record and return it with its assigned id."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Record) -> None:
        """Merge ``data`` into an existing record."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Physically remove a record."""

    async def close(self) -> None:
        """Release client resources."""


_store: Optional[DocumentStore] = None


def get_document_store() -> DocumentStore:
    """Return the process-wide store, creating it on first use.

    Also the FastAPI dependency repositories are built from; tests override
    it with a ``MemoryStore``.
    """
    global _store

    if _store is None:
        if settings.store_backend == "memory":
            from tienda_api.infrastructure.memory import MemoryStore
            _store = MemoryStore()
        else:
            from tienda_api.infrastructure.firestore import FirestoreStore
            _store = FirestoreStore.from_settings()
        logger.info(f"Document store initialised: {type(_store).__name__}")

    return _store


async def close_document_store() -> None:
    """Close the process-wide store if one was created."""
    global _store

    if _store is not None:
        await _store.close()
        logger.info("Document store closed")
        _store = None
