"""In-process document store.

Mirrors the subset of Firestore semantics the repositories rely on:
predicates are AND-ed, a document missing the filtered field never matches,
ordering on a field drops documents that lack it, and ``update`` on a
missing document fails. Used with ``STORE_BACKEND=memory`` for local work
and by the test-suite.
"""
import copy
import operator
import uuid
from typing import Any, Dict, List, Optional, Sequence

from tienda_api.core.logging import get_logger
from tienda_api.infrastructure.store import DocumentStore, OrderBy, Predicate, Record

logger = get_logger(__name__)

_COMPARATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_MISSING = object()


class DocumentNotFound(KeyError):
    """Raised by ``update`` for an id the collection does not hold."""


def _matches(doc: Record, predicate: Predicate) -> bool:
    value = doc.get(predicate.field, _MISSING)
    if value is _MISSING:
        return False
    try:
        return _COMPARATORS[predicate.op](value, predicate.value)
    except TypeError:
        # Mixed types never compare in Firestore either
        return False


class MemoryStore(DocumentStore):
    """Dict-backed ``DocumentStore``; returns deep copies so callers never alias stored state."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Record]] = {}

    def _collection(self, name: str) -> Dict[str, Record]:
        return self._collections.setdefault(name, {})

    async def query_collection(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        docs = [
            {"id": doc_id, **doc}
            for doc_id, doc in self._collection(collection).items()
            if all(_matches(doc, p) for p in predicates)
        ]
        if order_by is not None:
            docs = [d for d in docs if d.get(order_by.field) is not None]
            docs.sort(key=lambda d: d[order_by.field], reverse=order_by.descending)
        if limit is not None:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Record]:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return None
        return copy.deepcopy({"id": doc_id, **doc})

    async def insert(self, collection: str, data: Record) -> Record:
        doc_id = uuid.uuid4().hex[:20]
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        return {"id": doc_id, **copy.deepcopy(data)}

    async def update(self, collection: str, doc_id: str, data: Record) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise DocumentNotFound(f"No document to update: {collection}/{doc_id}")
        docs[doc_id].update(copy.deepcopy(data))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Insert a document under a fixed id (fixtures and local demos)."""
        self._collection(collection)[doc_id] = copy.deepcopy(data)
