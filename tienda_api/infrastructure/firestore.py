"""Cloud Firestore implementation of the document store gateway.

Uses the native async client so store round-trips never block the event
loop. Firestore has no text index and no diacritic-insensitive matching;
those stay in the repositories.
"""
import inspect
from typing import List, Optional, Sequence

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from tienda_api.core.config import settings, get_firestore_credentials
from tienda_api.core.logging import get_logger
from tienda_api.infrastructure.store import DocumentStore, OrderBy, Predicate, Record

logger = get_logger(__name__)


class FirestoreStore(DocumentStore):
    """Gateway over a ``firestore.AsyncClient``."""

    def __init__(self, client: firestore.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls) -> "FirestoreStore":
        """Build the client from PROJECT_ID / credentials in settings."""
        credentials = get_firestore_credentials()
        client = firestore.AsyncClient(
            project=settings.project_id,
            credentials=credentials,
            database=settings.firestore_database,
        )
        logger.info(
            f"Firestore client created for project {settings.project_id}",
            extra={"operation": "firestore.connect"}
        )
        return cls(client)

    async def query_collection(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        query = self._client.collection(collection)
        for predicate in predicates:
            query = query.where(filter=FieldFilter(predicate.field, predicate.op, predicate.value))
        if order_by is not None:
            direction = firestore.Query.DESCENDING if order_by.descending else firestore.Query.ASCENDING
            query = query.order_by(order_by.field, direction=direction)
        if limit is not None:
            query = query.limit(limit)

        records = []
        async for snapshot in query.stream():
            records.append({"id": snapshot.id, **snapshot.to_dict()})
        return records

    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Record]:
        snapshot = await self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return {"id": snapshot.id, **snapshot.to_dict()}

    async def insert(self, collection: str, data: Record) -> Record:
        _, doc_ref = await self._client.collection(collection).add(data)
        return {"id": doc_ref.id, **data}

    async def update(self, collection: str, doc_id: str, data: Record) -> None:
        await self._client.collection(collection).document(doc_id).update(data)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._client.collection(collection).document(doc_id).delete()

    async def close(self) -> None:
        result = self._client.close()
        if inspect.isawaitable(result):
            await result
