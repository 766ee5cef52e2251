"""Entity repositories over the document store gateway.

Repositories own the storage conventions shared by both collections:

* ``activo`` is the soft-delete flag; every read filters ``activo == True``
  and a soft-deleted record behaves as absent for reads and updates.
* ``fechaCreacion`` / ``fechaActualizacion`` / ``fechaEliminacion`` are
  stamped here (UTC), never by callers.
* Free-text search folds accents and case on both sides and scans the
  whole active collection client-side. It does not paginate; fine for
  small catalogues only.

Store failures propagate unchanged; services decide how to report them.
"""
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from tienda_api.core.errors import InsufficientStockError
from tienda_api.core.logging import get_logger
from tienda_api.domain.filters import (
    ACTIVE_PREDICATE, PRODUCT_FILTERS, USER_FILTERS, FilterConfig, FilterPlan,
)
from tienda_api.infrastructure.store import DocumentStore, Predicate, Record
from tienda_api.utils.text import contains_normalized, normalize_text

logger = get_logger(__name__)

SEARCH_FIELDS = ("nombre", "descripcion", "categoria")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseRepository:
    """CRUD plus filter/search over one collection."""

    filters: FilterConfig

    def __init__(self, store: DocumentStore, collection: str):
        self.store = store
        self.collection = collection

    async def list_active(self, *predicates: Predicate) -> List[Record]:
        return await self.store.query_collection(
            self.collection, [ACTIVE_PREDICATE, *predicates]
        )

    async def get_active(self, doc_id: str) -> Optional[Record]:
        record = await self.store.get_by_id(self.collection, doc_id)
        if record is None or not record.get("activo"):
            return None
        return record

    async def create(self, data: Mapping) -> Record:
        now = utcnow()
        document = {
            **data,
            "activo": True,
            "fechaCreacion": now,
            "fechaActualizacion": now,
        }
        record = await self.store.insert(self.collection, document)
        logger.info(
            f"Created {self.collection}/{record['id']}",
            extra={"collection": self.collection, "entity_id": record["id"]}
        )
        return record

    async def update(self, doc_id: str, changes: Mapping) -> Optional[Record]:
        """Merge ``changes`` into an active record; None if absent or inactive."""
        if await self.get_active(doc_id) is None:
            return None

        # Lifecycle fields are owned by this class
        changes = {
            k: v for k, v in changes.items()
            if k not in ("id", "activo", "fechaCreacion", "fechaEliminacion")
        }
        changes["fechaActualizacion"] = utcnow()
        await self.store.update(self.collection, doc_id, changes)
        return await self.store.get_by_id(self.collection, doc_id)

    async def soft_delete(self, doc_id: str) -> Optional[Record]:
        record = await self.get_active(doc_id)
        if record is None:
            return None

        stamp = {"activo": False, "fechaEliminacion": utcnow()}
        await self.store.update(self.collection, doc_id, stamp)
        logger.info(
            f"Soft-deleted {self.collection}/{doc_id}",
            extra={"collection": self.collection, "entity_id": doc_id}
        )
        return {**record, **stamp}

    async def hard_delete(self, doc_id: str) -> bool:
        """Physically remove a record, active or not. False if it never existed."""
        if await self.store.get_by_id(self.collection, doc_id) is None:
            return False

        await self.store.delete(self.collection, doc_id)
        logger.warning(
            f"Permanently deleted {self.collection}/{doc_id}",
            extra={"collection": self.collection, "entity_id": doc_id}
        )
        return True

    async def execute(self, plan: FilterPlan) -> List[Record]:
        """Run the native part of ``plan`` on the store, then its client-side residue."""
        records = await self.store.query_collection(
            self.collection, plan.predicates, plan.order_by, plan.limit
        )
        return plan.apply(records)

    async def search_text(self, text: str) -> List[Record]:
        needle = normalize_text(text)
        records = await self.list_active()
        return [
            r for r in records
            if any(contains_normalized(r.get(f), needle) for f in SEARCH_FIELDS)
        ]

    async def by_category(self, categoria: str) -> List[Record]:
        return await self.list_active(Predicate("categoria", "==", categoria))

    async def categories(self) -> List[str]:
        """Distinct non-empty categories, in first-seen order."""
        seen: Dict[str, None] = {}
        for record in await self.list_active():
            if record.get("categoria"):
                seen.setdefault(record["categoria"], None)
        return list(seen)


class UserRepository(BaseRepository):
    filters = USER_FILTERS

    async def find_by_email(self, email: str, active_only: bool = False) -> List[Record]:
        predicates = [Predicate("email", "==", email)]
        if active_only:
            predicates.insert(0, ACTIVE_PREDICATE)
        return await self.store.query_collection(self.collection, predicates)

    async def get_by_email(self, email: str) -> Optional[Record]:
        """Exact-match lookup, active accounts first.

        Returns an inactive record only when no active one holds the email.
        """
        matches = await self.find_by_email(email)
        if not matches:
            return None
        active = [m for m in matches if m.get("activo")]
        return active[0] if active else matches[0]


class ProductRepository(BaseRepository):
    filters = PRODUCT_FILTERS

    async def with_stock(self) -> List[Record]:
        return await self.list_active(Predicate("stock", ">", 0))

    async def out_of_stock(self) -> List[Record]:
        return await self.list_active(Predicate("stock", "==", 0))

    async def set_stock(self, doc_id: str, stock: int) -> Optional[Record]:
        return await self.update(doc_id, {"stock": stock})

    async def reduce_stock(self, doc_id: str, cantidad: int) -> Optional[Record]:
        """Read, subtract and write back.

        Not atomic at the store level: two concurrent reducers can both read
        the same stock. Callers serialise through ``KeyLock`` when enabled.

        Raises:
            InsufficientStockError: The result would be negative; nothing is written
        """
        record = await self.get_active(doc_id)
        if record is None:
            return None

        current = int(record.get("stock") or 0)
        nuevo_stock = current - cantidad
        if nuevo_stock < 0:
            raise InsufficientStockError(
                "Stock insuficiente",
                context={"id": doc_id, "stock": current, "cantidad": cantidad}
            )

        await self.store.update(
            self.collection, doc_id, {"stock": nuevo_stock, "fechaActualizacion": utcnow()}
        )
        return await self.store.get_by_id(self.collection, doc_id)
