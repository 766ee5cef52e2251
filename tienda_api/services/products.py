"""Product business rules: validation, normalisation and stock movements."""
from typing import Dict, List, Mapping

from tienda_api.core.errors import NotFoundError, ValidationError
from tienda_api.core.logging import get_logger, LogTimer
from tienda_api.domain.product import Product, ProductCreate, ProductUpdate
from tienda_api.infrastructure.redis import KeyLock
from tienda_api.infrastructure.repositories import ProductRepository
from tienda_api.services.common import require_id, required_text, store_errors
from tienda_api.utils.text import clean_text

logger = get_logger(__name__)

NOT_FOUND = "Producto no encontrado o no está activo"


def _products(records) -> List[Product]:
    return [Product.model_validate(r) for r in records]


class ProductService:
    """Use cases behind ``/api/productos``."""

    def __init__(self, repo: ProductRepository, lock: KeyLock):
        self.repo = repo
        self.lock = lock

    async def list_all(self) -> List[Product]:
        with store_errors("obtener productos"):
            return _products(await self.repo.list_active())

    async def get(self, product_id: str) -> Product:
        product_id = require_id(product_id, "producto")
        with store_errors("obtener producto", id=product_id):
            record = await self.repo.get_active(product_id)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": product_id})
        return Product.model_validate(record)

    async def create(self, data: ProductCreate) -> Product:
        nombre = clean_text(data.nombre)
        categoria = clean_text(data.categoria)
        if not nombre or data.precio is None or not categoria:
            raise ValidationError("Nombre, precio y categoría son requeridos")
        if data.precio <= 0:
            raise ValidationError("El precio debe ser mayor a 0")
        if data.stock is not None and data.stock < 0:
            raise ValidationError("El stock no puede ser negativo")

        document = {
            "nombre": nombre,
            "precio": data.precio,
            "categoria": categoria,
            "stock": data.stock or 0,
            "descripcion": clean_text(data.descripcion) or "",
        }
        with LogTimer(logger, "productos.crear"), store_errors("crear producto"):
            return Product.model_validate(await self.repo.create(document))

    async def update(self, product_id: str, data: ProductUpdate) -> Product:
        product_id = require_id(product_id, "producto")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No se proporcionaron campos válidos para actualizar.")

        if "nombre" in changes:
            changes["nombre"] = required_text(changes["nombre"], "El nombre no puede estar vacío")
        if "categoria" in changes:
            changes["categoria"] = required_text(changes["categoria"], "La categoría no puede estar vacía")
        if "descripcion" in changes:
            changes["descripcion"] = clean_text(changes["descripcion"])
        if "precio" in changes and changes["precio"] <= 0:
            raise ValidationError("El precio debe ser mayor a 0")
        if "stock" in changes and changes["stock"] < 0:
            raise ValidationError("El stock no puede ser negativo")

        with store_errors("actualizar producto", id=product_id):
            record = await self.repo.update(product_id, changes)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": product_id})
        return Product.model_validate(record)

    async def soft_delete(self, product_id: str) -> Product:
        product_id = require_id(product_id, "producto")
        with store_errors("eliminar producto", id=product_id):
            record = await self.repo.soft_delete(product_id)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": product_id})
        return Product.model_validate(record)

    async def hard_delete(self, product_id: str) -> None:
        product_id = require_id(product_id, "producto")
        with store_errors("eliminar producto permanentemente", id=product_id):
            deleted = await self.repo.hard_delete(product_id)
        if not deleted:
            raise NotFoundError("Producto no encontrado", context={"id": product_id})

    async def filter(self, params: Mapping[str, str]) -> List[Product]:
        plan = self.repo.filters.compile(params)
        for param, label in (
            ("precio_min", "El precio mínimo"),
            ("precio_max", "El precio máximo"),
            ("stock_min", "El stock mínimo"),
            ("stock_max", "El stock máximo"),
        ):
            if plan.applied.get(param, 0) < 0:
                raise ValidationError(f"{label} no puede ser negativo")

        with LogTimer(logger, "productos.filtrar"), store_errors("filtrar productos"):
            return _products(await self.repo.execute(plan))

    async def search(self, texto: str) -> List[Product]:
        texto = required_text(texto, "Texto de búsqueda es requerido")
        with LogTimer(logger, "productos.buscar"), store_errors("buscar productos"):
            return _products(await self.repo.search_text(texto))

    async def with_stock(self) -> List[Product]:
        with store_errors("obtener productos con stock"):
            return _products(await self.repo.with_stock())

    async def out_of_stock(self) -> List[Product]:
        with store_errors("obtener productos agotados"):
            return _products(await self.repo.out_of_stock())

    async def by_category(self, categoria: str) -> List[Product]:
        categoria = required_text(categoria, "Categoría es requerida")
        with store_errors("obtener productos por categoría"):
            return _products(await self.repo.by_category(categoria))

    async def categories(self) -> List[str]:
        with store_errors("obtener categorías"):
            return await self.repo.categories()

    async def set_stock(self, product_id: str, stock: int) -> Product:
        product_id = require_id(product_id, "producto")
        if stock < 0:
            raise ValidationError("El stock debe ser un número no negativo")

        async with self.lock.hold(f"productos:{product_id}"):
            with store_errors("actualizar stock", id=product_id):
                record = await self.repo.set_stock(product_id, stock)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": product_id})
        return Product.model_validate(record)

    async def reduce_stock(self, product_id: str, cantidad: int = 1) -> Product:
        product_id = require_id(product_id, "producto")
        if cantidad <= 0:
            raise ValidationError("La cantidad debe ser un número positivo")

        async with self.lock.hold(f"productos:{product_id}"):
            with LogTimer(logger, "productos.reducir_stock", entity_id=product_id), \
                    store_errors("reducir stock", id=product_id):
                record = await self.repo.reduce_stock(product_id, cantidad)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": product_id})
        return Product.model_validate(record)

    async def records(self) -> List[Dict]:
        """Raw active records, for aggregation."""
        with store_errors("obtener productos"):
            return await self.repo.list_active()
