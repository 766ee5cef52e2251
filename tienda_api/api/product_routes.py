"""Routes under ``/api/productos``.

Fixed paths (``/filtrar``, ``/buscar``, ...) are declared before ``/{product_id}``
so they are not captured as ids.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from tienda_api.api.deps import get_product_service, get_statistics_service
from tienda_api.domain.product import ProductCreate, ProductUpdate, StockReduction, StockUpdate
from tienda_api.services.products import ProductService
from tienda_api.services.statistics import StatisticsService

router = APIRouter(prefix="/productos", tags=["productos"])


@router.get("/filtrar")
async def filter_products(request: Request, service: ProductService = Depends(get_product_service)):
    """Filter with ``categoria``, ``precio_min/max``, ``stock_min/max``, ``nombre``,
    ``ordenar`` and ``limite``.

    Unparsable numeric values are ignored rather than rejected.
    """
    params = dict(request.query_params)
    productos = await service.filter(params)
    return {"total": len(productos), "filtros_aplicados": params, "productos": productos}


@router.get("/buscar")
async def search_products(
    texto: Optional[str] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    """Accent-insensitive search on nombre, descripcion and categoria.

    Scans every active product; results are not paginated.
    """
    productos = await service.search(texto)
    return {"total": len(productos), "texto_buscado": texto, "productos": productos}


@router.get("/con-stock")
async def products_in_stock(service: ProductService = Depends(get_product_service)):
    productos = await service.with_stock()
    return {"total": len(productos), "productos": productos}


@router.get("/agotados")
async def products_out_of_stock(service: ProductService = Depends(get_product_service)):
    productos = await service.out_of_stock()
    return {"total": len(productos), "productos": productos}


@router.get("/estadisticas")
async def product_statistics(service: StatisticsService = Depends(get_statistics_service)):
    return await service.for_products()


@router.get("/categorias")
async def product_categories(service: ProductService = Depends(get_product_service)):
    categorias = await service.categories()
    return {"total": len(categorias), "categorias": categorias}


@router.get("/categoria/{categoria}")
async def products_by_category(categoria: str, service: ProductService = Depends(get_product_service)):
    productos = await service.by_category(categoria)
    return {"total": len(productos), "categoria": categoria, "productos": productos}


@router.get("")
async def list_products(service: ProductService = Depends(get_product_service)):
    productos = await service.list_all()
    return {"total": len(productos), "productos": productos}


@router.get("/{product_id}")
async def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    return await service.get(product_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductCreate, service: ProductService = Depends(get_product_service)):
    producto = await service.create(body)
    return {
        "mensaje": f"Producto creado: {producto.nombre} (${producto.precio:g})",
        "producto": producto,
    }


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    producto = await service.update(product_id, body)
    return {"mensaje": f"Producto {product_id} actualizado", "producto": producto}


@router.delete("/{product_id}")
async def delete_product(product_id: str, service: ProductService = Depends(get_product_service)):
    producto = await service.soft_delete(product_id)
    return {"mensaje": "Producto eliminado (soft delete)", "producto": producto}


@router.delete("/{product_id}/permanente")
async def delete_product_forever(product_id: str, service: ProductService = Depends(get_product_service)):
    await service.hard_delete(product_id)
    return {"mensaje": "Producto eliminado permanentemente"}


@router.put("/{product_id}/stock")
async def set_product_stock(
    product_id: str,
    body: StockUpdate,
    service: ProductService = Depends(get_product_service),
):
    producto = await service.set_stock(product_id, body.stock)
    return {"mensaje": f"Stock del producto {product_id} actualizado a {body.stock}", "producto": producto}


@router.put("/{product_id}/reducir-stock")
async def reduce_product_stock(
    product_id: str,
    body: StockReduction,
    service: ProductService = Depends(get_product_service),
):
    producto = await service.reduce_stock(product_id, body.cantidad)
    return {"mensaje": f"Stock del producto {product_id} reducido en {body.cantidad}", "producto": producto}
