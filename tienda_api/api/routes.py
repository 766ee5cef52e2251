"""API router assembly.

``/api/auth/*`` is public. Every other ``/api/*`` route sits behind the
bearer-token gate, applied once at router level.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tienda_api.api import auth_routes, product_routes, user_routes
from tienda_api.api.deps import get_statistics_service
from tienda_api.core.config import settings
from tienda_api.core.security import get_current_user
from tienda_api.services.statistics import StatisticsService

API_VERSION = "1.0.0"

protected = APIRouter(dependencies=[Depends(get_current_user)])


@protected.get("/")
async def welcome():
    """Index of the protected resources."""
    return {
        "mensaje": "¡Bienvenido a la API!",
        "version": API_VERSION,
        "endpoints": {
            "usuarios": f"{settings.api_prefix}/usuarios",
            "productos": f"{settings.api_prefix}/productos",
            "estadisticas": f"{settings.api_prefix}/estadisticas",
        },
    }


@protected.get("/estadisticas")
async def statistics(
    tipo: Optional[str] = Query(None),
    service: StatisticsService = Depends(get_statistics_service),
):
    """``?tipo=usuarios`` or ``?tipo=productos`` for detail, otherwise plain counts."""
    return await service.overview(tipo)


protected.include_router(user_routes.router)
protected.include_router(product_routes.router)

router = APIRouter(prefix=settings.api_prefix)
router.include_router(auth_routes.router)
router.include_router(protected)
