"""Routes under ``/api/usuarios``."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from tienda_api.api.deps import get_statistics_service, get_user_service
from tienda_api.domain.user import UserCreate, UserUpdate
from tienda_api.services.statistics import StatisticsService
from tienda_api.services.users import UserService

router = APIRouter(prefix="/usuarios", tags=["usuarios"])


@router.get("/filtrar")
async def filter_users(request: Request, service: UserService = Depends(get_user_service)):
    """Filter with ``categoria``, ``edad_min/max``, ``nombre``, ``ordenar`` and ``limite``."""
    params = dict(request.query_params)
    usuarios = await service.filter(params)
    return {"total": len(usuarios), "filtros_aplicados": params, "usuarios": usuarios}


@router.get("/buscar")
async def search_users(
    texto: Optional[str] = Query(None),
    service: UserService = Depends(get_user_service),
):
    """Accent-insensitive full scan; results are not paginated."""
    usuarios = await service.search(texto)
    return {"total": len(usuarios), "texto_buscado": texto, "usuarios": usuarios}


@router.get("/estadisticas")
async def user_statistics(service: StatisticsService = Depends(get_statistics_service)):
    return await service.for_users()


@router.get("/categorias")
async def user_categories(service: UserService = Depends(get_user_service)):
    categorias = await service.categories()
    return {"total": len(categorias), "categorias": categorias}


@router.get("/categoria/{categoria}")
async def users_by_category(categoria: str, service: UserService = Depends(get_user_service)):
    usuarios = await service.by_category(categoria)
    return {"total": len(usuarios), "categoria": categoria, "usuarios": usuarios}


@router.get("")
async def list_users(service: UserService = Depends(get_user_service)):
    usuarios = await service.list_all()
    return {"total": len(usuarios), "usuarios": usuarios}


@router.get("/{user_id}")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return await service.get(user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, service: UserService = Depends(get_user_service)):
    usuario = await service.create(body)
    return {"mensaje": f"Usuario creado: {usuario.nombre}", "usuario": usuario}


@router.put("/{user_id}")
async def update_user(user_id: str, body: UserUpdate, service: UserService = Depends(get_user_service)):
    usuario = await service.update(user_id, body)
    return {"mensaje": f"Usuario {user_id} actualizado", "usuario": usuario}


@router.delete("/{user_id}")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    usuario = await service.soft_delete(user_id)
    return {"mensaje": "Usuario eliminado (soft delete)", "usuario": usuario}


@router.delete("/{user_id}/permanente")
async def delete_user_forever(user_id: str, service: UserService = Depends(get_user_service)):
    await service.hard_delete(user_id)
    return {"mensaje": "Usuario eliminado permanentemente"}
