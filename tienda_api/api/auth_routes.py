"""Routes under ``/api/auth``.

``login`` and ``register`` are reachable without a token; ``me`` is not.
"""
from fastapi import APIRouter, Depends, status

from tienda_api.api.deps import get_auth_service, get_user_service
from tienda_api.core.security import get_current_user
from tienda_api.domain.user import LoginRequest, LoginResponse, TokenClaims, UserCreate
from tienda_api.services.auth import AuthService
from tienda_api.services.users import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Authenticate and return a signed access token.

    Example:
        POST /api/auth/login
        {"email": "ana@example.com", "password": "s3cret-pass"}
    """
    return await service.login(req.email, req.password)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, service: UserService = Depends(get_user_service)):
    """Create an account; same rules as ``POST /api/usuarios``."""
    usuario = await service.create(body)
    return {"mensaje": f"Usuario creado: {usuario.nombre}", "usuario": usuario}


@router.get("/me", response_model=TokenClaims)
async def me(claims: TokenClaims = Depends(get_current_user)):
    """Identity of the caller, as carried by the token."""
    return claims
