"""User business rules: validation, password hashing and email uniqueness."""
from typing import Dict, List, Mapping

from starlette.concurrency import run_in_threadpool

from tienda_api.core.errors import ConflictError, NotFoundError, ValidationError
from tienda_api.core.logging import get_logger, LogTimer
from tienda_api.core.security import hash_password
from tienda_api.domain.user import User, UserCreate, UserUpdate
from tienda_api.infrastructure.redis import KeyLock
from tienda_api.infrastructure.repositories import UserRepository
from tienda_api.services.common import require_id, required_text, store_errors
from tienda_api.utils.text import clean_text

logger = get_logger(__name__)

NOT_FOUND = "Usuario no encontrado o no está activo"


def _users(records) -> List[User]:
    return [User.model_validate(r) for r in records]


class UserService:
    """Use cases behind ``/api/usuarios`` and registration."""

    def __init__(self, repo: UserRepository, lock: KeyLock):
        self.repo = repo
        self.lock = lock

    async def list_all(self) -> List[User]:
        with store_errors("obtener usuarios"):
            return _users(await self.repo.list_active())

    async def get(self, user_id: str) -> User:
        user_id = require_id(user_id, "usuario")
        with store_errors("obtener usuario", id=user_id):
            record = await self.repo.get_active(user_id)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": user_id})
        return User.model_validate(record)

    async def create(self, data: UserCreate) -> User:
        """Validate, hash the password and insert.

        The email check and the insert run under the ``usuarios:email`` key
        lock; with locks disabled two concurrent registrations of the same
        email can both succeed.
        """
        if data.nombre is None or data.email is None or data.password is None or data.categoria is None:
            raise ValidationError("Nombre, email, contraseña y categoría son requeridos.")
        nombre = required_text(data.nombre, "El nombre no puede estar vacío")
        email = required_text(data.email, "El email no puede estar vacío")
        categoria = required_text(data.categoria, "La categoría no puede estar vacía")
        if not data.password.strip():
            raise ValidationError("La contraseña no puede estar vacía")
        if data.edad is not None and data.edad < 0:
            raise ValidationError("La edad no puede ser negativa")

        document = {
            "nombre": nombre,
            "email": email,
            "password": await run_in_threadpool(hash_password, data.password),
            "categoria": categoria,
            "edad": data.edad or 0,
            "descripcion": clean_text(data.descripcion) or "",
        }

        async with self.lock.hold(f"usuarios:email:{email}"):
            with LogTimer(logger, "usuarios.crear"), store_errors("crear usuario"):
                if await self.repo.find_by_email(email, active_only=True):
                    raise ConflictError(
                        "Ya existe un usuario registrado con este email.",
                        context={"email": email}
                    )
                record = await self.repo.create(document)
        return User.model_validate(record)

    async def update(self, user_id: str, data: UserUpdate) -> User:
        user_id = require_id(user_id, "usuario")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "nombre" in changes:
            changes["nombre"] = required_text(changes["nombre"], "El nombre no puede estar vacío")
        if "categoria" in changes:
            changes["categoria"] = required_text(changes["categoria"], "La categoría no puede estar vacía")
        if "descripcion" in changes:
            changes["descripcion"] = clean_text(changes["descripcion"])
        if "edad" in changes and changes["edad"] < 0:
            raise ValidationError("La edad no puede ser negativa")
        if "password" in changes:
            # A blank password means "leave unchanged"
            if changes["password"].strip():
                changes["password"] = await run_in_threadpool(hash_password, changes["password"])
            else:
                del changes["password"]

        if not changes:
            raise ValidationError("No se proporcionaron campos válidos para actualizar.")

        with store_errors("actualizar usuario", id=user_id):
            record = await self.repo.update(user_id, changes)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": user_id})
        return User.model_validate(record)

    async def soft_delete(self, user_id: str) -> User:
        user_id = require_id(user_id, "usuario")
        with store_errors("eliminar usuario", id=user_id):
            record = await self.repo.soft_delete(user_id)
        if record is None:
            raise NotFoundError(NOT_FOUND, context={"id": user_id})
        return User.model_validate(record)

    async def hard_delete(self, user_id: str) -> None:
        user_id = require_id(user_id, "usuario")
        with store_errors("eliminar usuario permanentemente", id=user_id):
            deleted = await self.repo.hard_delete(user_id)
        if not deleted:
            raise NotFoundError("Usuario no encontrado", context={"id": user_id})

    async def filter(self, params: Mapping[str, str]) -> List[User]:
        for param, message in (
            ("nombre", "El nombre no puede estar vacío"),
            ("categoria", "La categoría no puede estar vacía"),
        ):
            raw = params.get(param)
            if raw and not raw.strip():
                raise ValidationError(message)

        plan = self.repo.filters.compile(params)
        edad_min = plan.applied.get("edad_min")
        edad_max = plan.applied.get("edad_max")
        if edad_min is not None and edad_min < 0:
            raise ValidationError("La edad mínima no puede ser negativa")
        if edad_max is not None and edad_max < 0:
            raise ValidationError("La edad máxima no puede ser negativa")
        if edad_min is not None and edad_max is not None and edad_min > edad_max:
            raise ValidationError("La edad mínima no puede ser mayor que la máxima")

        with LogTimer(logger, "usuarios.filtrar"), store_errors("filtrar usuarios"):
            return _users(await self.repo.execute(plan))

    async def search(self, texto: str) -> List[User]:
        texto = required_text(texto, "Texto de búsqueda es requerido")
        with LogTimer(logger, "usuarios.buscar"), store_errors("buscar usuarios"):
            return _users(await self.repo.search_text(texto))

    async def by_category(self, categoria: str) -> List[User]:
        categoria = required_text(categoria, "Categoría es requerida")
        with store_errors("obtener usuarios por categoría"):
            return _users(await self.repo.by_category(categoria))

    async def categories(self) -> List[str]:
        with store_errors("obtener categorías"):
            return await self.repo.categories()

    async def records(self) -> List[Dict]:
        """Raw active records, for aggregation. Includes password hashes; never return these."""
        with store_errors("obtener usuarios"):
            return await self.repo.list_active()
