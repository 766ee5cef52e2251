"""Helpers shared by the domain services."""
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from tienda_api.core.errors import AppError, InternalError, ValidationError
from tienda_api.core.logging import get_logger
from tienda_api.utils.text import clean_text

logger = get_logger(__name__)


@contextmanager
def store_errors(action: str, **context: Any) -> Iterator[None]:
    """Re-raise unexpected failures inside the block as ``InternalError``.

    Domain errors pass through untouched. ``action`` completes the message,
    e.g. ``store_errors("obtener productos")`` -> "Error al obtener productos: ...".
    """
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.error(f"Error al {action}: {exc}", extra={"operation": action}, exc_info=True)
        raise InternalError(f"Error al {action}: {exc}", context=context) from exc


def require_id(doc_id: Optional[str], entity: str) -> str:
    doc_id = clean_text(doc_id)
    if not doc_id:
        raise ValidationError(f"ID de {entity} es requerido")
    return doc_id


def required_text(value: Optional[str], message: str) -> str:
    """Cleaned ``value``; ``message`` as ValidationError if absent or blank."""
    value = clean_text(value)
    if not value:
        raise ValidationError(message)
    return value
