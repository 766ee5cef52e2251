"""HTTP error boundary.

The only place where error kinds become status codes. Auth failures answer
``{"message": ...}``; everything else answers ``{"mensaje": ...}``.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tienda_api.core.errors import AppError, AuthenticationError
from tienda_api.core.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND_ROUTE = "Ruta no encontrada"


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    extra = {
        "request_id": _request_id(request),
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": exc.kind.value,
    }
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra=extra)
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}", extra=extra)

    key = "message" if isinstance(exc, AuthenticationError) else "mensaje"
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={key: exc.message}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return JSONResponse(
        status_code=400,
        content={"mensaje": "Datos inválidos: " + "; ".join(details)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"mensaje": NOT_FOUND_ROUTE})
    return JSONResponse(
        status_code=exc.status_code,
        content={"mensaje": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
