"""
===============================================================================
TARJETA CRC — bitacora/api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir BitacoraError (y subclases) a problem+json según la tabla
    _SERVICE_ERRORS (la primera clase que matchea gana).
  - Traducir errores de parseo de FastAPI a 422 con detalle por campo.
  - Fallback 500 sin internals en producción.

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: BitacoraError, DatabaseError, ConflictError
  - crosscutting.config.get_settings (nivel de detalle)
===============================================================================
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import BitacoraError, ConflictError, DatabaseError
from ..crosscutting.logger import logger

# Orden: de la subclase más específica a la base.
_SERVICE_ERRORS: tuple[tuple[type[BitacoraError], int, ErrorCode], ...] = (
    (ConflictError, 409, ErrorCode.CONFLICT),
    (DatabaseError, 503, ErrorCode.DATABASE_ERROR),
    (BitacoraError, 500, ErrorCode.INTERNAL_ERROR),
)

_GENERIC_DETAIL = {
    ErrorCode.DATABASE_ERROR: "Base de datos no disponible.",
    ErrorCode.INTERNAL_ERROR: "Error interno.",
}


def _classify(exc: BitacoraError) -> tuple[int, ErrorCode]:
    for error_cls, status_code, code in _SERVICE_ERRORS:
        if isinstance(exc, error_cls):
            return status_code, code
    return 500, ErrorCode.INTERNAL_ERROR


async def bitacora_error_handler(request: Request, exc: BitacoraError) -> JSONResponse:
    status_code, code = _classify(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Error de servicio",
        extra={
            "code": code.value,
            "error_code": exc.error_code,
            "status_code": status_code,
            "error_id": exc.error_id,
            "error_message": exc.message,
        },
    )

    detail = exc.message
    if status_code >= 500 and get_settings().is_production():
        detail = _GENERIC_DETAIL.get(code, "Error interno.")

    return await app_exception_handler(
        request,
        AppHTTPException(
            status_code, code, detail, errors=[{"errorId": exc.error_id}]
        ),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body/query/path que no parsea -> 422 con [{field, msg}]."""
    errors = [
        {
            "field": ".".join(
                str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")
            ),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return await app_exception_handler(
        request,
        AppHTTPException(
            422, ErrorCode.VALIDATION_ERROR, "Datos de entrada inválidos", errors
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Excepción no controlada", exc_info=exc)
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return await app_exception_handler(
        request, AppHTTPException(500, ErrorCode.INTERNAL_ERROR, detail)
    )


def register_exception_handlers(app) -> None:
    """
    Starlette resuelve por MRO: un solo handler cubre toda la jerarquía
    BitacoraError. Exception queda como fallback.
    """
    app.add_exception_handler(BitacoraError, bitacora_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
