"""
===============================================================================
MÓDULO: Respuestas de error (RFC 7807 / Problem Details)
===============================================================================

Objetivo
--------
Todo error HTTP de la API sale como application/problem+json con:
- code: código estable (el frontend decide por code, no por status)
- errors: detalle por campo ([{"field": "...", "msg": "..."}]) cuando aplica
- requestId: para correlacionar con los logs

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ErrorCode + ProblemDetail + AppHTTPException

Responsabilidades:
  - Catálogo de códigos (validación, no encontrado, conflicto, DB, interno)
  - Factories para los errores que devuelven los routers
  - Handler único que serializa AppHTTPException

Colaboradores:
  - interfaces/api/http/error_mapping.py (resultados de use cases -> HTTP)
  - api/exception_handlers.py (excepciones internas -> AppHTTPException)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ProblemDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    request_id: str | None = Field(default=None, alias="requestId")
    errors: list[dict[str, Any]] | None = None


class AppHTTPException(HTTPException):
    """HTTPException con ErrorCode estable y detalle por campo opcional."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def validation_error(
    detail: str, errors: list[dict[str, Any]] | None = None
) -> AppHTTPException:
    return AppHTTPException(422, ErrorCode.VALIDATION_ERROR, detail, errors)


def not_found(detail: str) -> AppHTTPException:
    return AppHTTPException(404, ErrorCode.NOT_FOUND, detail)


def conflict(detail: str) -> AppHTTPException:
    return AppHTTPException(409, ErrorCode.CONFLICT, detail)


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------
async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    problem = ProblemDetail(
        title=HTTPStatus(exc.status_code).phrase,
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=request.url.path,
        request_id=getattr(request.state, "request_id", None),
        errors=exc.errors or None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=getattr(exc, "headers", None),
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
