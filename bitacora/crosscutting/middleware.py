"""
===============================================================================
MÓDULO: Middleware HTTP de contexto
===============================================================================

RequestContextMiddleware:
   - Aceptar X-Request-Id (si es razonable) o generar uno nuevo.
   - Abrir el contexto del request (request_id, método, path, X-User-Id).
   - Una línea de log por request con status y latencia (salvo /healthz).

Colaboradores:
  - bitacora/context.py
  - crosscutting/logger.py
===============================================================================
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LEN = 128


def resolve_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    if candidate and len(candidate) <= _MAX_REQUEST_ID_LEN:
        return candidate
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    _QUIET_PATHS = frozenset({"/healthz"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            user_id=(request.headers.get("x-user-id") or "").strip(),
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            if status_code >= 500:
                logger.error(
                    "request falló",
                    extra={"status_code": status_code, "latency_ms": elapsed_ms},
                )
            elif request.url.path not in self._QUIET_PATHS:
                logger.info(
                    "request completado",
                    extra={"status_code": status_code, "latency_ms": elapsed_ms},
                )
            clear_context()
