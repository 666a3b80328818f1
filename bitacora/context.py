"""
===============================================================================
TARJETA CRC — bitacora/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Mantener el contexto del request en un único ContextVar (async-safe).
  - Correlacionar logs por request_id y por actor (X-User-Id) sin pasar
    parámetros por todo el stack.

Colaboradores:
  - crosscutting/middleware.py: abre y cierra el contexto por request.
  - crosscutting/logger.py: agrega get_context_dict() a cada línea.
  - application/audit/recorder.py: copia el contexto al hilo de escritura.

Restricciones:
  - RequestContext es inmutable; se reemplaza entero, nunca se muta.
  - Valores vacíos ("") no se emiten en los logs.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class RequestContext:
    request_id: str = ""
    method: str = ""
    path: str = ""
    user_id: str = ""


_EMPTY = RequestContext()
_current: ContextVar[RequestContext] = ContextVar("bitacora_request", default=_EMPTY)


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = "", user_id: str = ""
) -> None:
    _current.set(
        RequestContext(
            request_id=request_id or "",
            method=method or "",
            path=path or "",
            user_id=user_id or "",
        )
    )


def current_context() -> RequestContext:
    return _current.get()


def get_context_dict() -> dict[str, str]:
    """Contexto actual como dict, sin claves vacías."""
    return {k: v for k, v in asdict(_current.get()).items() if v}


def clear_context() -> None:
    """Evita que el contexto de un request se filtre al siguiente."""
    _current.set(_EMPTY)
