"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request
===============================================================================

Objetivo
--------
Una línea JSON por evento, correlacionable por request_id / actor y sin
secretos en los `extra`.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Serializar LogRecord a JSON (timestamp UTC del record, no del formatter)
  - Agregar el contexto del request (bitacora/context.py)
  - Enmascarar claves sensibles y recortar strings largos en `extra`

Colaboradores:
  - bitacora/context.py
  - crosscutting/config.py (log_level / log_json)

Notas:
  - No reemplaza al Sanitizer de auditoría: acá sólo importa que el log no
    filtre credenciales; la forma del payload puede perderse.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from ..context import get_context_dict

# Atributos estándar de LogRecord: todo lo demás vino por `extra=`.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

MASK = "***REDACTED***"
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "hash",
        "salt",
        "secret",
        "token",
        "authorization",
        "cookie",
        "database_url",
    }
)
MAX_STR = 2_000
MAX_DEPTH = 4


def scrub(value: Any, *, key: str | None = None, depth: int = 0) -> Any:
    """Copia `value` apta para JSON con claves sensibles enmascaradas."""
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return MASK
    if depth > MAX_DEPTH:
        return "…"
    if isinstance(value, str):
        return value if len(value) <= MAX_STR else value[:MAX_STR] + "…"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, dict):
        return {str(k): scrub(v, key=str(k), depth=depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [scrub(v, depth=depth + 1) for v in value]
    return str(value)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
            **get_context_dict(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                payload[key] = scrub(value, key=key)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = "bitacora") -> logging.Logger:
    """
    Logger raíz del paquete. Idempotente: un solo handler aunque se reimporte.

    Los loggers de módulo (`logging.getLogger(__name__)`) propagan hasta acá.
    """
    from .config import get_settings

    settings = get_settings()
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if settings.log_json
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
