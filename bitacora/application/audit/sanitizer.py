"""
===============================================================================
TARJETA CRC — application/audit/sanitizer.py
===============================================================================

Responsabilidades:
  - Producir una copia profunda y serializable (JSON) de snapshots arbitrarios.
  - Redactar claves sensibles (match exacto, case-sensitive) a "[REDACTED]".
  - Descartar valores no representables (callables, generadores, etc.).
  - Nunca levantar: ante cualquier falla devolver {"error": "unserializable"}.

Colaboradores:
  - application/audit/recorder.py (sanitiza changes_before/after)

Notas:
  - Función pura: no muta el input, no hace I/O.
  - datetime/date -> ISO-8601; UUID/Decimal -> str; Enum -> value.
===============================================================================
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from ...domain.audit import to_iso_utc

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"password", "hash", "salt", "token", "secret"}
)
UNSERIALIZABLE: dict[str, str] = {"error": "unserializable"}

_MAX_DEPTH = 32


class _Drop:
    """Marcador interno: el valor no es representable y se omite."""


_DROP = _Drop()


def _convert(value: Any, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        raise ValueError("snapshot demasiado profundo (¿ciclo?)")

    if value is None or isinstance(value, (str, bool, int)):
        return value

    if isinstance(value, float):
        # NaN/Inf no son JSON válido
        if value != value or value in (float("inf"), float("-inf")):
            return _DROP
        return value

    if isinstance(value, Enum):
        return _convert(value.value, depth + 1)

    if isinstance(value, datetime):
        return to_iso_utc(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (UUID, Decimal)):
        return str(value)

    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for key, item in value.items():
            name = str(key)
            if name in SENSITIVE_KEYS:
                out[name] = REDACTED
                continue
            converted = _convert(item, depth + 1)
            if converted is not _DROP:
                out[name] = converted
        return out

    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_convert(v, depth + 1) for v in value]
        return [v for v in items if v is not _DROP]

    if is_dataclass(value) and not isinstance(value, type):
        return _convert(asdict(value), depth + 1)

    if hasattr(value, "to_dict") and callable(value.to_dict):
        return _convert(value.to_dict(), depth + 1)

    # callables, generadores, clases, objetos arbitrarios
    return _DROP


def sanitize(payload: Any) -> Any:
    """
    Devuelve una copia sanitizada de payload.

    Nunca levanta excepción: si algo falla devuelve UNSERIALIZABLE.
    """
    try:
        result = _convert(payload, 0)
        if result is _DROP:
            return None
        # Garantiza que el resultado es serializable tal cual se persiste.
        json.dumps(result)
        return result
    except Exception as exc:
        logger.warning(
            "Snapshot de auditoría no serializable",
            extra={"error": str(exc)},
        )
        return dict(UNSERIALIZABLE)
