"""
===============================================================================
AUDIT USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Modelos compartidos de resultados y errores para consultas de auditoría.
    Los use cases devuelven resultados tipados en vez de levantar excepciones,
    así el adaptador HTTP mapea códigos a status de forma uniforme.

Responsibilities:
    - AuditErrorCode: categorías estables (hoy sólo VALIDATION_ERROR).
    - AuditError: code + message + detalle opcional por campo.
    - Resultados: página, estadísticas, resumen de actividad, export.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from ....domain.audit import AuditPage, AuditStats, UserActivitySummary, to_iso_utc


class AuditErrorCode(str, Enum):
    """
    Códigos de error para consultas de auditoría.

      - VALIDATION_ERROR: filtro inválido (acción/entidad desconocida, fecha
        mal formada, sortBy fuera de la whitelist, page/limit < 1).
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass(frozen=True)
class AuditError:
    code: AuditErrorCode
    message: str
    field: Optional[str] = None


@dataclass
class AuditPageResult:
    page: Optional[AuditPage] = None
    error: Optional[AuditError] = None


@dataclass
class AuditStatsResult:
    stats: AuditStats


@dataclass
class UserActivityResult:
    users: List[UserActivitySummary] = field(default_factory=list)


EXPORT_MESSAGE = "Logs exportados exitosamente"


@dataclass
class AuditExportResult:
    """Export JSON: misma página que la consulta + metadatos del export."""

    page: Optional[AuditPage] = None
    exported_at: Optional[datetime] = None
    error: Optional[AuditError] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": EXPORT_MESSAGE,
            "format": "json",
            "data": self.page.to_dict() if self.page else None,
            "timestamp": to_iso_utc(self.exported_at),
        }
