"""
===============================================================================
REPORT USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Business Goal:
    Contrato estable de resultados para create/update/soft-delete/restore de
    reportes. Los errores de negocio viajan en el resultado (no como
    excepción) y el adaptador HTTP los mapea a status codes.

Error codes:
    - VALIDATION_ERROR: el motor de validación rechazó el registro.
    - NOT_FOUND: no existe un reporte con ese id (en ningún estado).
    - CONFLICT: modificación concurrente detectada por el store.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from ....domain.reports import Report, RestoreInfo


class ReportErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class ReportError:
    """
    Error de caso de uso.

    details: errores por campo ({field, code, msg}) para VALIDATION_ERROR.
    """

    code: ReportErrorCode
    message: str
    details: Optional[List[dict[str, Any]]] = None


@dataclass
class ReportResult:
    report: Optional[Report] = None
    error: Optional[ReportError] = None


@dataclass
class ReportListResult:
    reports: List[Report] = field(default_factory=list)
    error: Optional[ReportError] = None


@dataclass
class SoftDeleteResult:
    """Ack del borrado lógico: {ok, id, reason}."""

    ok: bool
    id: Optional[int] = None
    reason: Optional[str] = None
    error: Optional[ReportError] = None

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "id": self.id, "reason": self.reason}


@dataclass
class RestoreResult:
    report: Optional[Report] = None
    restore_info: Optional[RestoreInfo] = None
    message: Optional[str] = None
    error: Optional[ReportError] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "report": self.report.to_dict() if self.report else None,
            "restoreInfo": self.restore_info.to_dict() if self.restore_info else None,
        }
