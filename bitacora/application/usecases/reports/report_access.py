"""
===============================================================================
REPORT USE CASES — helpers compartidos
===============================================================================

Responsibilities:
    - RequestMeta: quién ejecuta y desde dónde (para deleted_by_id y auditoría).
    - Construcción consistente de ReportError (validación, not found, conflicto).
    - Emisión de auditoría post-commit (sólo si hay recorder).

Notas:
    - Los use cases llaman a estos helpers DESPUÉS de confirmar la escritura.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import AuditActor
from ....domain.report_rules import ReportValidationError
from ....domain.reports import ReportKind
from .report_results import ReportError, ReportErrorCode


@dataclass(frozen=True)
class RequestMeta:
    actor: Optional[AuditActor] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    url: Optional[str] = None

    @property
    def actor_id(self) -> Optional[str]:
        return self.actor.user_id if self.actor else None

    def audit_kwargs(self, **metadata: Any) -> dict[str, Any]:
        """kwargs para los helpers log_* del recorder."""
        return {
            "actor": self.actor,
            "user_agent": self.user_agent,
            "ip": self.ip,
            "url": self.url,
            "metadata": metadata or None,
        }


NO_META = RequestMeta()


def validation_failed(exc: ReportValidationError) -> ReportError:
    return ReportError(
        code=ReportErrorCode.VALIDATION_ERROR,
        message=exc.message,
        details=[exc.to_dict()],
    )


def unknown_fields(names: set[str]) -> ReportError:
    fields = ", ".join(sorted(names))
    return ReportError(
        code=ReportErrorCode.VALIDATION_ERROR,
        message=f"Campos no editables o desconocidos: {fields}",
        details=[
            {"field": name, "code": "UNKNOWN_FIELD", "msg": "Campo no permitido"}
            for name in sorted(names)
        ],
    )


def not_found(kind: ReportKind, report_id: int) -> ReportError:
    return ReportError(
        code=ReportErrorCode.NOT_FOUND,
        message=f"{kind.label} ID {report_id} no encontrado",
    )


def conflict(exc: ConflictError) -> ReportError:
    return ReportError(code=ReportErrorCode.CONFLICT, message=exc.message)
