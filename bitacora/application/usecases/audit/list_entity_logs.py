"""
===============================================================================
USE CASE: List Entity Logs (historial de un registro)
===============================================================================

Responsibilities:
    - Devolver las entradas de una entidad + id concretos, timestamp DESC.
    - Validar la entidad contra el set cerrado.

Collaborators:
    - ListAuditLogsUseCase (reusa filtros y paginación)
===============================================================================
"""

from __future__ import annotations

from typing import Any

from .audit_filters import AuditQueryInput
from .audit_results import AuditError, AuditErrorCode, AuditPageResult
from .list_audit_logs import ListAuditLogsUseCase


class ListEntityLogsUseCase:
    def __init__(self, list_logs: ListAuditLogsUseCase) -> None:
        self._list_logs = list_logs

    def execute(
        self, entity: Any, entity_id: Any, *, page: Any = None, limit: Any = None
    ) -> AuditPageResult:
        if not str(entity_id or "").strip():
            return AuditPageResult(
                error=AuditError(
                    code=AuditErrorCode.VALIDATION_ERROR,
                    message="entityId es obligatorio",
                    field="entityId",
                )
            )
        return self._list_logs.execute(
            AuditQueryInput(
                entity=entity,
                entity_id=entity_id,
                page=page,
                limit=limit,
                sort_by="timestamp",
                sort_order="DESC",
            )
        )
