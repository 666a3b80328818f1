"""
===============================================================================
USE CASE: Export Audit Logs (JSON)
===============================================================================

Responsibilities:
    - Ejecutar la misma consulta que ListAuditLogs.
    - Envolver la página con metadatos del export (formato, timestamp).

Notas:
    - Sólo formato JSON. El timestamp del export es UTC.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from ....domain.audit import utcnow
from .audit_filters import AuditQueryInput
from .audit_results import AuditExportResult
from .list_audit_logs import ListAuditLogsUseCase


class ExportAuditLogsUseCase:
    def __init__(
        self,
        list_logs: ListAuditLogsUseCase,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._list_logs = list_logs
        self._clock = clock

    def execute(self, params: AuditQueryInput) -> AuditExportResult:
        result = self._list_logs.execute(params)
        if result.error is not None:
            return AuditExportResult(error=result.error)
        return AuditExportResult(page=result.page, exported_at=self._clock())
