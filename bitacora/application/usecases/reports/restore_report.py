"""
===============================================================================
USE CASE: Restore Report
===============================================================================

Business Goal:
    Devolver a activo un reporte soft-deleted, preservando la procedencia del
    borrado en restoreInfo.

Rules:
    R1) Inexistente (en cualquier estado) => NOT_FOUND.
    R2) Captura + limpieza de (deleted_at, delete_reason, deleted_by_id) en
        una única escritura atómica (ReportRepository.restore).
    R3) Restaurar un reporte no borrado es éxito; restoreInfo queda en nulls.
    R4) Auditoría RESTORE con changesAfter (estado restaurado) tras el commit.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import AuditEntity, utcnow
from ....domain.reports import ReportKind, RestoreInfo
from ....domain.repositories import ReportRepository
from ...audit.recorder import AuditRecorder
from .report_access import NO_META, RequestMeta, conflict, not_found
from .report_results import RestoreResult


class RestoreReportUseCase:
    def __init__(
        self,
        report_repository: ReportRepository,
        recorder: Optional[AuditRecorder] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._reports = report_repository
        self._recorder = recorder
        self._clock = clock

    def execute(
        self, kind: ReportKind, report_id: int, meta: RequestMeta = NO_META
    ) -> RestoreResult:
        restored_at = self._clock()
        try:
            change = self._reports.restore(kind, report_id, restored_at=restored_at)
        except ConflictError as exc:
            return RestoreResult(error=conflict(exc))

        if change is None:
            return RestoreResult(error=not_found(kind, report_id))

        restore_info = RestoreInfo(
            was_deleted_at=change.before.deleted_at,
            delete_reason=change.before.delete_reason,
            deleted_by_id=change.before.deleted_by_id,
            restored_at=restored_at,
        )

        if self._recorder is not None:
            self._recorder.log_restore(
                AuditEntity.REPORTES,
                report_id,
                change.after.to_dict(),
                **meta.audit_kwargs(
                    kind=kind.value, restoreInfo=restore_info.to_dict()
                ),
            )

        return RestoreResult(
            report=change.after,
            restore_info=restore_info,
            message=f"{kind.label} ID {report_id} restaurado exitosamente",
        )
