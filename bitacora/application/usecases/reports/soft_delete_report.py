"""
===============================================================================
USE CASE: Soft Delete Report
===============================================================================

Business Goal:
    Retirar un reporte de las consultas normales sin perderlo: se guarda
    cuándo, por qué y quién lo borró, y se puede restaurar después.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    SoftDeleteReportUseCase

Responsibilities:
    - Marcar deleted_at / delete_reason / deleted_by_id en una única escritura.
    - Registrar auditoría DELETE con changesBefore (estado previo) tras el commit.
    - Devolver ack {ok, id, reason}.

Rules:
    R1) Inexistente (en cualquier estado) => NOT_FOUND.
    R2) Re-borrar un reporte ya borrado sobrescribe motivo/actor/fecha y
        vuelve a auditar DELETE.
    R3) Falla de auditoría nunca revierte ni se propaga (recorder best-effort).
    R4) ConflictError del store => CONFLICT.
===============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import AuditEntity, utcnow
from ....domain.report_rules import blank_to_none
from ....domain.reports import ReportKind
from ....domain.repositories import ReportRepository
from ...audit.recorder import AuditRecorder
from .report_access import NO_META, RequestMeta, conflict, not_found
from .report_results import SoftDeleteResult

logger = logging.getLogger(__name__)


class SoftDeleteReportUseCase:
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
        self,
        kind: ReportKind,
        report_id: int,
        reason: Optional[str] = None,
        meta: RequestMeta = NO_META,
    ) -> SoftDeleteResult:
        reason = blank_to_none(reason)

        try:
            change = self._reports.soft_delete(
                kind,
                report_id,
                reason=reason,
                deleted_by_id=meta.actor_id,
                deleted_at=self._clock(),
            )
        except ConflictError as exc:
            return SoftDeleteResult(ok=False, id=report_id, error=conflict(exc))

        if change is None:
            return SoftDeleteResult(
                ok=False, id=report_id, error=not_found(kind, report_id)
            )

        if change.before.is_deleted:
            logger.info(
                "Reporte re-borrado (se sobrescribe motivo/actor)",
                extra={"report_kind": kind.value, "report_id": report_id},
            )

        if self._recorder is not None:
            self._recorder.log_delete(
                AuditEntity.REPORTES,
                report_id,
                change.before.to_dict(),
                **meta.audit_kwargs(kind=kind.value, reason=reason),
            )

        return SoftDeleteResult(ok=True, id=report_id, reason=reason)
