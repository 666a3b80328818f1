"""
===============================================================================
USE CASE: Update Report (merge parcial + revalidación)
===============================================================================

Business Goal:
    Editar un reporte activo. Los cambios se mezclan sobre el estado actual y
    el registro completo vuelve a pasar por el motor de validación, así las
    reglas de boleta valen después de cualquier escritura.

Rules:
    R1) Sólo reportes activos (soft-deleted => NOT_FOUND).
    R2) expected_version (opcional) distinta a la actual => CONFLICT.
    R3) La escritura es condicional a la versión leída (optimista).
    R4) Auditoría UPDATE con changesBefore/changesAfter tras el commit.
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import AuditEntity
from ....domain.report_rules import ReportValidationError, normalize_and_validate
from ....domain.reports import EDITABLE_FIELDS, ReportKind
from ....domain.repositories import ReportRepository
from ...audit.recorder import AuditRecorder
from .report_access import (
    NO_META,
    RequestMeta,
    conflict,
    not_found,
    unknown_fields,
    validation_failed,
)
from .report_results import ReportError, ReportErrorCode, ReportResult

logger = logging.getLogger(__name__)


class UpdateReportUseCase:
    def __init__(
        self,
        report_repository: ReportRepository,
        recorder: Optional[AuditRecorder] = None,
        *,
        enforce_known_sources: bool = False,
    ) -> None:
        self._reports = report_repository
        self._recorder = recorder
        self._enforce_known_sources = enforce_known_sources

    def execute(
        self,
        kind: ReportKind,
        report_id: int,
        changes: Mapping[str, Any],
        meta: RequestMeta = NO_META,
        *,
        expected_version: Optional[int] = None,
    ) -> ReportResult:
        extra = set(changes) - EDITABLE_FIELDS
        if extra:
            return ReportResult(error=unknown_fields(extra))

        current = self._reports.get(kind, report_id)
        if current is None:
            return ReportResult(error=not_found(kind, report_id))

        if expected_version is not None and expected_version != current.version:
            return ReportResult(
                error=ReportError(
                    code=ReportErrorCode.CONFLICT,
                    message=(
                        f"Versión desactualizada: esperada {expected_version}, "
                        f"actual {current.version}"
                    ),
                )
            )

        try:
            merged = normalize_and_validate(
                replace(current, **changes),
                enforce_known_sources=self._enforce_known_sources,
            )
        except ReportValidationError as exc:
            return ReportResult(error=validation_failed(exc))

        try:
            updated = self._reports.update(merged, expected_version=current.version)
        except ConflictError as exc:
            return ReportResult(error=conflict(exc))

        if self._recorder is not None:
            self._recorder.log_update(
                AuditEntity.REPORTES,
                updated.id,
                current.to_dict(),
                updated.to_dict(),
                **meta.audit_kwargs(kind=kind.value),
            )

        return ReportResult(report=updated)
