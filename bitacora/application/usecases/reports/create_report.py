"""
===============================================================================
USE CASE: Create Report (municipal / alquiler)
===============================================================================

Business Goal:
    Registrar un reporte de maquinaria aplicando el motor de validación
    (estación, fuente canónica, legalidad de boletas) antes de persistir.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    CreateReportUseCase

Responsibilities:
    - Rechazar campos no editables.
    - Normalizar y validar (report_rules.normalize_and_validate).
    - Persistir vía ReportRepository.create.
    - Registrar auditoría CREATE (changesAfter) tras el commit.

Collaborators:
    - ReportRepository
    - AuditRecorder (opcional; best-effort)

Error Mapping:
    - VALIDATION_ERROR: campos desconocidos o ReportValidationError
    - CONFLICT: ConflictError del store
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import AuditEntity
from ....domain.report_rules import ReportValidationError, normalize_and_validate
from ....domain.reports import EDITABLE_FIELDS, Report, ReportKind
from ....domain.repositories import ReportRepository
from ...audit.recorder import AuditRecorder
from .report_access import (
    NO_META,
    RequestMeta,
    conflict,
    unknown_fields,
    validation_failed,
)
from .report_results import ReportResult

logger = logging.getLogger(__name__)


class CreateReportUseCase:
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
        fields: Mapping[str, Any],
        meta: RequestMeta = NO_META,
    ) -> ReportResult:
        extra = set(fields) - EDITABLE_FIELDS
        if extra:
            return ReportResult(error=unknown_fields(extra))

        try:
            draft = normalize_and_validate(
                Report(kind=kind, **fields),
                enforce_known_sources=self._enforce_known_sources,
            )
        except ReportValidationError as exc:
            return ReportResult(error=validation_failed(exc))

        try:
            created = self._reports.create(draft)
        except ConflictError as exc:
            return ReportResult(error=conflict(exc))

        logger.info(
            "Reporte creado",
            extra={"report_kind": kind.value, "report_id": created.id},
        )

        if self._recorder is not None:
            self._recorder.log_create(
                AuditEntity.REPORTES,
                created.id,
                created.to_dict(),
                **meta.audit_kwargs(kind=kind.value),
            )

        return ReportResult(report=created)
