"""
===============================================================================
USE CASES: Get / List / List Deleted Reports (Query)
===============================================================================

Responsibilities:
    - GetReportUseCase: un reporte (activo salvo include_deleted).
    - ListReportsUseCase: página de reportes (fecha DESC, id DESC).
    - ListDeletedReportsUseCase: papelera (deleted_at DESC) con motivo/actor.
===============================================================================
"""

from __future__ import annotations

from typing import Final

from ....domain.reports import ReportKind
from ....domain.repositories import ReportRepository
from .report_access import not_found
from .report_results import ReportListResult, ReportResult

_DEFAULT_LIMIT: Final[int] = 50
_MAX_LIMIT: Final[int] = 200


class GetReportUseCase:
    def __init__(self, report_repository: ReportRepository) -> None:
        self._reports = report_repository

    def execute(
        self, kind: ReportKind, report_id: int, *, include_deleted: bool = False
    ) -> ReportResult:
        report = self._reports.get(kind, report_id, include_deleted=include_deleted)
        if report is None:
            return ReportResult(error=not_found(kind, report_id))
        return ReportResult(report=report)


class ListReportsUseCase:
    def __init__(self, report_repository: ReportRepository) -> None:
        self._reports = report_repository

    def execute(
        self,
        kind: ReportKind,
        *,
        include_deleted: bool = False,
        limit: int = _DEFAULT_LIMIT,
        offset: int = 0,
    ) -> ReportListResult:
        safe_limit = _DEFAULT_LIMIT if limit <= 0 else min(limit, _MAX_LIMIT)
        return ReportListResult(
            reports=self._reports.list_reports(
                kind,
                include_deleted=include_deleted,
                limit=safe_limit,
                offset=max(0, offset),
            )
        )


class ListDeletedReportsUseCase:
    def __init__(self, report_repository: ReportRepository) -> None:
        self._reports = report_repository

    def execute(self, kind: ReportKind) -> ReportListResult:
        return ReportListResult(reports=self._reports.list_deleted(kind))
