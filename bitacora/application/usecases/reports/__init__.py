"""
===============================================================================
REPORT USE CASES PACKAGE (Public API / Exports)
===============================================================================

Comandos (validación + soft-delete/restore + auditoría post-commit) y
consultas sobre reportes municipales y de alquiler.
===============================================================================
"""

from .create_report import CreateReportUseCase
from .list_reports import GetReportUseCase, ListDeletedReportsUseCase, ListReportsUseCase
from .report_access import RequestMeta
from .report_results import (
    ReportError,
    ReportErrorCode,
    ReportListResult,
    ReportResult,
    RestoreResult,
    SoftDeleteResult,
)
from .restore_report import RestoreReportUseCase
from .soft_delete_report import SoftDeleteReportUseCase
from .update_report import UpdateReportUseCase

__all__ = [
    "CreateReportUseCase",
    "UpdateReportUseCase",
    "SoftDeleteReportUseCase",
    "RestoreReportUseCase",
    "GetReportUseCase",
    "ListReportsUseCase",
    "ListDeletedReportsUseCase",
    "RequestMeta",
    "ReportError",
    "ReportErrorCode",
    "ReportListResult",
    "ReportResult",
    "RestoreResult",
    "SoftDeleteResult",
]
