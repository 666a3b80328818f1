"""
===============================================================================
AUDIT USE CASES PACKAGE (Public API / Exports)
===============================================================================

Casos de uso de sólo lectura sobre el log de auditoría:
    - ListAuditLogsUseCase / ListEntityLogsUseCase / ListUserLogsUseCase
    - GetAuditStatsUseCase
    - GetUserActivitySummaryUseCase
    - ExportAuditLogsUseCase
===============================================================================
"""

from .audit_filters import AuditQueryInput, build_audit_filter
from .audit_results import (
    AuditError,
    AuditErrorCode,
    AuditExportResult,
    AuditPageResult,
    AuditStatsResult,
    UserActivityResult,
)
from .export_audit_logs import ExportAuditLogsUseCase
from .get_audit_stats import GetAuditStatsUseCase
from .get_user_activity import GetUserActivitySummaryUseCase
from .list_audit_logs import ListAuditLogsUseCase
from .list_entity_logs import ListEntityLogsUseCase
from .list_user_logs import ListUserLogsUseCase

__all__ = [
    "AuditQueryInput",
    "build_audit_filter",
    "AuditError",
    "AuditErrorCode",
    "AuditExportResult",
    "AuditPageResult",
    "AuditStatsResult",
    "UserActivityResult",
    "ExportAuditLogsUseCase",
    "GetAuditStatsUseCase",
    "GetUserActivitySummaryUseCase",
    "ListAuditLogsUseCase",
    "ListEntityLogsUseCase",
    "ListUserLogsUseCase",
]
