"""
===============================================================================
TARJETA CRC — bitacora/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, recorder, use cases) siguiendo DIP.
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache).
  - Decidir Postgres vs in-memory según Settings.

Colaboradores:
  - bitacora.crosscutting.config.get_settings
  - bitacora.domain.repositories (puertos)
  - bitacora.infrastructure.repositories (implementaciones)
  - bitacora.application (recorder + casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI (solo expone factories).
  - AuditRecorder se construye una vez por proceso; api/main.py lo drena
    en el shutdown (shutdown_recorder).
===============================================================================
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache

from .application.audit import AuditRecorder
from .application.usecases.audit import (
    ExportAuditLogsUseCase,
    GetAuditStatsUseCase,
    GetUserActivitySummaryUseCase,
    ListAuditLogsUseCase,
    ListEntityLogsUseCase,
    ListUserLogsUseCase,
)
from .application.usecases.reports import (
    CreateReportUseCase,
    GetReportUseCase,
    ListDeletedReportsUseCase,
    ListReportsUseCase,
    RestoreReportUseCase,
    SoftDeleteReportUseCase,
    UpdateReportUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import AuditLogRepository, ReportRepository
from .infrastructure.repositories import (
    InMemoryAuditLogRepository,
    InMemoryReportRepository,
    PostgresAuditLogRepository,
    PostgresReportRepository,
)

# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_audit_log_repository() -> AuditLogRepository:
    """Auditoría: Postgres si hay DATABASE_URL (y no es test); si no, in-memory."""
    if get_settings().uses_database():
        return PostgresAuditLogRepository()
    return InMemoryAuditLogRepository()


@lru_cache(maxsize=1)
def get_report_repository() -> ReportRepository:
    """Reportes: mismo criterio que auditoría."""
    if get_settings().uses_database():
        return PostgresReportRepository()
    return InMemoryReportRepository()


# =============================================================================
# Auditoría (recorder singleton)
# =============================================================================


@lru_cache(maxsize=1)
def get_audit_recorder() -> AuditRecorder:
    """
    Recorder único por proceso.

    audit_async=True => escrituras fire-and-forget en un ThreadPoolExecutor.
    """
    settings = get_settings()
    executor = None
    if settings.audit_async:
        executor = ThreadPoolExecutor(
            max_workers=settings.audit_max_workers,
            thread_name_prefix="audit-writer",
        )
    return AuditRecorder(get_audit_log_repository(), executor=executor)


def shutdown_recorder() -> None:
    """Drena escrituras pendientes (si el recorder llegó a construirse)."""
    if get_audit_recorder.cache_info().currsize:
        get_audit_recorder().shutdown(wait=True)
        get_audit_recorder.cache_clear()


# =============================================================================
# Use cases: auditoría (consultas)
# =============================================================================


def get_list_audit_logs_use_case() -> ListAuditLogsUseCase:
    settings = get_settings()
    return ListAuditLogsUseCase(
        get_audit_log_repository(),
        default_limit=settings.audit_default_page_size,
        max_limit=settings.audit_max_page_size,
    )


def get_list_entity_logs_use_case() -> ListEntityLogsUseCase:
    return ListEntityLogsUseCase(get_list_audit_logs_use_case())


def get_list_user_logs_use_case() -> ListUserLogsUseCase:
    return ListUserLogsUseCase(get_list_audit_logs_use_case())


def get_export_audit_logs_use_case() -> ExportAuditLogsUseCase:
    return ExportAuditLogsUseCase(get_list_audit_logs_use_case())


def get_audit_stats_use_case() -> GetAuditStatsUseCase:
    return GetAuditStatsUseCase(
        get_audit_log_repository(), top_actors=get_settings().audit_top_actors
    )


def get_user_activity_use_case() -> GetUserActivitySummaryUseCase:
    return GetUserActivitySummaryUseCase(get_audit_log_repository())


# =============================================================================
# Use cases: reportes
# =============================================================================


def get_create_report_use_case() -> CreateReportUseCase:
    return CreateReportUseCase(
        get_report_repository(),
        get_audit_recorder(),
        enforce_known_sources=get_settings().enforce_known_sources,
    )


def get_update_report_use_case() -> UpdateReportUseCase:
    return UpdateReportUseCase(
        get_report_repository(),
        get_audit_recorder(),
        enforce_known_sources=get_settings().enforce_known_sources,
    )


def get_soft_delete_report_use_case() -> SoftDeleteReportUseCase:
    return SoftDeleteReportUseCase(get_report_repository(), get_audit_recorder())


def get_restore_report_use_case() -> RestoreReportUseCase:
    return RestoreReportUseCase(get_report_repository(), get_audit_recorder())


def get_get_report_use_case() -> GetReportUseCase:
    return GetReportUseCase(get_report_repository())


def get_list_reports_use_case() -> ListReportsUseCase:
    return ListReportsUseCase(get_report_repository())


def get_list_deleted_reports_use_case() -> ListDeletedReportsUseCase:
    return ListDeletedReportsUseCase(get_report_repository())
