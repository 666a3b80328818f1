"""
===============================================================================
USE CASE: List Audit Logs (Query)
===============================================================================

Business Goal:
    Consultar el historial de auditoría con filtros, búsqueda libre, orden y
    paginación por offset.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    ListAuditLogsUseCase

Responsibilities:
    - Normalizar parámetros crudos (audit_filters.build_audit_filter).
    - Delegar la consulta al AuditLogRepository.
    - Devolver AuditPageResult (entries + total + page/limit/totalPages).

Collaborators:
    - AuditLogRepository.query(filter) -> (entries, total)

Error Mapping:
    - VALIDATION_ERROR: cualquier parámetro inválido (ver audit_filters).

Notas:
    - Sólo lectura: nunca muta el store.
===============================================================================
"""

from __future__ import annotations

from ....domain.audit import AuditPage
from ....domain.repositories import AuditLogRepository
from .audit_filters import DEFAULT_LIMIT, MAX_LIMIT, AuditQueryInput, build_audit_filter
from .audit_results import AuditPageResult


class ListAuditLogsUseCase:
    def __init__(
        self,
        repository: AuditLogRepository,
        *,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._audit = repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    def execute(self, params: AuditQueryInput) -> AuditPageResult:
        filters, error = build_audit_filter(
            params, default_limit=self._default_limit, max_limit=self._max_limit
        )
        if error is not None:
            return AuditPageResult(error=error)

        entries, total = self._audit.query(filters)
        return AuditPageResult(
            page=AuditPage(
                entries=entries, total=total, page=filters.page, limit=filters.limit
            )
        )
