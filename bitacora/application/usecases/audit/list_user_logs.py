"""USE CASE: List User Logs (acciones de un usuario, timestamp DESC)."""

from __future__ import annotations

from typing import Any

from .audit_filters import AuditQueryInput
from .audit_results import AuditError, AuditErrorCode, AuditPageResult
from .list_audit_logs import ListAuditLogsUseCase


class ListUserLogsUseCase:
    def __init__(self, list_logs: ListAuditLogsUseCase) -> None:
        self._list_logs = list_logs

    def execute(
        self, user_id: Any, *, page: Any = None, limit: Any = None
    ) -> AuditPageResult:
        if not str(user_id or "").strip():
            return AuditPageResult(
                error=AuditError(
                    code=AuditErrorCode.VALIDATION_ERROR,
                    message="userId es obligatorio",
                    field="userId",
                )
            )
        return self._list_logs.execute(
            AuditQueryInput(
                user_id=user_id,
                page=page,
                limit=limit,
                sort_by="timestamp",
                sort_order="DESC",
            )
        )
