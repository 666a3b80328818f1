"""USE CASE: User Activity Summary (totales y primera/última actividad por usuario)."""

from __future__ import annotations

from ....domain.repositories import AuditLogRepository
from .audit_results import UserActivityResult


class GetUserActivitySummaryUseCase:
    def __init__(self, repository: AuditLogRepository) -> None:
        self._audit = repository

    def execute(self) -> UserActivityResult:
        return UserActivityResult(users=self._audit.user_activity())
