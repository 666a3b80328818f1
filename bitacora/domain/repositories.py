"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for audit entries and reports (ports).
- Keep application/domain independent from infrastructure (PostgreSQL, in-memory).
- Enable dependency inversion and unit testing with fake repositories.

Collaborators
- domain.audit: AuditEntry, AuditLogFilter, stats value objects
- domain.reports: Report, ReportKind
- infrastructure.repositories: postgres/* and in_memory/* implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Implementations MUST match method signatures exactly.
- Audit store is append-only: there is no update/delete for entries.

Notes
- typing.Protocol for structural subtyping.
- Aggregation primitives are small on purpose: the stats use case composes
  them into windows, trends and peaks.
"""

from datetime import datetime
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

from .audit import (
    ActorActivity,
    AuditAction,
    AuditEntry,
    AuditLogFilter,
    DayCount,
    SecurityEvent,
    UserActivitySummary,
)
from .reports import Report, ReportKind


class AuditLogRepository(Protocol):
    """R: Append-only store of audit entries + aggregation primitives."""

    def append(self, entry: AuditEntry) -> AuditEntry:
        """
        R: Persist an entry, assigning id and timestamp when missing.

        Returns the stored entry (with id/timestamp).
        """
        ...

    def query(self, filters: AuditLogFilter) -> Tuple[List[AuditEntry], int]:
        """R: Page of entries matching filters + total matches (pre-paging)."""
        ...

    def count(
        self,
        *,
        action: Optional[AuditAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """R: Count entries with start <= timestamp < end (bounds optional)."""
        ...

    def count_by(self, field: str) -> dict[str, int]:
        """R: Counts grouped by "action" or "entity" (keys are stored values)."""
        ...

    def top_actors(self, limit: int) -> List[ActorActivity]:
        """R: Users with most entries (user_id not null), count DESC."""
        ...

    def count_by_hour(self) -> List[int]:
        """R: 24 counters, index = UTC hour of day."""
        ...

    def count_by_day(self, since: datetime) -> List[DayCount]:
        """R: Entries per UTC calendar day since `since`, only active days, day DESC."""
        ...

    def security_events(
        self, actions: Sequence[AuditAction]
    ) -> List[SecurityEvent]:
        """R: Count + latest timestamp per action (only actions present)."""
        ...

    def user_activity(self) -> List[UserActivitySummary]:
        """R: Per-user totals and first/last activity, total DESC."""
        ...


class ReportChange(NamedTuple):
    """Before/after pair of a single atomic transition."""

    before: Report
    after: Report


class ReportRepository(Protocol):
    """
    R: Persistence for municipal and rental reports with soft-delete.

    Implementations must guarantee:
      - Normal reads hide soft-deleted rows unless include_deleted=True.
      - soft_delete / restore are single atomic writes that return the
        state captured inside the same transaction.
      - update with a stale expected_version raises ConflictError.
    """

    def create(self, report: Report) -> Report:
        """R: Insert, assigning id, created_at/updated_at and version=1."""
        ...

    def get(
        self, kind: ReportKind, report_id: int, *, include_deleted: bool = False
    ) -> Optional[Report]:
        ...

    def update(self, report: Report, *, expected_version: int) -> Report:
        """R: Replace editable fields; bumps version. ConflictError if stale."""
        ...

    def soft_delete(
        self,
        kind: ReportKind,
        report_id: int,
        *,
        reason: str,
        deleted_by_id: Optional[str],
        deleted_at: datetime,
    ) -> Optional[ReportChange]:
        """
        R: Mark as deleted (re-deleting overwrites reason/actor/timestamp).

        Returns None if the report does not exist.
        """
        ...

    def restore(
        self, kind: ReportKind, report_id: int, *, restored_at: datetime
    ) -> Optional[ReportChange]:
        """R: Clear the deletion cluster. None if the report does not exist."""
        ...

    def list_reports(
        self,
        kind: ReportKind,
        *,
        include_deleted: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Report]:
        """R: Reports ordered by fecha DESC, id DESC."""
        ...

    def list_deleted(self, kind: ReportKind) -> List[Report]:
        """R: Soft-deleted reports ordered by deleted_at DESC."""
        ...
