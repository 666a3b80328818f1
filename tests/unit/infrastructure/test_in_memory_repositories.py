"""
Name: In-Memory Repository Tests

Responsibilities:
  - Audit store: id/timestamp assignment, filters, ordering, aggregations
  - Report store: copies (no aliasing), optimistic version, soft delete state
"""

from datetime import datetime, timedelta, timezone

import pytest

from bitacora.crosscutting.exceptions import ConflictError
from bitacora.domain.audit import (
    AuditAction,
    AuditEntity,
    AuditEntry,
    AuditLogFilter,
    SortOrder,
)
from bitacora.domain.reports import Report, ReportKind

pytestmark = pytest.mark.unit

T0 = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


def _entry(minutes: int, **kwargs) -> AuditEntry:
    return AuditEntry(
        action=kwargs.pop("action", AuditAction.CREATE),
        entity=kwargs.pop("entity", AuditEntity.REPORTES),
        description=kwargs.pop("description", "x"),
        timestamp=T0 + timedelta(minutes=minutes),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


def test_append_assigns_id_and_clock_timestamp(audit_repo, fixed_now):
    stored = audit_repo.append(
        AuditEntry(action=AuditAction.SYSTEM, entity=AuditEntity.SYSTEM, description="x")
    )

    assert stored.id is not None
    assert stored.timestamp == fixed_now


def test_date_range_is_inclusive_on_both_ends(audit_repo):
    for m in (0, 10, 20):
        audit_repo.append(_entry(m))

    _, total = audit_repo.query(
        AuditLogFilter(start_date=T0, end_date=T0 + timedelta(minutes=10))
    )

    assert total == 2


def test_count_end_is_exclusive(audit_repo):
    for m in (0, 10):
        audit_repo.append(_entry(m))

    assert audit_repo.count(start=T0, end=T0 + timedelta(minutes=10)) == 1
    assert audit_repo.count(action=AuditAction.DELETE) == 0


def test_sort_by_email_ascending_nulls_last(audit_repo):
    audit_repo.append(_entry(0, user_email="b@x.com"))
    audit_repo.append(_entry(1))
    audit_repo.append(_entry(2, user_email="a@x.com"))

    entries, _ = audit_repo.query(
        AuditLogFilter(sort_by="user_email", sort_order=SortOrder.ASC)
    )

    assert [e.user_email for e in entries] == ["a@x.com", "b@x.com", None]


def test_count_by_rejects_unknown_field(audit_repo):
    with pytest.raises(ValueError):
        audit_repo.count_by("description")


def test_count_by_day_lists_only_active_days_newest_first(audit_repo):
    audit_repo.append(_entry(0))
    audit_repo.append(_entry(60 * 24 * 2))
    audit_repo.append(_entry(60 * 24 * 2 + 5))

    days = audit_repo.count_by_day(T0 - timedelta(days=1))

    assert [(d.day, d.count) for d in days] == [("2025-03-03", 2), ("2025-03-01", 1)]


def test_security_events_keep_last_occurrence(audit_repo):
    audit_repo.append(_entry(0, action=AuditAction.DELETE))
    audit_repo.append(_entry(30, action=AuditAction.DELETE))

    [event] = audit_repo.security_events([AuditAction.AUTH, AuditAction.DELETE])

    assert event.type == "DELETE"
    assert event.count == 2
    assert event.last_occurrence == T0 + timedelta(minutes=30)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def _report(**kwargs) -> Report:
    return Report(kind=ReportKind.MUNICIPAL, fecha="2025-03-01", tipo_maquinaria="vagoneta", **kwargs)


def test_create_returns_copies(report_repo):
    created = report_repo.create(_report(detalles={"nota": "a"}))
    created.detalles["nota"] = "mutado"

    assert report_repo.get(ReportKind.MUNICIPAL, created.id).detalles == {"nota": "a"}


def test_ids_are_unique_across_kinds(report_repo):
    a = report_repo.create(_report())
    b = report_repo.create(Report(kind=ReportKind.RENTAL, tipo_maquinaria="vagoneta"))

    assert a.id != b.id


def test_update_requires_current_version(report_repo):
    created = report_repo.create(_report())
    created.distrito = "Norte"

    updated = report_repo.update(created, expected_version=1)

    assert updated.version == 2
    with pytest.raises(ConflictError):
        report_repo.update(created, expected_version=1)


def test_update_on_deleted_row_conflicts(report_repo, fixed_now):
    created = report_repo.create(_report())
    report_repo.soft_delete(
        ReportKind.MUNICIPAL, created.id, reason=None, deleted_by_id=None, deleted_at=fixed_now
    )

    with pytest.raises(ConflictError):
        report_repo.update(created, expected_version=2)


def test_soft_delete_returns_before_and_after(report_repo, fixed_now):
    created = report_repo.create(_report())

    change = report_repo.soft_delete(
        ReportKind.MUNICIPAL,
        created.id,
        reason="duplicado",
        deleted_by_id="7",
        deleted_at=fixed_now,
    )

    assert change.before.deleted_at is None
    assert change.after.deleted_at == fixed_now
    assert change.after.version == created.version + 1
    assert report_repo.soft_delete(
        ReportKind.RENTAL, created.id, reason=None, deleted_by_id=None, deleted_at=fixed_now
    ) is None


def test_top_actors_use_latest_email_and_break_ties_by_user_id(audit_repo):
    audit_repo.append(_entry(0, user_id="9", user_email="nueve@muni.go.cr"))
    audit_repo.append(_entry(5, user_id="2", user_email="dos@muni.go.cr"))
    audit_repo.append(_entry(1, user_id="9", user_email=None))
    audit_repo.append(_entry(9, user_id="2", user_email="dos.nuevo@muni.go.cr"))

    actors = audit_repo.top_actors(10)

    assert [(a.user_id, a.user_email, a.count) for a in actors] == [
        ("2", "dos.nuevo@muni.go.cr", 2),
        ("9", None, 2),
    ]
