"""
Name: Report Use Case Tests

Responsibilities:
  - Create/update run the validation engine and audit after the write
  - Soft delete / restore round trip with restoreInfo
  - Failure isolation: audit store errors never undo or surface
  - NOT_FOUND / CONFLICT / VALIDATION_ERROR mapping
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from bitacora.application.audit import AuditRecorder
from bitacora.application.usecases.reports import (
    CreateReportUseCase,
    GetReportUseCase,
    ListDeletedReportsUseCase,
    ListReportsUseCase,
    ReportErrorCode,
    RequestMeta,
    RestoreReportUseCase,
    SoftDeleteReportUseCase,
    UpdateReportUseCase,
)
from bitacora.crosscutting.exceptions import ConflictError
from bitacora.domain.audit import AuditAction, AuditLogFilter
from bitacora.domain.reports import ReportKind

pytestmark = pytest.mark.unit

MUNICIPAL = ReportKind.MUNICIPAL

VALID_FIELDS = {
    "fecha": "2025-03-10",
    "tipo_actividad": "Acarreo",
    "tipo_maquinaria": "vagoneta",
    "placa": "sm-1234",
    "estacion": "10 + 20",
    "fuente": "Palo de Arco",
    "boleta": "123456",
    "cantidad": 12,
}


class _FailingAuditRepo:
    def append(self, entry):
        raise RuntimeError("audit store unavailable")


class _ConflictingReportRepo:
    """Delegado que simula una escritura concurrente en soft_delete."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, item):
        return getattr(self._inner, item)

    def soft_delete(self, *args, **kwargs):
        raise ConflictError("Reporte cambió durante el borrado")


def _audit_entries(audit_repo):
    entries, _ = audit_repo.query(AuditLogFilter(limit=100))
    return entries


@pytest.fixture
def meta(actor) -> RequestMeta:
    return RequestMeta(actor=actor, user_agent="pytest", ip="10.0.0.9", url="/v1/reports")


@pytest.fixture
def created(report_repo, recorder, meta):
    result = CreateReportUseCase(report_repo, recorder).execute(
        MUNICIPAL, VALID_FIELDS, meta
    )
    assert result.error is None
    return result.report


# ---------------------------------------------------------------------------
# Create / Update
# ---------------------------------------------------------------------------


def test_create_normalizes_and_audits(created, audit_repo, actor):
    assert created.id is not None
    assert created.estacion == "10+20"
    assert created.placa == "SM-1234"
    assert created.boleta == "123456"
    assert created.version == 1

    [entry] = _audit_entries(audit_repo)
    assert entry.action is AuditAction.CREATE
    assert entry.entity_id == str(created.id)
    assert entry.changes_after["estacion"] == "10+20"
    assert entry.user_id == actor.user_id
    assert entry.metadata == {"kind": "MUNICIPAL"}
    assert entry.description == "Se creó reporte del 2025-03-10 (Acarreo)"


def test_create_kylcsa_receipt_scenario(report_repo):
    result = CreateReportUseCase(report_repo).execute(
        ReportKind.RENTAL,
        {
            "tipo_maquinaria": "vagoneta",
            "fuente": "KYLCSA",
            "boleta": "123456",
            "boleta_kylcsa": "K-99",
        },
    )

    stored = report_repo.get(ReportKind.RENTAL, result.report.id)
    assert stored.boleta is None
    assert stored.boleta_kylcsa == "K-99"


def test_create_rejects_invalid_range_without_writing(report_repo, audit_repo, recorder):
    result = CreateReportUseCase(report_repo, recorder).execute(
        MUNICIPAL, {**VALID_FIELDS, "estacion": "20+10"}
    )

    assert result.error.code is ReportErrorCode.VALIDATION_ERROR
    assert result.error.details[0]["code"] == "INVALID_RANGE_ORDER"
    assert report_repo.list_reports(MUNICIPAL) == []
    assert _audit_entries(audit_repo) == []


def test_create_rejects_unknown_fields(report_repo):
    result = CreateReportUseCase(report_repo).execute(
        MUNICIPAL, {**VALID_FIELDS, "deleted_at": "2025-01-01", "version": 9}
    )

    assert result.error.code is ReportErrorCode.VALIDATION_ERROR
    assert {d["field"] for d in result.error.details} == {"deleted_at", "version"}


def test_create_with_enforced_sources(report_repo):
    result = CreateReportUseCase(report_repo, enforce_known_sources=True).execute(
        MUNICIPAL, {**VALID_FIELDS, "fuente": "Quebrador X"}
    )

    assert result.error.details[0]["code"] == "INVALID_SOURCE_VALUE"


def test_update_merges_and_revalidates(created, report_repo, recorder, audit_repo, meta):
    result = UpdateReportUseCase(report_repo, recorder).execute(
        MUNICIPAL, created.id, {"fuente": "Ríos", "horas": "4.5"}, meta
    )

    assert result.error is None
    assert result.report.fuente == "Ríos"
    assert result.report.boleta is None
    assert result.report.horas == 4.5
    assert result.report.placa == "SM-1234"
    assert result.report.version == 2

    update = _audit_entries(audit_repo)[0]
    assert update.action is AuditAction.UPDATE
    assert update.changes_before["boleta"] == "123456"
    assert update.changes_after["boleta"] is None


def test_update_with_stale_version_conflicts(created, report_repo):
    use_case = UpdateReportUseCase(report_repo)
    use_case.execute(MUNICIPAL, created.id, {"distrito": "Centro"})

    result = use_case.execute(
        MUNICIPAL, created.id, {"distrito": "Norte"}, expected_version=1
    )

    assert result.error.code is ReportErrorCode.CONFLICT
    assert report_repo.get(MUNICIPAL, created.id).distrito == "Centro"


def test_update_missing_or_deleted_is_not_found(created, report_repo):
    SoftDeleteReportUseCase(report_repo).execute(MUNICIPAL, created.id, "duplicado")
    use_case = UpdateReportUseCase(report_repo)

    assert use_case.execute(MUNICIPAL, created.id, {}).error.code is ReportErrorCode.NOT_FOUND
    assert use_case.execute(MUNICIPAL, 999, {}).error.code is ReportErrorCode.NOT_FOUND


def test_kinds_are_isolated(created, report_repo):
    result = GetReportUseCase(report_repo).execute(ReportKind.RENTAL, created.id)

    assert result.error.code is ReportErrorCode.NOT_FOUND
    assert result.error.message == f"Reporte de alquiler ID {created.id} no encontrado"


# ---------------------------------------------------------------------------
# Soft delete / restore
# ---------------------------------------------------------------------------


def test_soft_delete_then_restore_round_trip(
    created, report_repo, recorder, audit_repo, meta, actor, fixed_now
):
    delete = SoftDeleteReportUseCase(report_repo, recorder, clock=lambda: fixed_now)
    restore = RestoreReportUseCase(
        report_repo, recorder, clock=lambda: fixed_now + timedelta(hours=1)
    )

    ack = delete.execute(MUNICIPAL, created.id, "  registro duplicado ", meta)

    assert ack.to_dict() == {"ok": True, "id": created.id, "reason": "registro duplicado"}
    deleted = report_repo.get(MUNICIPAL, created.id, include_deleted=True)
    assert deleted.deleted_at == fixed_now
    assert deleted.deleted_by_id == actor.user_id
    assert report_repo.get(MUNICIPAL, created.id) is None

    result = restore.execute(MUNICIPAL, created.id, meta)

    assert result.error is None
    assert result.message == f"Reporte municipal ID {created.id} restaurado exitosamente"
    assert result.restore_info.delete_reason == "registro duplicado"
    assert result.restore_info.deleted_by_id == actor.user_id
    assert result.restore_info.was_deleted_at == fixed_now

    restored = result.report
    assert restored.deleted_at is None
    assert restored.delete_reason is None
    assert restored.deleted_by_id is None
    bookkeeping = dict(updated_at=None, version=0)
    assert replace(restored, **bookkeeping) == replace(created, **bookkeeping)

    actions = [e.action for e in _audit_entries(audit_repo)]
    assert actions == [AuditAction.RESTORE, AuditAction.DELETE, AuditAction.CREATE]
    delete_entry = _audit_entries(audit_repo)[1]
    assert delete_entry.changes_before["deletedAt"] is None
    assert delete_entry.metadata == {"kind": "MUNICIPAL", "reason": "registro duplicado"}


def test_soft_delete_survives_audit_store_failure(created, report_repo):
    failing = AuditRecorder(_FailingAuditRepo())

    ack = SoftDeleteReportUseCase(report_repo, failing).execute(
        MUNICIPAL, created.id, "error de digitación"
    )

    assert ack.ok is True
    assert report_repo.get(MUNICIPAL, created.id, include_deleted=True).is_deleted


def test_soft_delete_unknown_id_is_not_found(report_repo, recorder, audit_repo):
    ack = SoftDeleteReportUseCase(report_repo, recorder).execute(MUNICIPAL, 404)

    assert ack.ok is False
    assert ack.error.code is ReportErrorCode.NOT_FOUND
    assert _audit_entries(audit_repo) == []


def test_soft_delete_conflict(created, report_repo):
    ack = SoftDeleteReportUseCase(_ConflictingReportRepo(report_repo)).execute(
        MUNICIPAL, created.id
    )

    assert ack.ok is False
    assert ack.error.code is ReportErrorCode.CONFLICT


def test_re_delete_overwrites_reason_and_actor(created, report_repo, recorder, audit_repo):
    use_case = SoftDeleteReportUseCase(report_repo, recorder)
    use_case.execute(MUNICIPAL, created.id, "primero")
    second = use_case.execute(
        MUNICIPAL,
        created.id,
        "segundo",
        RequestMeta(actor=None),
    )

    stored = report_repo.get(MUNICIPAL, created.id, include_deleted=True)
    assert second.ok is True
    assert stored.delete_reason == "segundo"
    assert stored.deleted_by_id is None
    deletes = [e for e in _audit_entries(audit_repo) if e.action is AuditAction.DELETE]
    assert len(deletes) == 2


def test_restore_never_deleted_returns_null_info(created, report_repo):
    result = RestoreReportUseCase(report_repo).execute(MUNICIPAL, created.id)

    assert result.error is None
    info = result.to_dict()["restoreInfo"]
    assert info["wasDeletedAt"] is None
    assert info["deleteReason"] is None


def test_restore_unknown_id_is_not_found(report_repo):
    result = RestoreReportUseCase(report_repo).execute(MUNICIPAL, 77)

    assert result.error.code is ReportErrorCode.NOT_FOUND


def test_listings(report_repo):
    create = CreateReportUseCase(report_repo)
    ids = [
        create.execute(MUNICIPAL, {**VALID_FIELDS, "fecha": fecha}).report.id
        for fecha in ("2025-03-01", "2025-03-05", "2025-03-03")
    ]
    SoftDeleteReportUseCase(report_repo).execute(MUNICIPAL, ids[2], "x")

    active = ListReportsUseCase(report_repo).execute(MUNICIPAL)
    everything = ListReportsUseCase(report_repo).execute(MUNICIPAL, include_deleted=True)
    deleted = ListDeletedReportsUseCase(report_repo).execute(MUNICIPAL)

    assert [r.fecha for r in active.reports] == ["2025-03-05", "2025-03-01"]
    assert len(everything.reports) == 3
    assert [r.id for r in deleted.reports] == [ids[2]]
