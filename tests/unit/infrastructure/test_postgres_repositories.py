"""
Name: PostgreSQL Repository Tests (offline)

Responsibilities:
  - Verify SQL construction (parameterized filters, LIKE escaping)
  - Verify row mapping (DATE -> 'YYYY-MM-DD', NUMERIC -> float)
  - Verify psycopg errors are translated to DatabaseError / ConflictError

Notes:
  - The pool is a MagicMock; no real DB.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from psycopg import errors as pg_errors

from bitacora.crosscutting.exceptions import ConflictError, DatabaseError
from bitacora.domain.audit import AuditLogFilter
from bitacora.domain.reports import Report, ReportKind
from bitacora.infrastructure.repositories.postgres.audit_log import (
    PostgresAuditLogRepository,
    _like_pattern,
)
from bitacora.infrastructure.repositories.postgres.report import (
    PostgresReportRepository,
)

pytestmark = pytest.mark.unit

NOW = datetime(2025, 3, 12, 15, 30, tzinfo=timezone.utc)


def _mock_pool():
    pool = MagicMock()
    conn = pool.connection.return_value.__enter__.return_value
    return pool, conn


def _report_row(**overrides) -> tuple:
    values = {
        "id": 5,
        "kind": "MUNICIPAL",
        "fecha": date(2025, 3, 1),
        "tipo_actividad": "acarreo",
        "tipo_maquinaria": "vagoneta",
        "placa": "SM-123",
        "estacion": None,
        "codigo_camino": "215",
        "distrito": "Norte",
        "cantidad": Decimal("12.50"),
        "horas": None,
        "hora_inicio": None,
        "hora_fin": None,
        "fuente": "Río",
        "boleta": "123456",
        "boleta_kylcsa": None,
        "operador_id": 3,
        "detalles": {"nota": "x"},
        "created_at": NOW,
        "updated_at": NOW,
        "deleted_at": None,
        "delete_reason": None,
        "deleted_by_id": None,
        "version": 2,
    }
    values.update(overrides)
    return tuple(values.values())


# ---------------------------------------------------------------------------
# Auditoría
# ---------------------------------------------------------------------------


def test_like_pattern_escapes_wildcards():
    assert _like_pattern("50%_a\\b") == "%50\\%\\_a\\\\b%"


def test_query_uses_parameterized_filters():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchall.side_effect = [[(3,)], []]
    repo = PostgresAuditLogRepository(pool=pool)

    entries, total = repo.query(
        AuditLogFilter(user_email="ana", search="camino", page=2, limit=10)
    )

    assert (entries, total) == ([], 3)
    count_sql, count_params = conn.execute.call_args_list[0].args
    assert "user_email ILIKE %s" in count_sql
    assert count_params == ("%ana%", "%camino%", "%camino%", "%camino%")
    select_params = conn.execute.call_args_list[1].args[1]
    assert select_params[-2:] == (10, 10)


def test_unknown_sort_falls_back_to_timestamp():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchall.side_effect = [[(0,)], []]

    PostgresAuditLogRepository(pool=pool).query(AuditLogFilter(sort_by="description"))

    select_sql = conn.execute.call_args_list[1].args[0]
    assert 'ORDER BY "timestamp" DESC' in select_sql


def test_query_failure_raises_database_error():
    pool, conn = _mock_pool()
    conn.execute.side_effect = RuntimeError("connection lost")

    with pytest.raises(DatabaseError):
        PostgresAuditLogRepository(pool=pool).query(AuditLogFilter())


# ---------------------------------------------------------------------------
# Reportes
# ---------------------------------------------------------------------------


def test_get_maps_row_to_report():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchone.return_value = _report_row()

    report = PostgresReportRepository(pool=pool).get(ReportKind.MUNICIPAL, 5)

    assert report.fecha == "2025-03-01"
    assert report.cantidad == 12.5
    assert report.kind is ReportKind.MUNICIPAL
    assert "deleted_at IS NULL" in conn.execute.call_args.args[0]


def test_update_with_stale_version_raises_conflict():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchone.return_value = None
    report = Report(kind=ReportKind.MUNICIPAL, id=5, tipo_maquinaria="vagoneta")

    with pytest.raises(ConflictError):
        PostgresReportRepository(pool=pool).update(report, expected_version=1)


def test_serialization_failure_maps_to_conflict():
    pool, conn = _mock_pool()
    conn.execute.side_effect = pg_errors.SerializationFailure("could not serialize")
    report = Report(kind=ReportKind.RENTAL, tipo_maquinaria="vagoneta")

    with pytest.raises(ConflictError):
        PostgresReportRepository(pool=pool).create(report)


def test_other_failures_map_to_database_error():
    pool, conn = _mock_pool()
    conn.execute.side_effect = RuntimeError("boom")

    with pytest.raises(DatabaseError) as exc_info:
        PostgresReportRepository(pool=pool).list_deleted(ReportKind.RENTAL)

    assert not isinstance(exc_info.value, ConflictError)


def test_soft_delete_missing_row_returns_none():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchone.return_value = None

    result = PostgresReportRepository(pool=pool).soft_delete(
        ReportKind.MUNICIPAL, 99, reason=None, deleted_by_id=None, deleted_at=NOW
    )

    assert result is None


def test_soft_delete_returns_before_and_after_rows():
    pool, conn = _mock_pool()
    conn.execute.return_value.fetchone.side_effect = [
        _report_row(),
        _report_row(deleted_at=NOW, delete_reason="duplicado", version=3),
    ]

    change = PostgresReportRepository(pool=pool).soft_delete(
        ReportKind.MUNICIPAL, 5, reason="duplicado", deleted_by_id="7", deleted_at=NOW
    )

    assert change.before.deleted_at is None
    assert change.after.delete_reason == "duplicado"
    update_params = conn.execute.call_args_list[1].args[1]
    assert update_params[-1] == 2
