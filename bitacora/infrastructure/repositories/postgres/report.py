"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/report.py
============================================================
Class: PostgresReportRepository

Responsibilities:
  - Persistir reportes municipales y de alquiler (tabla reports, columna kind).
  - Soft-delete / restore como UPDATE de una fila dentro de una transacción
    (SELECT ... FOR UPDATE + UPDATE ... RETURNING): el estado previo y el
    nuevo se capturan atómicamente.
  - Concurrencia optimista: UPDATE condicionado a version.
  - Traducir fallas de concurrencia de PostgreSQL a ConflictError.

Collaborators:
  - domain.reports.Report / ReportKind, domain.repositories.ReportChange
  - psycopg / psycopg_pool
  - crosscutting.exceptions (DatabaseError, ConflictError)

Constraints / Notes:
  - Queries parametrizadas; nada de interpolar input.
  - Lecturas normales: deleted_at IS NULL.
  - fecha es DATE en SQL y 'YYYY-MM-DD' en dominio.
============================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, List, Optional

from psycopg import errors as pg_errors
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import ConflictError, DatabaseError
from ....crosscutting.logger import logger
from ....domain.reports import Report, ReportKind
from ....domain.repositories import ReportChange

_CONFLICT_ERRORS = (
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
    pg_errors.LockNotAvailable,
)

_COLUMNS = """
    id, kind, fecha, tipo_actividad, tipo_maquinaria, placa, estacion,
    codigo_camino, distrito, cantidad, horas, hora_inicio, hora_fin, fuente,
    boleta, boleta_kylcsa, operador_id, detalles, created_at, updated_at,
    deleted_at, delete_reason, deleted_by_id, version
"""


def _to_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_report(row: tuple) -> Report:
    (
        report_id,
        kind,
        fecha,
        tipo_actividad,
        tipo_maquinaria,
        placa,
        estacion,
        codigo_camino,
        distrito,
        cantidad,
        horas,
        hora_inicio,
        hora_fin,
        fuente,
        boleta,
        boleta_kylcsa,
        operador_id,
        detalles,
        created_at,
        updated_at,
        deleted_at,
        delete_reason,
        deleted_by_id,
        version,
    ) = row
    return Report(
        id=report_id,
        kind=ReportKind(kind),
        fecha=fecha.isoformat() if isinstance(fecha, date) else fecha,
        tipo_actividad=tipo_actividad,
        tipo_maquinaria=tipo_maquinaria,
        placa=placa,
        estacion=estacion,
        codigo_camino=codigo_camino,
        distrito=distrito,
        cantidad=_to_float(cantidad),
        horas=_to_float(horas),
        hora_inicio=hora_inicio,
        hora_fin=hora_fin,
        fuente=fuente,
        boleta=boleta,
        boleta_kylcsa=boleta_kylcsa,
        operador_id=operador_id,
        detalles=dict(detalles or {}),
        created_at=created_at,
        updated_at=updated_at,
        deleted_at=deleted_at,
        delete_reason=delete_reason,
        deleted_by_id=deleted_by_id,
        version=version,
    )


def _editable_params(report: Report) -> tuple:
    return (
        report.fecha,
        report.tipo_actividad,
        report.tipo_maquinaria,
        report.placa,
        report.estacion,
        report.codigo_camino,
        report.distrito,
        report.cantidad,
        report.horas,
        report.hora_inicio,
        report.hora_fin,
        report.fuente,
        report.boleta,
        report.boleta_kylcsa,
        report.operador_id,
        Json(report.detalles or {}),
    )


@contextmanager
def _db_errors(message: str, **extra: object) -> Iterator[None]:
    """Traduce excepciones de psycopg a errores del proyecto."""
    try:
        yield
    except ConflictError:
        raise
    except _CONFLICT_ERRORS as exc:
        logger.warning(message, extra={**extra, "error": str(exc), "conflict": True})
        raise ConflictError(
            f"{message}: modificación concurrente", original_error=exc
        ) from exc
    except Exception as exc:
        logger.exception(message, extra={**extra, "error": str(exc)})
        raise DatabaseError(f"{message}: {exc}", original_error=exc) from exc


class PostgresReportRepository:
    """Repositorio PostgreSQL para reportes (tabla reports)."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    # ------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------
    def create(self, report: Report) -> Report:
        with _db_errors(
            "PostgresReportRepository: Failed to create report",
            kind=report.kind.value,
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    f"""
                    INSERT INTO reports (
                        kind, fecha, tipo_actividad, tipo_maquinaria, placa,
                        estacion, codigo_camino, distrito, cantidad, horas,
                        hora_inicio, hora_fin, fuente, boleta, boleta_kylcsa,
                        operador_id, detalles
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                            %s, %s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (report.kind.value, *_editable_params(report)),
                ).fetchone()
        return _row_to_report(row)

    def update(self, report: Report, *, expected_version: int) -> Report:
        with _db_errors(
            "PostgresReportRepository: Failed to update report",
            report_id=report.id,
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    f"""
                    UPDATE reports
                    SET fecha = %s, tipo_actividad = %s, tipo_maquinaria = %s,
                        placa = %s, estacion = %s, codigo_camino = %s,
                        distrito = %s, cantidad = %s, horas = %s,
                        hora_inicio = %s, hora_fin = %s, fuente = %s,
                        boleta = %s, boleta_kylcsa = %s, operador_id = %s,
                        detalles = %s,
                        updated_at = NOW(),
                        version = version + 1
                    WHERE kind = %s AND id = %s AND version = %s
                      AND deleted_at IS NULL
                    RETURNING {_COLUMNS}
                    """,
                    (
                        *_editable_params(report),
                        report.kind.value,
                        report.id,
                        expected_version,
                    ),
                ).fetchone()
            if row is None:
                raise ConflictError(
                    f"Reporte {report.id} fue modificado o borrado por otro proceso"
                )
        return _row_to_report(row)

    def soft_delete(
        self,
        kind: ReportKind,
        report_id: int,
        *,
        reason: Optional[str],
        deleted_by_id: Optional[str],
        deleted_at: datetime,
    ) -> Optional[ReportChange]:
        with _db_errors(
            "PostgresReportRepository: Soft delete failed",
            kind=kind.value,
            report_id=report_id,
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                with conn.transaction():
                    current = conn.execute(
                        f"SELECT {_COLUMNS} FROM reports "
                        "WHERE kind = %s AND id = %s FOR UPDATE",
                        (kind.value, report_id),
                    ).fetchone()
                    if current is None:
                        return None
                    before = _row_to_report(current)
                    row = conn.execute(
                        f"""
                        UPDATE reports
                        SET deleted_at = %s, delete_reason = %s,
                            deleted_by_id = %s, updated_at = NOW(),
                            version = version + 1
                        WHERE kind = %s AND id = %s AND version = %s
                        RETURNING {_COLUMNS}
                        """,
                        (
                            deleted_at,
                            reason,
                            deleted_by_id,
                            kind.value,
                            report_id,
                            before.version,
                        ),
                    ).fetchone()
                    if row is None:
                        raise ConflictError(
                            f"Reporte {report_id} cambió durante el borrado"
                        )

        logger.info(
            "PostgresReportRepository: Soft deleted report",
            extra={"kind": kind.value, "report_id": report_id},
        )
        return ReportChange(before=before, after=_row_to_report(row))

    def restore(
        self, kind: ReportKind, report_id: int, *, restored_at: datetime
    ) -> Optional[ReportChange]:
        with _db_errors(
            "PostgresReportRepository: Restore failed",
            kind=kind.value,
            report_id=report_id,
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                with conn.transaction():
                    current = conn.execute(
                        f"SELECT {_COLUMNS} FROM reports "
                        "WHERE kind = %s AND id = %s FOR UPDATE",
                        (kind.value, report_id),
                    ).fetchone()
                    if current is None:
                        return None
                    before = _row_to_report(current)
                    row = conn.execute(
                        f"""
                        UPDATE reports
                        SET deleted_at = NULL, delete_reason = NULL,
                            deleted_by_id = NULL, updated_at = %s,
                            version = version + 1
                        WHERE kind = %s AND id = %s AND version = %s
                        RETURNING {_COLUMNS}
                        """,
                        (restored_at, kind.value, report_id, before.version),
                    ).fetchone()
                    if row is None:
                        raise ConflictError(
                            f"Reporte {report_id} cambió durante la restauración"
                        )

        logger.info(
            "PostgresReportRepository: Restored report",
            extra={"kind": kind.value, "report_id": report_id},
        )
        return ReportChange(before=before, after=_row_to_report(row))

    # ------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------
    def get(
        self, kind: ReportKind, report_id: int, *, include_deleted: bool = False
    ) -> Optional[Report]:
        deleted_clause = "" if include_deleted else "AND deleted_at IS NULL"
        with _db_errors(
            "PostgresReportRepository: Failed to get report", report_id=report_id
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM reports "
                    f"WHERE kind = %s AND id = %s {deleted_clause}",
                    (kind.value, report_id),
                ).fetchone()
        return _row_to_report(row) if row else None

    def list_reports(
        self,
        kind: ReportKind,
        *,
        include_deleted: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Report]:
        deleted_clause = "" if include_deleted else "AND deleted_at IS NULL"
        with _db_errors(
            "PostgresReportRepository: Failed to list reports", kind=kind.value
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM reports
                    WHERE kind = %s {deleted_clause}
                    ORDER BY fecha DESC NULLS LAST, id DESC
                    LIMIT %s OFFSET %s
                    """,
                    (kind.value, limit, offset),
                ).fetchall()
        return [_row_to_report(r) for r in rows]

    def list_deleted(self, kind: ReportKind) -> List[Report]:
        with _db_errors(
            "PostgresReportRepository: Failed to list deleted reports",
            kind=kind.value,
        ):
            pool = self._get_pool()
            with pool.connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM reports
                    WHERE kind = %s AND deleted_at IS NOT NULL
                    ORDER BY deleted_at DESC, id DESC
                    """,
                    (kind.value,),
                ).fetchall()
        return [_row_to_report(r) for r in rows]
