"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/report.py
============================================================
Class: InMemoryReportRepository

Responsibilities:
  - Almacenar reportes (municipales y de alquiler) en memoria.
  - Semántica de soft-delete alineada con Postgres:
      - lecturas normales excluyen deleted_at != NULL
      - soft_delete / restore devuelven (before, after) capturados
        bajo el mismo lock (atómico)
  - Concurrencia optimista: update con versión vieja => ConflictError.

Collaborators:
  - domain.reports.Report / ReportKind
  - domain.repositories.ReportRepository / ReportChange
  - crosscutting.exceptions.ConflictError

Constraints / Notes:
  - Thread-safe: toda lectura/escritura bajo Lock.
  - Copias defensivas: nunca se entrega el objeto interno.
============================================================
"""

from __future__ import annotations

import copy
from datetime import datetime
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ....crosscutting.exceptions import ConflictError
from ....domain.audit import utcnow
from ....domain.reports import EDITABLE_FIELDS, Report, ReportKind
from ....domain.repositories import ReportChange


class InMemoryReportRepository:
    """Implementación in-memory de ReportRepository."""

    def __init__(self, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._lock = Lock()
        self._rows: Dict[Tuple[ReportKind, int], Report] = {}
        self._next_id = 1
        self._clock = clock

    # =========================================================
    # Helpers internos
    # =========================================================
    @staticmethod
    def _copy(report: Report) -> Report:
        """R: Copia profunda (detalles es un dict mutable)."""
        return copy.deepcopy(report)

    @staticmethod
    def _sorted(items: Iterable[Report]) -> List[Report]:
        """R: ORDER BY fecha DESC NULLS LAST, id DESC."""
        return sorted(
            items,
            key=lambda r: (r.fecha is not None, r.fecha or "", r.id or 0),
            reverse=True,
        )

    # =========================================================
    # Escritura
    # =========================================================
    def create(self, report: Report) -> Report:
        now = self._clock()
        with self._lock:
            stored = self._copy(report)
            stored.id = self._next_id
            self._next_id += 1
            stored.created_at = now
            stored.updated_at = now
            stored.version = 1
            stored.deleted_at = None
            stored.delete_reason = None
            stored.deleted_by_id = None
            self._rows[(stored.kind, stored.id)] = stored
            return self._copy(stored)

    def update(self, report: Report, *, expected_version: int) -> Report:
        with self._lock:
            current = self._rows.get((report.kind, report.id))
            if current is None or current.is_deleted:
                raise ConflictError(
                    f"Reporte {report.id} ya no está activo (modificación concurrente)"
                )
            if current.version != expected_version:
                raise ConflictError(
                    f"Reporte {report.id} fue modificado por otro proceso "
                    f"(versión {current.version}, esperada {expected_version})"
                )
            for name in EDITABLE_FIELDS:
                setattr(current, name, copy.deepcopy(getattr(report, name)))
            current.updated_at = self._clock()
            current.version += 1
            return self._copy(current)

    def soft_delete(
        self,
        kind: ReportKind,
        report_id: int,
        *,
        reason: Optional[str],
        deleted_by_id: Optional[str],
        deleted_at: datetime,
    ) -> Optional[ReportChange]:
        with self._lock:
            current = self._rows.get((kind, report_id))
            if current is None:
                return None
            before = self._copy(current)
            current.deleted_at = deleted_at
            current.delete_reason = reason
            current.deleted_by_id = deleted_by_id
            current.updated_at = self._clock()
            current.version += 1
            return ReportChange(before=before, after=self._copy(current))

    def restore(
        self, kind: ReportKind, report_id: int, *, restored_at: datetime
    ) -> Optional[ReportChange]:
        with self._lock:
            current = self._rows.get((kind, report_id))
            if current is None:
                return None
            before = self._copy(current)
            current.deleted_at = None
            current.delete_reason = None
            current.deleted_by_id = None
            current.updated_at = restored_at
            current.version += 1
            return ReportChange(before=before, after=self._copy(current))

    # =========================================================
    # Lectura
    # =========================================================
    def get(
        self, kind: ReportKind, report_id: int, *, include_deleted: bool = False
    ) -> Optional[Report]:
        with self._lock:
            current = self._rows.get((kind, report_id))
            if current is None or (current.is_deleted and not include_deleted):
                return None
            return self._copy(current)

    def list_reports(
        self,
        kind: ReportKind,
        *,
        include_deleted: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Report]:
        with self._lock:
            values = [
                self._copy(r)
                for (k, _), r in self._rows.items()
                if k == kind and (include_deleted or not r.is_deleted)
            ]
        return self._sorted(values)[offset : offset + limit]

    def list_deleted(self, kind: ReportKind) -> List[Report]:
        with self._lock:
            values = [
                self._copy(r)
                for (k, _), r in self._rows.items()
                if k == kind and r.is_deleted
            ]
        return sorted(values, key=lambda r: (r.deleted_at, r.id or 0), reverse=True)
