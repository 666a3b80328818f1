"""
===============================================================================
TARJETA CRC — domain/reports.py
===============================================================================

Módulo:
    Reportes operativos (municipales y de alquiler) con soft-delete

Responsabilidades:
    - Definir Report: campos de negocio + cluster de borrado lógico
      (deleted_at / delete_reason / deleted_by_id) + version optimista.
    - Definir RestoreInfo (procedencia del borrado capturada al restaurar).
    - Serializar a dict plano (snapshots de auditoría y respuestas).

Colaboradores:
    - domain.report_rules: normaliza/valida antes de persistir.
    - domain.repositories.ReportRepository: persistencia.
    - application.usecases.reports: create/update/soft-delete/restore.

Invariantes:
    - deleted_at is None  <=>  el reporte aparece en consultas normales.
    - delete_reason / deleted_by_id sólo tienen sentido con deleted_at seteado;
      restaurar limpia los tres en una única escritura.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .audit import to_iso_utc


class ReportKind(str, Enum):
    MUNICIPAL = "MUNICIPAL"
    RENTAL = "RENTAL"

    @property
    def label(self) -> str:
        return "Reporte municipal" if self is ReportKind.MUNICIPAL else "Reporte de alquiler"


# Campos que el caller puede setear en create/update (snake_case).
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "fecha",
        "tipo_actividad",
        "tipo_maquinaria",
        "placa",
        "estacion",
        "codigo_camino",
        "distrito",
        "cantidad",
        "horas",
        "hora_inicio",
        "hora_fin",
        "fuente",
        "boleta",
        "boleta_kylcsa",
        "operador_id",
        "detalles",
    }
)


@dataclass
class Report:
    """
    Reporte de maquinaria (municipal o alquiler).

    Importante:
      - boleta (6 dígitos) y boleta_kylcsa son mutuamente excluyentes; la
        legalidad depende de (tipo_maquinaria, fuente). Ver report_rules.
      - fecha se guarda como 'YYYY-MM-DD' (sin corrimiento de huso).
    """

    kind: ReportKind
    id: Optional[int] = None
    fecha: Optional[str] = None
    tipo_actividad: Optional[str] = None
    tipo_maquinaria: Optional[str] = None
    placa: Optional[str] = None
    estacion: Optional[str] = None
    codigo_camino: Optional[str] = None
    distrito: Optional[str] = None
    cantidad: Optional[float] = None
    horas: Optional[float] = None
    hora_inicio: Optional[str] = None
    hora_fin: Optional[str] = None
    fuente: Optional[str] = None
    boleta: Optional[str] = None
    boleta_kylcsa: Optional[str] = None
    operador_id: Optional[int] = None
    detalles: Dict[str, Any] = field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    delete_reason: Optional[str] = None
    deleted_by_id: Optional[str] = None
    version: int = 1

    @property
    def is_deleted(self) -> bool:
        """True si está soft-deleted."""
        return self.deleted_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "fecha": self.fecha,
            "tipoActividad": self.tipo_actividad,
            "tipoMaquinaria": self.tipo_maquinaria,
            "placa": self.placa,
            "estacion": self.estacion,
            "codigoCamino": self.codigo_camino,
            "distrito": self.distrito,
            "cantidad": self.cantidad,
            "horas": self.horas,
            "horaInicio": self.hora_inicio,
            "horaFin": self.hora_fin,
            "fuente": self.fuente,
            "boleta": self.boleta,
            "boletaKylcsa": self.boleta_kylcsa,
            "operadorId": self.operador_id,
            "detalles": dict(self.detalles or {}),
            "createdAt": to_iso_utc(self.created_at),
            "updatedAt": to_iso_utc(self.updated_at),
            "deletedAt": to_iso_utc(self.deleted_at),
            "deleteReason": self.delete_reason,
            "deletedById": self.deleted_by_id,
            "version": self.version,
        }


@dataclass(frozen=True)
class RestoreInfo:
    """Estado de borrado capturado justo antes de restaurar."""

    was_deleted_at: Optional[datetime]
    delete_reason: Optional[str]
    deleted_by_id: Optional[str]
    restored_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "wasDeletedAt": to_iso_utc(self.was_deleted_at),
            "deleteReason": self.delete_reason,
            "deletedById": self.deleted_by_id,
            "restoredAt": to_iso_utc(self.restored_at),
        }
