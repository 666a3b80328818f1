"""
===============================================================================
TARJETA CRC — schemas/reports.py
===============================================================================

Módulo:
    Schemas HTTP para reportes (municipal / alquiler)

Responsabilidades:
    - DTOs de request (camelCase en el wire, snake_case en Python).
    - DTOs de response estables (createdAt/deletedAt en ISO-8601 UTC).

Colaboradores:
    - domain.reports.Report / RestoreInfo
    - domain.report_rules (la normalización real ocurre en el use case)

Notas:
    - Los campos de request son laxos (str | número): el motor de validación
      normaliza y devuelve errores de negocio tipados.
===============================================================================
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class _CamelRes(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportFieldsReq(_CamelModel):
    """Campos editables de un reporte. Todos opcionales (PATCH parcial)."""

    fecha: str | None = None
    tipo_actividad: str | None = None
    tipo_maquinaria: str | None = None
    placa: str | None = None
    estacion: str | None = None
    codigo_camino: str | None = None
    distrito: str | None = None
    cantidad: float | str | None = None
    horas: float | str | None = None
    hora_inicio: str | None = None
    hora_fin: str | None = None
    fuente: str | None = None
    boleta: str | None = None
    boleta_kylcsa: str | None = None
    operador_id: int | str | None = None
    detalles: dict[str, Any] | None = None

    def to_fields(self) -> dict[str, Any]:
        """Sólo lo que el cliente envió (snake_case)."""
        return self.model_dump(exclude_unset=True)


class ReportCreateReq(ReportFieldsReq):
    pass


class ReportUpdateReq(ReportFieldsReq):
    expected_version: int | None = Field(default=None, ge=1)

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"expected_version"})


class DeleteReportReq(_CamelModel):
    reason: str | None = Field(default=None, max_length=500)


class ReportRes(_CamelRes):
    id: int
    kind: str
    fecha: str | None = None
    tipo_actividad: str | None = None
    tipo_maquinaria: str | None = None
    placa: str | None = None
    estacion: str | None = None
    codigo_camino: str | None = None
    distrito: str | None = None
    cantidad: float | None = None
    horas: float | None = None
    hora_inicio: str | None = None
    hora_fin: str | None = None
    fuente: str | None = None
    boleta: str | None = None
    boleta_kylcsa: str | None = None
    operador_id: int | None = None
    detalles: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    delete_reason: str | None = None
    deleted_by_id: str | None = None
    version: int = 1


class ReportsRes(_CamelRes):
    reports: list[ReportRes]


class SoftDeleteRes(BaseModel):
    ok: bool
    id: int | None = None
    reason: str | None = None


class RestoreInfoRes(_CamelRes):
    was_deleted_at: str | None = None
    delete_reason: str | None = None
    deleted_by_id: str | None = None
    restored_at: str | None = None


class RestoreRes(_CamelRes):
    message: str
    report: ReportRes | None = None
    restore_info: RestoreInfoRes | None = None
