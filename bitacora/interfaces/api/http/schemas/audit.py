"""
===============================================================================
TARJETA CRC — schemas/audit.py
===============================================================================

Módulo:
    Schemas HTTP para la bitácora de auditoría

Responsabilidades:
    - DTO de request para registrar una acción (POST /audit/log).
    - DTOs de response para listados paginados, exportación y resumen por usuario.

Colaboradores:
    - domain.audit.AuditEntry / AuditPage / UserActivitySummary (to_dict)

Notas:
    - Las estadísticas se devuelven tal cual AuditStats.to_dict() (dict libre):
      su forma es estable pero anidada y no aporta validarla dos veces.
===============================================================================
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuditLogReq(_CamelModel):
    """Acción ya confirmada por otro componente. action/entity se validan en el recorder."""

    action: str = Field(..., min_length=1)
    entity: str = Field(..., min_length=1)
    entity_id: str | None = None
    description: str | None = Field(default=None, max_length=2000)
    changes_before: Any = None
    changes_after: Any = None
    metadata: dict[str, Any] | None = None


class AuditLogAcceptedRes(BaseModel):
    accepted: bool = True


class AuditEntryRes(_CamelModel):
    id: str | None = None
    action: str
    entity: str
    entity_id: str | None = None
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    user_lastname: str | None = None
    user_roles: list[str] = Field(default_factory=list)
    description: str
    changes_before: Any = None
    changes_after: Any = None
    timestamp: str | None = None
    timestamp_formatted: str | None = None
    timestamp_ms: int | None = None
    user_agent: str | None = None
    ip: str | None = None
    url: str | None = None
    metadata: dict[str, Any] | None = None


class AuditPageRes(_CamelModel):
    data: list[AuditEntryRes]
    total: int
    page: int
    limit: int
    total_pages: int


class AuditExportRes(BaseModel):
    message: str
    format: str = "json"
    data: AuditPageRes
    timestamp: str


class UserActivityRes(_CamelModel):
    user_id: str
    user_email: str | None = None
    user_name: str | None = None
    user_lastname: str | None = None
    full_name: str = ""
    total_actions: int
    first_activity: str | None = None
    last_activity: str | None = None
