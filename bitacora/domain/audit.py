"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    Modelos de Auditoría (Dominio)

Responsabilidades:
    - Definir el vocabulario cerrado de acciones y entidades auditables.
    - Definir AuditEntry (inmutable una vez escrito) y el contexto de acción
      a partir del cual se construye.
    - Definir filtros/paginación y value objects de estadísticas.
    - Serializar a estructuras planas (camelCase, timestamps ISO-8601 UTC).

Colaboradores:
    - domain.repositories.AuditLogRepository: persiste y consulta entradas.
    - application.audit.recorder: construye entradas desde ActionContext.
    - application.usecases.audit: consultas y estadísticas.

Notas:
    - Auditoría es append-only: no se edita ni se borra.
    - changes_before / changes_after son documentos opacos (dict/list/primitivos)
      ya sanitizados.
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TypeVar
from uuid import UUID

_E = TypeVar("_E", bound=Enum)


def _parse_enum(enum_cls: type[_E], value: Any) -> Optional[_E]:
    """
    Resuelve un valor contra un Enum aceptando nombre o valor (case-insensitive).

    Devuelve None si no matchea: el caller decide si es error o “skip”.
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    lowered = raw.lower()
    for member in enum_cls:
        if member.name.lower() == lowered or str(member.value).lower() == lowered:
            return member
    return None


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    AUTH = "AUTH"
    SYSTEM = "SYSTEM"
    ROLE_CHANGE = "ROLE_CHANGE"

    @classmethod
    def parse(cls, value: Any) -> Optional["AuditAction"]:
        return _parse_enum(cls, value)


class AuditEntity(str, Enum):
    """
    Entidades auditables (set cerrado).

    Se acepta tanto el nombre ("REPORTES") como el valor persistido ("reportes").
    """

    USUARIOS = "usuarios"
    TRANSPORTE = "transporte"
    OPERADORES = "operadores"
    REPORTES = "reportes"
    ROLES = "roles"
    SOLICITUDES = "solicitudes"
    SYSTEM = "system"
    AUTHENTICATION = "authentication"

    @classmethod
    def parse(cls, value: Any) -> Optional["AuditEntity"]:
        return _parse_enum(cls, value)


# Acciones relevantes para seguridad (no modelamos LOGIN/LOGOUT: son AUTH).
SECURITY_ACTIONS: tuple[AuditAction, ...] = (
    AuditAction.AUTH,
    AuditAction.ROLE_CHANGE,
    AuditAction.DELETE,
)


# ---------------------------------------------------------------------------
# Timestamps (siempre UTC)
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive => se asume UTC; aware => se convierte a UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def format_utc(value: datetime) -> str:
    """Formato legible para UI: 'dd/mm/yyyy, HH:MM:SS UTC'."""
    return ensure_utc(value).strftime("%d/%m/%Y, %H:%M:%S") + " UTC"


# ---------------------------------------------------------------------------
# Actor + contexto de acción (entrada del recorder)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditActor:
    """Quién ejecutó la acción. Los roles son strings opacos del caller."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    lastname: Optional[str] = None
    roles: tuple[str, ...] = ()


@dataclass
class ActionContext:
    """
    Datos crudos de una operación de negocio ya confirmada.

    action/entity se aceptan como string para que el recorder valide en su
    borde (y haga skip + log si son inválidos).
    """

    action: AuditAction | str | None
    entity: AuditEntity | str | None
    entity_id: Optional[str] = None
    actor: Optional[AuditActor] = None
    description: Optional[str] = None
    changes_before: Any = None
    changes_after: Any = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# AuditEntry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuditEntry:
    """
    Registro inmutable de una acción.

    id y timestamp los asigna el store en append(); antes son None.
    """

    action: AuditAction
    entity: AuditEntity
    description: str
    id: Optional[UUID] = None
    entity_id: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    user_lastname: Optional[str] = None
    user_roles: tuple[str, ...] = ()
    changes_before: Any = None
    changes_after: Any = None
    timestamp: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Forma de salida (camelCase, timestamp ISO UTC + variantes para UI)."""
        ts = ensure_utc(self.timestamp) if self.timestamp else None
        return {
            "id": str(self.id) if self.id else None,
            "action": self.action.value,
            "entity": self.entity.value,
            "entityId": self.entity_id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "userName": self.user_name,
            "userLastname": self.user_lastname,
            "userRoles": list(self.user_roles),
            "description": self.description,
            "changesBefore": self.changes_before,
            "changesAfter": self.changes_after,
            "timestamp": to_iso_utc(ts),
            "timestampFormatted": format_utc(ts) if ts else None,
            "timestampMs": int(ts.timestamp() * 1000) if ts else None,
            "userAgent": self.user_agent,
            "ip": self.ip,
            "url": self.url,
            "metadata": self.metadata,
        }


# ---------------------------------------------------------------------------
# Filtros y paginación
# ---------------------------------------------------------------------------

# Clave de orden pública -> atributo/columna. Whitelist: nunca se interpola input.
SORTABLE_FIELDS: dict[str, str] = {
    "timestamp": "timestamp",
    "action": "action",
    "entity": "entity",
    "entityId": "entity_id",
    "entity_id": "entity_id",
    "userId": "user_id",
    "user_id": "user_id",
    "userEmail": "user_email",
    "user_email": "user_email",
}


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class AuditLogFilter:
    """
    Filtro ya normalizado (sin strings vacíos, enums resueltos, fechas UTC).

    sort_by guarda el nombre de atributo (valor de SORTABLE_FIELDS).
    """

    action: Optional[AuditAction] = None
    entity: Optional[AuditEntity] = None
    entity_id: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 10
    sort_by: str = "timestamp"
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class AuditPage:
    entries: list[AuditEntry]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit > 0 else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [e.to_dict() for e in self.entries],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


# ---------------------------------------------------------------------------
# Estadísticas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActorActivity:
    user_id: str
    user_email: Optional[str]
    count: int


@dataclass(frozen=True)
class DayCount:
    day: str  # YYYY-MM-DD (UTC)
    count: int


@dataclass(frozen=True)
class SecurityEvent:
    type: str
    count: int
    last_occurrence: datetime


@dataclass(frozen=True)
class PeakActivity:
    hour: int
    day: str
    count: int


@dataclass(frozen=True)
class AuditTrends:
    daily_growth: float
    weekly_growth: float
    monthly_growth: float


@dataclass(frozen=True)
class UserActivitySummary:
    user_id: str
    user_email: Optional[str]
    user_name: Optional[str]
    user_lastname: Optional[str]
    total_actions: int
    first_activity: datetime
    last_activity: datetime

    @property
    def full_name(self) -> str:
        return f"{self.user_name or ''} {self.user_lastname or ''}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "userEmail": self.user_email,
            "userName": self.user_name,
            "userLastname": self.user_lastname,
            "fullName": self.full_name,
            "totalActions": self.total_actions,
            "firstActivity": to_iso_utc(self.first_activity),
            "lastActivity": to_iso_utc(self.last_activity),
        }


@dataclass
class AuditStats:
    total_logs: int
    logs_by_action: dict[str, int]
    logs_by_entity: dict[str, int]
    logs_by_user: list[ActorActivity]
    logs_today: int
    logs_this_week: int
    logs_this_month: int
    logs_by_hour: list[int] = field(default_factory=lambda: [0] * 24)
    logs_by_day: list[DayCount] = field(default_factory=list)
    security_events: list[SecurityEvent] = field(default_factory=list)
    error_rate: float = 0.0
    average_logs_per_day: float = 0.0
    peak_activity: Optional[PeakActivity] = None
    trends: Optional[AuditTrends] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalLogs": self.total_logs,
            "logsByAction": dict(self.logs_by_action),
            "logsByEntity": dict(self.logs_by_entity),
            "logsByUser": [
                {"userId": a.user_id, "userEmail": a.user_email, "count": a.count}
                for a in self.logs_by_user
            ],
            "logsToday": self.logs_today,
            "logsThisWeek": self.logs_this_week,
            "logsThisMonth": self.logs_this_month,
            "logsByHour": [
                {"hour": hour, "count": count}
                for hour, count in enumerate(self.logs_by_hour)
            ],
            "logsByDay": [{"date": d.day, "count": d.count} for d in self.logs_by_day],
            "securityEvents": [
                {
                    "type": e.type,
                    "count": e.count,
                    "lastOccurrence": to_iso_utc(e.last_occurrence),
                }
                for e in self.security_events
            ],
            "errorRate": self.error_rate,
            "averageLogsPerDay": self.average_logs_per_day,
            "peakActivity": (
                {
                    "hour": self.peak_activity.hour,
                    "day": self.peak_activity.day,
                    "count": self.peak_activity.count,
                }
                if self.peak_activity
                else None
            ),
            "trends": (
                {
                    "dailyGrowth": self.trends.daily_growth,
                    "weeklyGrowth": self.trends.weekly_growth,
                    "monthlyGrowth": self.trends.monthly_growth,
                }
                if self.trends
                else None
            ),
        }
