"""
===============================================================================
AUDIT FILTERS — parseo/normalización de parámetros de consulta
===============================================================================

Responsibilities:
    - Tratar strings vacíos como “no provisto”.
    - Resolver action/entity contra el set cerrado (nombre o valor, sin
      distinguir mayúsculas).
    - Parsear fechas ISO (date o datetime) a UTC. Un endDate sólo-fecha
      cubre el día completo (rango inclusivo).
    - Validar sortBy (whitelist) / sortOrder y page/limit.
    - Acotar limit a un máximo configurable.

Collaborators:
    - domain.audit.AuditLogFilter / SORTABLE_FIELDS / SortOrder
    - list_audit_logs, list_entity_logs, list_user_logs, export_audit_logs
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Final, Optional, Tuple

from ....domain.audit import (
    SORTABLE_FIELDS,
    AuditAction,
    AuditEntity,
    AuditLogFilter,
    SortOrder,
    ensure_utc,
)
from .audit_results import AuditError, AuditErrorCode

DEFAULT_LIMIT: Final[int] = 10
MAX_LIMIT: Final[int] = 200


@dataclass
class AuditQueryInput:
    """
    Parámetros crudos (tal cual llegan del transporte).

    Todos opcionales; page/limit pueden venir como string.
    """

    action: Any = None
    entity: Any = None
    entity_id: Any = None
    user_id: Any = None
    user_email: Any = None
    start_date: Any = None
    end_date: Any = None
    search: Any = None
    page: Any = None
    limit: Any = None
    sort_by: Any = None
    sort_order: Any = None


class _InvalidParam(ValueError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


def clean(value: Any) -> Any:
    """'' / '   ' -> None; strings se devuelven con trim."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def parse_datetime(value: Any, *, end_of_day: bool = False) -> Optional[datetime]:
    """
    Acepta datetime/date o string ISO-8601 ('2024-05-01', '2024-05-01T10:00:00Z').
    """
    value = clean(value)
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return _day_bound(value, end_of_day)

    raw = str(value)
    if len(raw) == 10:
        return _day_bound(date.fromisoformat(raw), end_of_day)
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(raw))


def _day_bound(day: date, end_of_day: bool) -> datetime:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    if end_of_day:
        return start + timedelta(days=1) - timedelta(microseconds=1)
    return start


def _parse_positive_int(value: Any, field: str, default: int) -> int:
    value = clean(value)
    if value is None:
        return default
    if isinstance(value, bool):
        raise _InvalidParam(field, f"{field} debe ser un entero >= 1")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise _InvalidParam(field, f"{field} debe ser un entero >= 1") from exc
    if parsed < 1:
        raise _InvalidParam(field, f"{field} debe ser un entero >= 1")
    return parsed


def _parse_action(value: Any) -> Optional[AuditAction]:
    value = clean(value)
    if value is None:
        return None
    action = AuditAction.parse(value)
    if action is None:
        raise _InvalidParam("action", f"Acción desconocida: {value!r}")
    return action


def _parse_entity(value: Any) -> Optional[AuditEntity]:
    value = clean(value)
    if value is None:
        return None
    entity = AuditEntity.parse(value)
    if entity is None:
        raise _InvalidParam("entity", f"Entidad desconocida: {value!r}")
    return entity


def _parse_sort(sort_by: Any, sort_order: Any) -> Tuple[str, SortOrder]:
    key = clean(sort_by) or "timestamp"
    column = SORTABLE_FIELDS.get(str(key))
    if column is None:
        raise _InvalidParam("sortBy", f"No se puede ordenar por {key!r}")

    raw_order = clean(sort_order) or SortOrder.DESC.value
    try:
        order = SortOrder(str(raw_order).upper())
    except ValueError as exc:
        raise _InvalidParam("sortOrder", "sortOrder debe ser ASC o DESC") from exc
    return column, order


def _parse_date_param(value: Any, field: str, *, end_of_day: bool) -> Optional[datetime]:
    try:
        return parse_datetime(value, end_of_day=end_of_day)
    except (TypeError, ValueError) as exc:
        raise _InvalidParam(field, f"Fecha inválida en {field}: {value!r}") from exc


def build_audit_filter(
    params: AuditQueryInput,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Tuple[Optional[AuditLogFilter], Optional[AuditError]]:
    """
    Convierte parámetros crudos en AuditLogFilter.

    Retorna (filter, None) o (None, AuditError).
    """
    try:
        start = _parse_date_param(params.start_date, "startDate", end_of_day=False)
        end = _parse_date_param(params.end_date, "endDate", end_of_day=True)
        if start and end and end < start:
            raise _InvalidParam("endDate", "endDate no puede ser anterior a startDate")

        sort_by, sort_order = _parse_sort(params.sort_by, params.sort_order)
        page = _parse_positive_int(params.page, "page", 1)
        limit = min(_parse_positive_int(params.limit, "limit", default_limit), max_limit)

        filters = AuditLogFilter(
            action=_parse_action(params.action),
            entity=_parse_entity(params.entity),
            entity_id=_as_str(clean(params.entity_id)),
            user_id=_as_str(clean(params.user_id)),
            user_email=_as_str(clean(params.user_email)),
            start_date=start,
            end_date=end,
            search=_as_str(clean(params.search)),
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except _InvalidParam as exc:
        return None, AuditError(
            code=AuditErrorCode.VALIDATION_ERROR, message=str(exc), field=exc.field
        )
    return filters, None


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
