"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/audit_log.py
============================================================
Class: PostgresAuditLogRepository

Responsibilities:
  - Persistir entradas de auditoría en PostgreSQL (tabla audit_logs).
  - Consultar con filtros, búsqueda ILIKE, orden whitelisted y paginación.
  - Agregaciones (group by, buckets hora/día, eventos de seguridad) en SQL.

Collaborators:
  - domain.audit (AuditEntry, AuditLogFilter, value objects)
  - psycopg_pool.ConnectionPool (pool de conexiones)
  - psycopg.types.json.Json (JSONB seguro hacia PostgreSQL)
  - crosscutting.logger / crosscutting.exceptions.DatabaseError

Constraints / Notes:
  - Append-only: sólo INSERT y SELECT.
  - Queries SIEMPRE parametrizadas; ORDER BY sólo desde whitelist.
  - Las conexiones del pool corren con TIME ZONE 'UTC'; igual se usa
    AT TIME ZONE 'UTC' en los buckets para no depender de eso.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.audit import (
    ActorActivity,
    AuditAction,
    AuditEntity,
    AuditEntry,
    AuditLogFilter,
    DayCount,
    SecurityEvent,
    SortOrder,
    UserActivitySummary,
)

# atributo de dominio -> columna SQL (whitelist de ORDER BY)
_SORT_COLUMNS: dict[str, str] = {
    "timestamp": '"timestamp"',
    "action": "action",
    "entity": "entity",
    "entity_id": "entity_id",
    "user_id": "user_id",
    "user_email": "user_email",
}

_GROUP_COLUMNS: dict[str, str] = {"action": "action", "entity": "entity"}

_SELECT_COLUMNS = """
    id, action, entity, entity_id, user_id, user_email, user_name,
    user_lastname, user_roles, description, changes_before, changes_after,
    "timestamp", user_agent, ip, url, metadata
"""


def _like_pattern(term: str) -> str:
    """Escapa comodines LIKE del input y envuelve en %...%."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_entry(row: tuple) -> AuditEntry:
    (
        entry_id,
        action,
        entity,
        entity_id,
        user_id,
        user_email,
        user_name,
        user_lastname,
        user_roles,
        description,
        changes_before,
        changes_after,
        timestamp,
        user_agent,
        ip,
        url,
        metadata,
    ) = row
    return AuditEntry(
        id=entry_id,
        action=AuditAction(action),
        entity=AuditEntity(entity),
        entity_id=entity_id,
        user_id=user_id,
        user_email=user_email,
        user_name=user_name,
        user_lastname=user_lastname,
        user_roles=tuple(user_roles or ()),
        description=description,
        changes_before=changes_before,
        changes_after=changes_after,
        timestamp=timestamp,
        user_agent=user_agent,
        ip=ip,
        url=url,
        metadata=metadata,
    )


class PostgresAuditLogRepository:
    """Repositorio PostgreSQL para auditoría (audit_logs)."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        """Obtiene el pool: si no fue inyectado, usa la factory global."""
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    # ------------------------------------------------------------
    # Helpers internos (errores/logging consistentes)
    # ------------------------------------------------------------
    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object],
        error_message: str,
        extra: dict[str, object] | None = None,
    ) -> list[tuple]:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(error_message, extra={**(extra or {}), "error": str(exc)})
            raise DatabaseError(f"{error_message}: {exc}") from exc

    def _scalar(self, *, query: str, params: Iterable[object], error_message: str) -> int:
        rows = self._fetchall(query=query, params=params, error_message=error_message)
        return int(rows[0][0]) if rows else 0

    # ------------------------------------------------------------
    # Escritura (append-only)
    # ------------------------------------------------------------
    def append(self, entry: AuditEntry) -> AuditEntry:
        entry_id = entry.id or uuid4()
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    f"""
                    INSERT INTO audit_logs (
                        id, action, entity, entity_id, user_id, user_email,
                        user_name, user_lastname, user_roles, description,
                        changes_before, changes_after, "timestamp",
                        user_agent, ip, url, metadata
                    )
                    VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                        COALESCE(%s, NOW()), %s, %s, %s, %s
                    )
                    RETURNING {_SELECT_COLUMNS}
                    """,
                    (
                        entry_id,
                        entry.action.value,
                        entry.entity.value,
                        entry.entity_id,
                        entry.user_id,
                        entry.user_email,
                        entry.user_name,
                        entry.user_lastname,
                        Json(list(entry.user_roles)),
                        entry.description,
                        Json(entry.changes_before) if entry.changes_before is not None else None,
                        Json(entry.changes_after) if entry.changes_after is not None else None,
                        entry.timestamp,
                        entry.user_agent,
                        entry.ip,
                        entry.url,
                        Json(entry.metadata) if entry.metadata is not None else None,
                    ),
                ).fetchone()
        except Exception as exc:
            logger.exception(
                "PostgresAuditLogRepository: Failed to append audit entry",
                extra={
                    "action": entry.action.value,
                    "entity": entry.entity.value,
                    "entity_id": entry.entity_id,
                    "error": str(exc),
                },
            )
            raise DatabaseError(f"Failed to append audit entry: {exc}") from exc

        return _row_to_entry(row)

    # ------------------------------------------------------------
    # Consulta
    # ------------------------------------------------------------
    @staticmethod
    def _where(filters: AuditLogFilter) -> Tuple[str, list[object]]:
        conditions: list[str] = []
        params: list[object] = []

        if filters.action is not None:
            conditions.append("action = %s")
            params.append(filters.action.value)
        if filters.entity is not None:
            conditions.append("entity = %s")
            params.append(filters.entity.value)
        if filters.entity_id is not None:
            conditions.append("entity_id = %s")
            params.append(filters.entity_id)
        if filters.user_id is not None:
            conditions.append("user_id = %s")
            params.append(filters.user_id)
        if filters.user_email is not None:
            conditions.append("user_email ILIKE %s")
            params.append(_like_pattern(filters.user_email))
        if filters.start_date is not None:
            conditions.append('"timestamp" >= %s')
            params.append(filters.start_date)
        if filters.end_date is not None:
            conditions.append('"timestamp" <= %s')
            params.append(filters.end_date)
        if filters.search is not None:
            pattern = _like_pattern(filters.search)
            conditions.append(
                "(description ILIKE %s OR user_email ILIKE %s OR entity_id ILIKE %s)"
            )
            params.extend([pattern, pattern, pattern])

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where_clause, params

    def query(self, filters: AuditLogFilter) -> Tuple[List[AuditEntry], int]:
        where_clause, params = self._where(filters)
        column = _SORT_COLUMNS.get(filters.sort_by, '"timestamp"')
        direction = "ASC" if filters.sort_order is SortOrder.ASC else "DESC"

        total = self._scalar(
            query=f"SELECT COUNT(*) FROM audit_logs {where_clause}",
            params=params,
            error_message="PostgresAuditLogRepository: Failed to count audit logs",
        )

        rows = self._fetchall(
            query=f"""
                SELECT {_SELECT_COLUMNS}
                FROM audit_logs
                {where_clause}
                ORDER BY {column} {direction}, "timestamp" {direction}, id {direction}
                LIMIT %s OFFSET %s
            """,
            params=[*params, filters.limit, filters.offset],
            error_message="PostgresAuditLogRepository: Failed to query audit logs",
            extra={"page": filters.page, "limit": filters.limit},
        )
        return [_row_to_entry(r) for r in rows], total

    # ------------------------------------------------------------
    # Agregaciones
    # ------------------------------------------------------------
    def count(
        self,
        *,
        action: Optional[AuditAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        conditions: list[str] = []
        params: list[object] = []
        if action is not None:
            conditions.append("action = %s")
            params.append(action.value)
        if start is not None:
            conditions.append('"timestamp" >= %s')
            params.append(start)
        if end is not None:
            conditions.append('"timestamp" < %s')
            params.append(end)
        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return self._scalar(
            query=f"SELECT COUNT(*) FROM audit_logs {where_clause}",
            params=params,
            error_message="PostgresAuditLogRepository: Failed to count audit logs",
        )

    def count_by(self, field: str) -> dict[str, int]:
        column = _GROUP_COLUMNS.get(field)
        if column is None:
            raise ValueError(f"No se puede agrupar por {field!r}")
        rows = self._fetchall(
            query=f"SELECT {column}, COUNT(*) FROM audit_logs GROUP BY {column}",
            params=(),
            error_message="PostgresAuditLogRepository: Failed to group audit logs",
            extra={"field": field},
        )
        return {key: int(n) for key, n in rows}

    def top_actors(self, limit: int) -> List[ActorActivity]:
        rows = self._fetchall(
            query="""
                SELECT user_id,
                       (ARRAY_AGG(user_email ORDER BY "timestamp" DESC))[1],
                       COUNT(*) AS total
                FROM audit_logs
                WHERE user_id IS NOT NULL
                GROUP BY user_id
                ORDER BY total DESC, user_id ASC
                LIMIT %s
            """,
            params=(limit,),
            error_message="PostgresAuditLogRepository: Failed to rank actors",
        )
        return [
            ActorActivity(user_id=uid, user_email=email, count=int(n))
            for uid, email, n in rows
        ]

    def count_by_hour(self) -> List[int]:
        rows = self._fetchall(
            query="""
                SELECT EXTRACT(HOUR FROM "timestamp" AT TIME ZONE 'UTC')::int AS hour,
                       COUNT(*)
                FROM audit_logs
                GROUP BY hour
            """,
            params=(),
            error_message="PostgresAuditLogRepository: Failed to bucket by hour",
        )
        buckets = [0] * 24
        for hour, n in rows:
            buckets[int(hour)] = int(n)
        return buckets

    def count_by_day(self, since: datetime) -> List[DayCount]:
        rows = self._fetchall(
            query="""
                SELECT TO_CHAR(("timestamp" AT TIME ZONE 'UTC')::date, 'YYYY-MM-DD') AS day,
                       COUNT(*)
                FROM audit_logs
                WHERE "timestamp" >= %s
                GROUP BY day
                ORDER BY day DESC
            """,
            params=(since,),
            error_message="PostgresAuditLogRepository: Failed to bucket by day",
        )
        return [DayCount(day=day, count=int(n)) for day, n in rows]

    def security_events(self, actions: Sequence[AuditAction]) -> List[SecurityEvent]:
        if not actions:
            return []
        rows = self._fetchall(
            query="""
                SELECT action, COUNT(*), MAX("timestamp")
                FROM audit_logs
                WHERE action = ANY(%s)
                GROUP BY action
            """,
            params=([a.value for a in actions],),
            error_message="PostgresAuditLogRepository: Failed to load security events",
        )
        by_action = {action: (int(n), last) for action, n, last in rows}
        events: List[SecurityEvent] = []
        for a in actions:
            if a.value in by_action:
                n, last = by_action[a.value]
                events.append(SecurityEvent(type=a.value, count=n, last_occurrence=last))
        return events

    def user_activity(self) -> List[UserActivitySummary]:
        rows = self._fetchall(
            query="""
                SELECT user_id,
                       (ARRAY_AGG(user_email ORDER BY "timestamp" DESC))[1],
                       (ARRAY_AGG(user_name ORDER BY "timestamp" DESC))[1],
                       (ARRAY_AGG(user_lastname ORDER BY "timestamp" DESC))[1],
                       COUNT(*) AS total,
                       MIN("timestamp"),
                       MAX("timestamp")
                FROM audit_logs
                WHERE user_id IS NOT NULL
                GROUP BY user_id
                ORDER BY total DESC, user_id ASC
            """,
            params=(),
            error_message="PostgresAuditLogRepository: Failed to summarize user activity",
        )
        return [
            UserActivitySummary(
                user_id=uid,
                user_email=email,
                user_name=name,
                user_lastname=lastname,
                total_actions=int(total),
                first_activity=first,
                last_activity=last,
            )
            for uid, email, name, lastname, total, first, last in rows
        ]
