"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/audit_log.py
============================================================
Class: InMemoryAuditLogRepository

Responsibilities:
  - Guardar entradas de auditoría en memoria (tests / local dev).
  - Implementar filtros, búsqueda, orden y paginación con la misma
    semántica que el repo Postgres.
  - Implementar las primitivas de agregación (count, count_by, buckets, ...).

Collaborators:
  - domain.audit (AuditEntry, AuditLogFilter, value objects)
  - domain.repositories.AuditLogRepository

Constraints / Notes:
  - Thread-safe: acceso protegido por Lock (el recorder escribe desde
    hilos de background).
  - Append-only: no hay update/delete.
  - Se guarda el orden de inserción para desempatar de forma estable.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from ....domain.audit import (
    ActorActivity,
    AuditAction,
    AuditEntry,
    AuditLogFilter,
    DayCount,
    SecurityEvent,
    SortOrder,
    UserActivitySummary,
    ensure_utc,
    utcnow,
)

_GROUPABLE = {"action", "entity"}


class InMemoryAuditLogRepository:
    """Implementación in-memory de AuditLogRepository."""

    def __init__(self, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._lock = Lock()
        self._entries: List[AuditEntry] = []
        self._clock = clock

    # =========================================================
    # Escritura
    # =========================================================
    def append(self, entry: AuditEntry) -> AuditEntry:
        stored = replace(
            entry,
            id=entry.id or uuid4(),
            timestamp=ensure_utc(entry.timestamp or self._clock()),
        )
        with self._lock:
            self._entries.append(stored)
        return stored

    # =========================================================
    # Consulta
    # =========================================================
    def query(self, filters: AuditLogFilter) -> Tuple[List[AuditEntry], int]:
        matches = [e for e in self._snapshot() if self._matches(e, filters)]
        ordered = self._sorted(matches, filters.sort_by, filters.sort_order)
        start = filters.offset
        return ordered[start : start + filters.limit], len(matches)

    # =========================================================
    # Agregaciones
    # =========================================================
    def count(
        self,
        *,
        action: Optional[AuditAction] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        return sum(
            1
            for e in self._snapshot()
            if (action is None or e.action == action) and _in_range(e, start, end)
        )

    def count_by(self, field: str) -> Dict[str, int]:
        if field not in _GROUPABLE:
            raise ValueError(f"No se puede agrupar por {field!r}")
        counts: Dict[str, int] = {}
        for e in self._snapshot():
            key = getattr(e, field).value
            counts[key] = counts.get(key, 0) + 1
        return counts

    def top_actors(self, limit: int) -> List[ActorActivity]:
        """Email de la entrada más reciente (aunque sea None); empate por user_id."""
        return [
            ActorActivity(user_id=s.user_id, user_email=s.user_email, count=s.total_actions)
            for s in self.user_activity()[:limit]
        ]

    def count_by_hour(self) -> List[int]:
        buckets = [0] * 24
        for e in self._snapshot():
            buckets[ensure_utc(e.timestamp).hour] += 1
        return buckets

    def count_by_day(self, since: datetime) -> List[DayCount]:
        counts: Dict[str, int] = {}
        for e in self._snapshot():
            if _in_range(e, since, None):
                day = ensure_utc(e.timestamp).date().isoformat()
                counts[day] = counts.get(day, 0) + 1
        return [
            DayCount(day=day, count=counts[day])
            for day in sorted(counts, reverse=True)
        ]

    def security_events(self, actions: Sequence[AuditAction]) -> List[SecurityEvent]:
        events: List[SecurityEvent] = []
        entries = self._snapshot()
        for action in actions:
            hits = [e for e in entries if e.action == action]
            if hits:
                events.append(
                    SecurityEvent(
                        type=action.value,
                        count=len(hits),
                        last_occurrence=max(ensure_utc(e.timestamp) for e in hits),
                    )
                )
        return events

    def user_activity(self) -> List[UserActivitySummary]:
        grouped: Dict[str, List[AuditEntry]] = {}
        for e in self._snapshot():
            if e.user_id is not None:
                grouped.setdefault(e.user_id, []).append(e)

        summaries = []
        for uid, entries in grouped.items():
            latest = max(entries, key=lambda x: ensure_utc(x.timestamp))
            summaries.append(
                UserActivitySummary(
                    user_id=uid,
                    user_email=latest.user_email,
                    user_name=latest.user_name,
                    user_lastname=latest.user_lastname,
                    total_actions=len(entries),
                    first_activity=min(ensure_utc(x.timestamp) for x in entries),
                    last_activity=ensure_utc(latest.timestamp),
                )
            )
        return sorted(summaries, key=lambda s: (-s.total_actions, s.user_id))

    # =========================================================
    # Helpers internos
    # =========================================================
    def _snapshot(self) -> List[AuditEntry]:
        """Copia de la lista (entradas frozen => sin aliasing)."""
        with self._lock:
            return list(self._entries)

    @staticmethod
    def _matches(e: AuditEntry, f: AuditLogFilter) -> bool:
        if f.action is not None and e.action != f.action:
            return False
        if f.entity is not None and e.entity != f.entity:
            return False
        if f.entity_id is not None and e.entity_id != f.entity_id:
            return False
        if f.user_id is not None and e.user_id != f.user_id:
            return False
        if f.user_email is not None and not _contains(e.user_email, f.user_email):
            return False
        if not _in_range(e, f.start_date, f.end_date, inclusive_end=True):
            return False
        if f.search is not None and not any(
            _contains(value, f.search)
            for value in (e.description, e.user_email, e.entity_id)
        ):
            return False
        return True

    @staticmethod
    def _sorted(
        entries: List[AuditEntry], sort_by: str, order: SortOrder
    ) -> List[AuditEntry]:
        def key(e: AuditEntry) -> Tuple[bool, Any]:
            value = getattr(e, sort_by)
            if isinstance(value, datetime):
                value = ensure_utc(value)
            # NULLS LAST en ASC / NULLS FIRST en DESC (como Postgres)
            return (value is None, value if value is not None else "")

        descending = order is SortOrder.DESC
        if descending:
            # reversed() antes de ordenar: en empates la más reciente primero
            return sorted(reversed(entries), key=key, reverse=True)
        return sorted(entries, key=key)


def _contains(value: Optional[str], needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


def _in_range(
    e: AuditEntry,
    start: Optional[datetime],
    end: Optional[datetime],
    *,
    inclusive_end: bool = False,
) -> bool:
    ts = ensure_utc(e.timestamp)
    if start is not None and ts < ensure_utc(start):
        return False
    if end is not None:
        bound = ensure_utc(end)
        if ts > bound or (not inclusive_end and ts == bound):
            return False
    return True
