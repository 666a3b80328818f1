"""
===============================================================================
USE CASE: Get Audit Stats (Query / Aggregation)
===============================================================================

Business Goal:
    Tablero de actividad: totales, agrupaciones, ventanas de tiempo, buckets
    por hora/día, eventos de seguridad, tasa de error, picos y tendencias.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Class:
    GetAuditStatsUseCase

Responsibilities:
    - Calcular límites de ventana en UTC (hoy, semana desde domingo, mes).
    - Componer primitivas del repositorio en AuditStats.
    - Calcular growth = (actual - previo) / previo * 100, con 0 si previo == 0.

Collaborators:
    - AuditLogRepository: count / count_by / top_actors / count_by_hour /
      count_by_day / security_events

-------------------------------------------------------------------------------
RULES
-------------------------------------------------------------------------------
R1) Ventanas fijas: today = 00:00 UTC, week = domingo 00:00 UTC,
    month = día 1 00:00 UTC.
R2) Tendencias móviles: 24h vs 24h previas, 7d vs 7d previos,
    último mes calendario (día acotado) vs el anterior.
R3) errorRate = SYSTEM / total * 100 (2 decimales); 0 si total == 0.
R4) averageLogsPerDay = entradas de los últimos 30 días / 30 (2 decimales).
R5) Peak: hora con más entradas (default 12), día con más entradas en los
    últimos 30 días (default hoy con count 0).
===============================================================================
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import Callable, Final, List

from ....domain.audit import (
    SECURITY_ACTIONS,
    AuditAction,
    AuditStats,
    AuditTrends,
    DayCount,
    PeakActivity,
    ensure_utc,
    utcnow,
)
from ....domain.repositories import AuditLogRepository
from .audit_results import AuditStatsResult

ACTIVITY_WINDOW_DAYS: Final[int] = 30
DEFAULT_PEAK_HOUR: Final[int] = 12


def growth(current: int, previous: int) -> float:
    """Variación porcentual; 0 cuando no hay base de comparación."""
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def shift_months(value: datetime, months: int) -> datetime:
    """Suma/resta meses acotando el día al último día del mes destino."""
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(value: datetime) -> datetime:
    """Domingo 00:00 (weekday(): lunes=0 ... domingo=6)."""
    today = start_of_day(value)
    return today - timedelta(days=(today.weekday() + 1) % 7)


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value).replace(day=1)


def peak_hour(by_hour: List[int]) -> int:
    best = max(by_hour, default=0)
    if best <= 0:
        return DEFAULT_PEAK_HOUR
    return by_hour.index(best)


def peak_day(by_day: List[DayCount], today: str) -> DayCount:
    if not by_day:
        return DayCount(day=today, count=0)
    # by_day viene DESC por fecha: ante empate gana el más reciente
    return max(by_day, key=lambda d: d.count)


class GetAuditStatsUseCase:
    def __init__(
        self,
        repository: AuditLogRepository,
        *,
        top_actors: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._audit = repository
        self._top_actors = top_actors
        self._clock = clock

    def execute(self) -> AuditStatsResult:
        now = ensure_utc(self._clock())
        audit = self._audit

        total = audit.count()
        by_hour = audit.count_by_hour()
        since_window = now - timedelta(days=ACTIVITY_WINDOW_DAYS)
        by_day = audit.count_by_day(since_window)

        system_count = audit.count(action=AuditAction.SYSTEM)
        error_rate = round(system_count / total * 100, 2) if total else 0.0
        window_count = audit.count(start=since_window)

        best_day = peak_day(by_day, start_of_day(now).date().isoformat())

        stats = AuditStats(
            total_logs=total,
            logs_by_action=audit.count_by("action"),
            logs_by_entity=audit.count_by("entity"),
            logs_by_user=audit.top_actors(self._top_actors),
            logs_today=audit.count(start=start_of_day(now)),
            logs_this_week=audit.count(start=start_of_week(now)),
            logs_this_month=audit.count(start=start_of_month(now)),
            logs_by_hour=by_hour,
            logs_by_day=by_day,
            security_events=audit.security_events(SECURITY_ACTIONS),
            error_rate=error_rate,
            average_logs_per_day=round(window_count / ACTIVITY_WINDOW_DAYS, 2),
            peak_activity=PeakActivity(
                hour=peak_hour(by_hour), day=best_day.day, count=best_day.count
            ),
            trends=self._trends(now),
        )
        return AuditStatsResult(stats=stats)

    def _trends(self, now: datetime) -> AuditTrends:
        day = timedelta(days=1)
        week = timedelta(days=7)
        month_ago = shift_months(now, -1)
        two_months_ago = shift_months(now, -2)

        return AuditTrends(
            daily_growth=self._period_growth(now - day, now - 2 * day),
            weekly_growth=self._period_growth(now - week, now - 2 * week),
            monthly_growth=self._period_growth(month_ago, two_months_ago),
        )

    def _period_growth(self, current_start: datetime, previous_start: datetime) -> float:
        """Periodo actual [current_start, ahora] vs [previous_start, current_start)."""
        current = self._audit.count(start=current_start)
        previous = self._audit.count(start=previous_start, end=current_start)
        return growth(current, previous)
