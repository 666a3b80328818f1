"""
===============================================================================
CRC CARD — infrastructure/db/instrumentation.py
===============================================================================

Clases:
  - TimedConnection (Proxy de conexión)
  - InstrumentedConnectionPool (Proxy del pool)

Responsabilidades:
  - Medir cada conn.execute(...) y loguear las lentas como WARNING
    (sólo el tipo de statement: SELECT/UPDATE/...; nunca parámetros).
  - SELECT 1 opcional al adquirir la conexión.
  - Cualquier falla al adquirir/validar -> DatabaseConnectionError (503).

Colaboradores:
  - crosscutting.logger
  - psycopg_pool.ConnectionPool (pool real)
===============================================================================
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from ...crosscutting.logger import logger
from .errors import DatabaseConnectionError


def statement_kind(sql: Any) -> str:
    words = str(sql).split(None, 1)
    return words[0].upper() if words else "UNKNOWN"


class TimedConnection:
    """execute() cronometrado; transaction(), commit(), etc. pasan directo."""

    def __init__(self, conn, *, slow_seconds: float) -> None:
        self._conn = conn
        self._slow_seconds = slow_seconds

    def execute(self, sql, *args, **kwargs):
        started = time.perf_counter()
        try:
            return self._conn.execute(sql, *args, **kwargs)
        finally:
            seconds = time.perf_counter() - started
            if seconds >= self._slow_seconds:
                logger.warning(
                    "DB query lenta",
                    extra={"kind": statement_kind(sql), "seconds": round(seconds, 4)},
                )

    def __getattr__(self, name: str):
        return getattr(self._conn, name)


class InstrumentedConnectionPool:
    """
    Los repositorios usan `with pool.connection() as conn:` igual que con
    psycopg_pool; `conn` es un TimedConnection.
    """

    def __init__(
        self, pool, *, slow_query_ms: int = 250, healthcheck: bool = True
    ) -> None:
        self._pool = pool
        self._slow_seconds = max(slow_query_ms, 0) / 1000
        self._healthcheck = healthcheck

    @contextmanager
    def connection(self, *args, **kwargs) -> Iterator[TimedConnection]:
        try:
            ctx = self._pool.connection(*args, **kwargs)
            conn = ctx.__enter__()
        except Exception as exc:
            raise DatabaseConnectionError(
                "No se pudo obtener una conexión DB.", original_error=exc
            ) from exc

        try:
            if self._healthcheck:
                self._ping(conn)
            yield TimedConnection(conn, slow_seconds=self._slow_seconds)
        except BaseException as exc:
            if not ctx.__exit__(type(exc), exc, exc.__traceback__):
                raise
        else:
            ctx.__exit__(None, None, None)

    @staticmethod
    def _ping(conn) -> None:
        try:
            conn.execute("SELECT 1")
        except Exception as exc:
            raise DatabaseConnectionError(
                "Conexión DB inválida (healthcheck).", original_error=exc
            ) from exc

    def __getattr__(self, name: str):
        return getattr(self._pool, name)
