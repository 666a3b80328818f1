"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (uno por proceso)

Responsabilidades:
  - Abrir el pool en el startup y cerrarlo en el shutdown (api/main.py).
  - Dejar cada conexión nueva en UTC y con statement_timeout: los buckets
    de auditoría (date_trunc / EXTRACT(HOUR)) asumen sesión en UTC.
  - Entregar el pool envuelto en InstrumentedConnectionPool.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - infrastructure/db/instrumentation.InstrumentedConnectionPool

Principios:
  - Fail-fast: doble init o uso sin init levantan DatabasePoolError.
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError
from .instrumentation import InstrumentedConnectionPool

APPLICATION_NAME = "bitacora"

_lock = threading.Lock()
_pool: Optional[InstrumentedConnectionPool] = None


def _session_setup(statement_timeout_ms: int) -> Callable[[object], None]:
    def configure(conn) -> None:
        conn.execute("SET TIME ZONE 'UTC'")
        if statement_timeout_ms > 0:
            conn.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
        conn.commit()

    return configure


def init_pool(
    database_url: str,
    *,
    min_size: int,
    max_size: int,
    statement_timeout_ms: int = 30_000,
    slow_query_ms: int = 250,
    healthcheck: bool = True,
) -> InstrumentedConnectionPool:
    global _pool

    with _lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("El pool DB ya está abierto.")

        # Import diferido: en modo in-memory no se necesita el driver.
        from psycopg_pool import ConnectionPool

        inner = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            kwargs={"application_name": APPLICATION_NAME},
            configure=_session_setup(statement_timeout_ms),
            name=APPLICATION_NAME,
            open=True,
        )
        _pool = InstrumentedConnectionPool(
            inner, slow_query_ms=slow_query_ms, healthcheck=healthcheck
        )

    logger.info(
        "Pool DB abierto",
        extra={
            "min_size": min_size,
            "max_size": max_size,
            "statement_timeout_ms": statement_timeout_ms,
        },
    )
    return _pool


def get_pool() -> InstrumentedConnectionPool:
    pool = _pool
    if pool is None:
        raise PoolNotInitializedError("Pool DB no inicializado (init_pool).")
    return pool


def close_pool() -> None:
    """Idempotente."""
    global _pool

    with _lock:
        pool, _pool = _pool, None
    if pool is not None:
        pool.close()
        logger.info("Pool DB cerrado")


def reset_pool() -> None:
    """Para tests: descarta el pool aunque close() falle."""
    global _pool

    with _lock:
        pool, _pool = _pool, None
    if pool is None:
        return
    try:
        pool.close()
    except Exception as exc:
        logger.warning("reset_pool: close falló", extra={"error": str(exc)})
