"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Errores del pool. Heredan de DatabaseError, así que la API responde 503
sin handlers propios.
===============================================================================
"""

from ...crosscutting.exceptions import DatabaseError


class DatabasePoolError(DatabaseError):
    error_code = "DATABASE_POOL_ERROR"


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """get_pool() antes de init_pool() (o después de close_pool())."""


class DatabaseConnectionError(DatabasePoolError):
    """No se pudo adquirir o validar (SELECT 1) una conexión."""
