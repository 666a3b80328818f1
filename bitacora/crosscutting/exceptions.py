"""
===============================================================================
MÓDULO: Errores internos de Bitácora
===============================================================================

Componente:
  BitacoraError + subclases (DatabaseError, ConflictError)

Responsabilidades:
  - Dar a cada falla de infraestructura un error_code estable y un error_id
    único; el error_id viaja en el problem+json y en la línea de log.
  - Conservar la excepción del driver (original_error) para diagnóstico.

Colaboradores:
  - infrastructure/repositories/postgres/* y infrastructure/db/* (levantan)
  - api/exception_handlers.py (traduce a HTTP)

Notas:
  - Las fallas de negocio NO son excepciones: los use cases devuelven
    resultados tipados (ReportError / AuditError).
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class BitacoraError(Exception):
    error_code: str = "BITACORA_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_id: str | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_id = error_id or uuid4().hex
        self.original_error = original_error


class DatabaseError(BitacoraError):
    """PostgreSQL o pool: conexión, query, timeout."""

    error_code = "DATABASE_ERROR"


class ConflictError(DatabaseError):
    """
    Modificación concurrente: el registro cambió entre la lectura y la escritura
    (version distinta, serialization failure, deadlock o lock timeout).
    """

    error_code = "CONFLICT"
