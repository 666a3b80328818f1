"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir códigos de error de casos de uso a HTTP Exceptions RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.

Reglas:
  - Los use cases devuelven errores tipados (code + message [+ details]).
  - La API traduce a RFC7807 (crosscutting.error_responses).

Colaboradores:
  - application.usecases.reports (ReportError, ReportErrorCode)
  - application.usecases.audit (AuditError, AuditErrorCode)
===============================================================================
"""

from __future__ import annotations

from typing import NoReturn

from ....application.usecases.audit import AuditError
from ....application.usecases.reports import ReportError, ReportErrorCode
from ....crosscutting.error_responses import conflict, not_found, validation_error


def raise_report_error(error: ReportError) -> NoReturn:
    """ReportErrorCode -> 422 / 404 / 409."""
    if error.code == ReportErrorCode.NOT_FOUND:
        raise not_found(error.message)
    if error.code == ReportErrorCode.CONFLICT:
        raise conflict(error.message)
    # VALIDATION_ERROR y cualquier código nuevo
    raise validation_error(error.message, errors=error.details)


def raise_audit_error(error: AuditError) -> NoReturn:
    errors = [{"field": error.field, "msg": error.message}] if error.field else None
    raise validation_error(error.message, errors=errors)
