"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.
    - Mantener estable el “surface area” del dominio.

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .audit import (
    ActionContext,
    AuditAction,
    AuditActor,
    AuditEntity,
    AuditEntry,
    AuditLogFilter,
    AuditPage,
    AuditStats,
    SortOrder,
)
from .reports import Report, ReportKind, RestoreInfo
from .repositories import AuditLogRepository, ReportChange, ReportRepository

__all__ = [
    # Audit
    "ActionContext",
    "AuditAction",
    "AuditActor",
    "AuditEntity",
    "AuditEntry",
    "AuditLogFilter",
    "AuditPage",
    "AuditStats",
    "SortOrder",
    # Reports
    "Report",
    "ReportKind",
    "RestoreInfo",
    # Ports
    "AuditLogRepository",
    "ReportChange",
    "ReportRepository",
]
