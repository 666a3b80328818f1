"""
============================================================
TARJETA CRC
============================================================
Class: bitacora.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorios Postgres (SQL crudo)
- Repositorios InMemory (testing / desarrollo sin DB)
============================================================
"""

from .in_memory import InMemoryAuditLogRepository, InMemoryReportRepository
from .postgres import PostgresAuditLogRepository, PostgresReportRepository

__all__ = [
    "InMemoryAuditLogRepository",
    "InMemoryReportRepository",
    "PostgresAuditLogRepository",
    "PostgresReportRepository",
]
