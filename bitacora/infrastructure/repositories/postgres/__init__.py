"""
PostgreSQL Repository Implementations (psycopg + psycopg_pool, SQL crudo).
"""

from .audit_log import PostgresAuditLogRepository
from .report import PostgresReportRepository

__all__ = [
    "PostgresAuditLogRepository",
    "PostgresReportRepository",
]
