"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .audit_log import InMemoryAuditLogRepository
from .report import InMemoryReportRepository

__all__ = [
    "InMemoryAuditLogRepository",
    "InMemoryReportRepository",
]
