"""
Auditoría (escritura): sanitizer + descripciones + recorder best-effort.
"""

from .recorder import AuditRecorder
from .sanitizer import REDACTED, sanitize

__all__ = ["AuditRecorder", "REDACTED", "sanitize"]
