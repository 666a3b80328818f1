"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los servicios de aplicación compartidos:
  - AuditRecorder: escritura best-effort de auditoría
  - sanitize: limpieza de snapshots antes de persistir

Nota:
  - Los casos de uso se importan desde `usecases/` (audit, reports).
===============================================================================
"""

from .audit import AuditRecorder, sanitize

__all__ = ["AuditRecorder", "sanitize"]
