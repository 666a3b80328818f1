"""
Use Cases Layer (Business Operations)

Structure
---------
usecases/
├── audit/      # consultas, estadísticas y export del log de auditoría
└── reports/    # create/update + soft-delete/restore de reportes

Usage
-----
    from bitacora.application.usecases.audit import ListAuditLogsUseCase
    from bitacora.application.usecases.reports import SoftDeleteReportUseCase
"""
