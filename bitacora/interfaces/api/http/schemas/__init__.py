"""
===============================================================================
TARJETA CRC — schemas/__init__.py
===============================================================================

Módulo:
    Paquete de Schemas HTTP (DTOs Pydantic)

Responsabilidades:
    - Agrupar contratos HTTP por contexto (audit / reports).
    - Mantener separados DTOs (schemas) de controladores (routers).

Reglas:
    - Schemas NO importan infraestructura ni ejecutan casos de uso.
===============================================================================
"""

__all__ = []
