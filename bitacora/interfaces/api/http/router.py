"""
===============================================================================
TARJETA CRC — router.py (Router raíz / Composición)
===============================================================================

Responsabilidades:
  - Definir el APIRouter raíz que se incluye en FastAPI (app.include_router).
  - Componer routers por contexto (reports / audit).

Notas:
  - Este router se incluye desde bitacora/api/main.py con prefix="/v1".
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter

from .routers.audit import router as audit_router
from .routers.reports import router as reports_router


def build_router() -> APIRouter:
    """Construye el router raíz v1 (invocable en tests sin side-effects)."""
    api_router = APIRouter()
    api_router.include_router(reports_router)
    api_router.include_router(audit_router)
    return api_router


router = build_router()

__all__ = ["router", "build_router"]
