"""
===============================================================================
TARJETA CRC — bitacora/api/main.py (App FastAPI)
===============================================================================

Responsabilidades:
  - create_app(): metadata, middlewares, router /v1, handlers de error.
  - Ciclo de vida del proceso (lifespan):
      startup  -> abrir pool DB si hay DATABASE_URL
      shutdown -> drenar auditoría pendiente, LUEGO cerrar el pool
  - /healthz: estado del storage y escrituras de auditoría en vuelo.

Colaboradores:
  - container.get_audit_recorder / shutdown_recorder
  - infrastructure/db/pool (init_pool / get_pool / close_pool)
  - crosscutting.middleware.RequestContextMiddleware
  - interfaces/api/http/router

Notas:
  - Sin autenticación propia: el gateway inyecta X-User-* (ver CORS).
  - APP_ENV=test o DATABASE_URL vacía => repositorios in-memory, sin pool.
===============================================================================
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..container import get_audit_recorder, shutdown_recorder
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, get_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers

ACTOR_HEADERS = [
    "X-User-Id",
    "X-User-Email",
    "X-User-Name",
    "X-User-Lastname",
    "X-User-Roles",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.uses_database():
        init_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            statement_timeout_ms=settings.db_statement_timeout_ms,
            slow_query_ms=settings.db_slow_query_ms,
            healthcheck=settings.db_healthcheck_on_acquire,
        )

    logger.info(
        "Bitácora iniciada",
        extra={
            "storage": "postgres" if settings.uses_database() else "in-memory",
            "audit_async": settings.audit_async,
            "app_env": settings.app_env,
        },
    )
    try:
        yield
    finally:
        shutdown_recorder()
        close_pool()
        logger.info("Bitácora detenida")


def storage_status() -> str:
    """"in-memory", "connected" o "disconnected"."""
    if not get_settings().uses_database():
        return "in-memory"
    try:
        with get_pool().connection() as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        logger.warning("healthz: DB no disponible", extra={"error": str(exc)})
        return "disconnected"
    return "connected"


def create_app() -> FastAPI:
    app = FastAPI(
        title="Bitacora API",
        description="Reportes de maquinaria vial con auditoría y borrado controlado.",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "reports", "description": "Reportes municipales y de alquiler"},
            {"name": "audit", "description": "Bitácora: consulta, estadísticas, export"},
        ],
    )

    # El último middleware agregado es el más externo: CORS envuelve al contexto.
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().get_allowed_origins_list(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER, *ACTOR_HEADERS],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.include_router(router, prefix="/v1")
    register_exception_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz(request: Request):
        db = storage_status()
        return {
            "ok": db != "disconnected",
            "db": db,
            "audit_pending": get_audit_recorder().pending_count,
            "request_id": getattr(request.state, "request_id", None),
        }

    return app


app = create_app()
