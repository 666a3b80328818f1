"""
===============================================================================
TARJETA CRC — routers/audit.py
===============================================================================

Módulo:
    Endpoints HTTP de la bitácora de auditoría

Responsabilidades:
    - Listado filtrado/paginado, historial por entidad y por usuario.
    - Estadísticas agregadas, resumen de actividad por usuario y exportación.
    - Registrar acciones reportadas por otros componentes (POST /audit/log).

Colaboradores:
    - container: factories de use cases + AuditRecorder
    - error_mapping.raise_audit_error
    - schemas.audit

Notas:
    - Los query params llegan crudos (str): la validación y los errores
      tipados viven en application.usecases.audit.audit_filters.
===============================================================================
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from .....application.audit import AuditRecorder
from .....application.usecases.audit import (
    AuditQueryInput,
    ExportAuditLogsUseCase,
    GetAuditStatsUseCase,
    GetUserActivitySummaryUseCase,
    ListAuditLogsUseCase,
    ListEntityLogsUseCase,
    ListUserLogsUseCase,
)
from .....container import (
    get_audit_recorder,
    get_audit_stats_use_case,
    get_export_audit_logs_use_case,
    get_list_audit_logs_use_case,
    get_list_entity_logs_use_case,
    get_list_user_logs_use_case,
    get_user_activity_use_case,
)
from .....domain.audit import ActionContext, AuditActor
from ..dependencies import client_ip, get_actor
from ..error_mapping import raise_audit_error
from ..schemas.audit import (
    AuditExportRes,
    AuditLogAcceptedRes,
    AuditLogReq,
    AuditPageRes,
    UserActivityRes,
)

router = APIRouter(prefix="/audit")


def audit_query_params(
    action: Optional[str] = Query(None),
    entity: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None, alias="entityId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    user_email: Optional[str] = Query(None, alias="userEmail"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> AuditQueryInput:
    return AuditQueryInput(
        action=action,
        entity=entity,
        entity_id=entity_id,
        user_id=user_id,
        user_email=user_email,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/logs", response_model=AuditPageRes, tags=["audit"])
def list_audit_logs(
    params: AuditQueryInput = Depends(audit_query_params),
    use_case: ListAuditLogsUseCase = Depends(get_list_audit_logs_use_case),
):
    result = use_case.execute(params)
    if result.error is not None:
        raise_audit_error(result.error)
    return result.page.to_dict()


@router.get(
    "/logs/entity/{entity}/{entity_id}", response_model=AuditPageRes, tags=["audit"]
)
def list_entity_logs(
    entity: str,
    entity_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    use_case: ListEntityLogsUseCase = Depends(get_list_entity_logs_use_case),
):
    result = use_case.execute(entity, entity_id, page=page, limit=limit)
    if result.error is not None:
        raise_audit_error(result.error)
    return result.page.to_dict()


@router.get("/logs/user/{user_id}", response_model=AuditPageRes, tags=["audit"])
def list_user_logs(
    user_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    use_case: ListUserLogsUseCase = Depends(get_list_user_logs_use_case),
):
    result = use_case.execute(user_id, page=page, limit=limit)
    if result.error is not None:
        raise_audit_error(result.error)
    return result.page.to_dict()


@router.get("/stats", response_model=dict[str, Any], tags=["audit"])
def audit_stats(
    use_case: GetAuditStatsUseCase = Depends(get_audit_stats_use_case),
):
    return use_case.execute().stats.to_dict()


@router.get(
    "/users/activity-summary",
    response_model=list[UserActivityRes],
    tags=["audit"],
)
def user_activity_summary(
    use_case: GetUserActivitySummaryUseCase = Depends(get_user_activity_use_case),
):
    return [u.to_dict() for u in use_case.execute().users]


@router.get("/export", response_model=AuditExportRes, tags=["audit"])
def export_audit_logs(
    params: AuditQueryInput = Depends(audit_query_params),
    use_case: ExportAuditLogsUseCase = Depends(get_export_audit_logs_use_case),
):
    result = use_case.execute(params)
    if result.error is not None:
        raise_audit_error(result.error)
    return result.to_dict()


@router.post(
    "/log",
    response_model=AuditLogAcceptedRes,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["audit"],
)
def record_audit_log(
    req: AuditLogReq,
    request: Request,
    actor: Optional[AuditActor] = Depends(get_actor),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Registra una acción (fire-and-forget).

    Siempre 202: entradas inválidas se descartan y se loguean en el recorder.
    """
    recorder.record(
        ActionContext(
            action=req.action,
            entity=req.entity,
            entity_id=req.entity_id,
            actor=actor,
            description=req.description,
            changes_before=req.changes_before,
            changes_after=req.changes_after,
            user_agent=request.headers.get("user-agent"),
            ip=client_ip(request),
            url=str(request.url.path),
            metadata=req.metadata,
        )
    )
    return AuditLogAcceptedRes()
