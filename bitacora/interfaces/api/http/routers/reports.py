"""
===============================================================================
TARJETA CRC — routers/reports.py
===============================================================================

Módulo:
    Endpoints HTTP de reportes (municipal / alquiler)

Responsabilidades:
    - Alta, edición parcial, lectura y listado de reportes.
    - Borrado lógico con motivo y restauración (con restoreInfo).
    - Adaptar HTTP <-> casos de uso (sin lógica de negocio).

Colaboradores:
    - container: factories de use cases
    - dependencies: parse_kind, get_actor, build_request_meta
    - error_mapping.raise_report_error
    - schemas.reports
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from .....application.usecases.reports import (
    CreateReportUseCase,
    GetReportUseCase,
    ListDeletedReportsUseCase,
    ListReportsUseCase,
    RestoreReportUseCase,
    SoftDeleteReportUseCase,
    UpdateReportUseCase,
)
from .....container import (
    get_create_report_use_case,
    get_get_report_use_case,
    get_list_deleted_reports_use_case,
    get_list_reports_use_case,
    get_restore_report_use_case,
    get_soft_delete_report_use_case,
    get_update_report_use_case,
)
from .....domain.audit import AuditActor
from ..dependencies import build_request_meta, get_actor, parse_kind
from ..error_mapping import raise_report_error
from ..schemas.reports import (
    DeleteReportReq,
    ReportCreateReq,
    ReportRes,
    ReportsRes,
    ReportUpdateReq,
    RestoreRes,
    SoftDeleteRes,
)

router = APIRouter(prefix="/reports")


@router.post(
    "/{kind}",
    response_model=ReportRes,
    status_code=status.HTTP_201_CREATED,
    tags=["reports"],
)
def create_report(
    kind: str,
    req: ReportCreateReq,
    request: Request,
    actor: Optional[AuditActor] = Depends(get_actor),
    use_case: CreateReportUseCase = Depends(get_create_report_use_case),
):
    result = use_case.execute(
        parse_kind(kind), req.to_fields(), build_request_meta(request, actor)
    )
    if result.error is not None:
        raise_report_error(result.error)
    return result.report.to_dict()


@router.get("/{kind}", response_model=ReportsRes, tags=["reports"])
def list_reports(
    kind: str,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    use_case: ListReportsUseCase = Depends(get_list_reports_use_case),
):
    result = use_case.execute(
        parse_kind(kind), include_deleted=include_deleted, limit=limit, offset=offset
    )
    return {"reports": [r.to_dict() for r in result.reports]}


@router.get("/{kind}/deleted", response_model=ReportsRes, tags=["reports"])
def list_deleted_reports(
    kind: str,
    use_case: ListDeletedReportsUseCase = Depends(get_list_deleted_reports_use_case),
):
    result = use_case.execute(parse_kind(kind))
    return {"reports": [r.to_dict() for r in result.reports]}


@router.get("/{kind}/{report_id}", response_model=ReportRes, tags=["reports"])
def get_report(
    kind: str,
    report_id: int,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    use_case: GetReportUseCase = Depends(get_get_report_use_case),
):
    result = use_case.execute(
        parse_kind(kind), report_id, include_deleted=include_deleted
    )
    if result.error is not None:
        raise_report_error(result.error)
    return result.report.to_dict()


@router.patch("/{kind}/{report_id}", response_model=ReportRes, tags=["reports"])
def update_report(
    kind: str,
    report_id: int,
    req: ReportUpdateReq,
    request: Request,
    actor: Optional[AuditActor] = Depends(get_actor),
    use_case: UpdateReportUseCase = Depends(get_update_report_use_case),
):
    result = use_case.execute(
        parse_kind(kind),
        report_id,
        req.to_fields(),
        build_request_meta(request, actor),
        expected_version=req.expected_version,
    )
    if result.error is not None:
        raise_report_error(result.error)
    return result.report.to_dict()


@router.delete("/{kind}/{report_id}", response_model=SoftDeleteRes, tags=["reports"])
def delete_report(
    kind: str,
    report_id: int,
    request: Request,
    req: Optional[DeleteReportReq] = Body(default=None),
    actor: Optional[AuditActor] = Depends(get_actor),
    use_case: SoftDeleteReportUseCase = Depends(get_soft_delete_report_use_case),
):
    """Borrado lógico. El motivo es opcional (body {"reason": "..."})."""
    result = use_case.execute(
        parse_kind(kind),
        report_id,
        req.reason if req else None,
        build_request_meta(request, actor),
    )
    if result.error is not None:
        raise_report_error(result.error)
    return result.to_dict()


@router.post(
    "/{kind}/{report_id}/restore", response_model=RestoreRes, tags=["reports"]
)
def restore_report(
    kind: str,
    report_id: int,
    request: Request,
    actor: Optional[AuditActor] = Depends(get_actor),
    use_case: RestoreReportUseCase = Depends(get_restore_report_use_case),
):
    result = use_case.execute(
        parse_kind(kind), report_id, build_request_meta(request, actor)
    )
    if result.error is not None:
        raise_report_error(result.error)
    return result.to_dict()
