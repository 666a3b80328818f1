"""
===============================================================================
TARJETA CRC — dependencies.py (Dependencias y helpers comunes)
===============================================================================

Responsabilidades:
  - Resolver el actor desde headers de identidad (X-User-*).
  - Construir RequestMeta (actor + user-agent + ip + url) para auditoría.
  - Validar el segmento {kind} de las rutas de reportes.

Colaboradores:
  - domain.audit.AuditActor
  - domain.reports.ReportKind
  - application.usecases.reports.RequestMeta
  - crosscutting.error_responses.validation_error

Notas:
  - La autenticación vive fuera de este servicio: el gateway inyecta los
    headers X-User-*. Sin headers, la acción queda sin actor.
===============================================================================
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from ....application.usecases.reports import RequestMeta
from ....crosscutting.error_responses import validation_error
from ....domain.audit import AuditActor
from ....domain.reports import ReportKind

# Alias aceptados en la URL además del valor canónico
_KIND_ALIASES: dict[str, ReportKind] = {
    "municipal": ReportKind.MUNICIPAL,
    "municipales": ReportKind.MUNICIPAL,
    "rental": ReportKind.RENTAL,
    "alquiler": ReportKind.RENTAL,
    "alquileres": ReportKind.RENTAL,
}


def parse_kind(kind: str) -> ReportKind:
    resolved = _KIND_ALIASES.get((kind or "").strip().lower())
    if resolved is None:
        raise validation_error(
            f"Tipo de reporte inválido: {kind}",
            errors=[{"field": "kind", "msg": "Use municipal o alquiler"}],
        )
    return resolved


def _split_roles(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(r.strip() for r in raw.split(",") if r.strip())


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    x_user_lastname: Optional[str] = Header(default=None),
    x_user_roles: Optional[str] = Header(default=None),
) -> Optional[AuditActor]:
    if not any((x_user_id, x_user_email)):
        return None
    return AuditActor(
        user_id=x_user_id or None,
        email=x_user_email or None,
        name=x_user_name or None,
        lastname=x_user_lastname or None,
        roles=_split_roles(x_user_roles),
    )


def client_ip(request: Request) -> Optional[str]:
    """Primer hop de X-Forwarded-For; si no, la IP del socket."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def build_request_meta(request: Request, actor: Optional[AuditActor]) -> RequestMeta:
    return RequestMeta(
        actor=actor,
        user_agent=request.headers.get("user-agent"),
        ip=client_ip(request),
        url=str(request.url.path),
    )
