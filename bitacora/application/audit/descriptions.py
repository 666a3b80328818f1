"""
Descripciones legibles para entradas de auditoría.

Determinísticas: mismo (action, entity, entity_id, snapshot) => mismo texto.
Las plantillas específicas por entidad caen a la genérica si faltan datos.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from ...domain.audit import AuditAction, AuditEntity

VERBS: dict[AuditAction, str] = {
    AuditAction.CREATE: "Se creó",
    AuditAction.UPDATE: "Se actualizó",
    AuditAction.DELETE: "Se eliminó",
    AuditAction.RESTORE: "Se restauró",
    AuditAction.AUTH: "Evento de autenticación en",
    AuditAction.SYSTEM: "Evento del sistema en",
    AuditAction.ROLE_CHANGE: "Se cambiaron los roles de",
}

ENTITY_LABELS: dict[AuditEntity, str] = {
    AuditEntity.USUARIOS: "usuario",
    AuditEntity.TRANSPORTE: "transporte",
    AuditEntity.OPERADORES: "operador",
    AuditEntity.REPORTES: "reporte",
    AuditEntity.ROLES: "rol",
    AuditEntity.SOLICITUDES: "solicitud",
    AuditEntity.SYSTEM: "sistema",
    AuditEntity.AUTHENTICATION: "autenticación",
}


def _pick(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _usuario(verb: str, data: Mapping[str, Any]) -> Optional[str]:
    email = _pick(data, "email", "userEmail", "user_email")
    return f"{verb} usuario {email}" if email else None


def _transporte(verb: str, data: Mapping[str, Any]) -> Optional[str]:
    tipo = _pick(data, "tipoMaquinaria", "tipo_maquinaria", "tipo")
    placa = _pick(data, "placa")
    if tipo and placa:
        return f"{verb} transporte {tipo} placa {placa}"
    return None


def _reporte(verb: str, data: Mapping[str, Any]) -> Optional[str]:
    fecha = _pick(data, "fecha")
    actividad = _pick(data, "tipoActividad", "tipo_actividad", "actividad")
    if fecha and actividad:
        return f"{verb} reporte del {fecha} ({actividad})"
    return None


_SPECIFIC: dict[AuditEntity, Callable[[str, Mapping[str, Any]], Optional[str]]] = {
    AuditEntity.USUARIOS: _usuario,
    AuditEntity.TRANSPORTE: _transporte,
    AuditEntity.REPORTES: _reporte,
}


def generic_description(
    action: AuditAction, entity: AuditEntity, entity_id: Optional[str]
) -> str:
    label = ENTITY_LABELS.get(entity, entity.value)
    verb = VERBS[action]
    if entity_id:
        return f"{verb} {label} con ID {entity_id}"
    return f"{verb} {label}"


def build_description(
    action: AuditAction,
    entity: AuditEntity,
    entity_id: Optional[str] = None,
    snapshot: Any = None,
) -> str:
    """Plantilla específica por entidad (si hay datos) o genérica."""
    builder = _SPECIFIC.get(entity)
    if builder is not None and isinstance(snapshot, Mapping):
        specific = builder(VERBS[action], snapshot)
        if specific:
            return specific
    return generic_description(action, entity, entity_id)


def role_change_description(
    email: Optional[str], name: Optional[str], lastname: Optional[str]
) -> str:
    full_name = f"{name or ''} {lastname or ''}".strip()
    who = email or "desconocido"
    if full_name:
        return f"Se cambiaron los roles del usuario {who} ({full_name})"
    return f"Se cambiaron los roles del usuario {who}"
