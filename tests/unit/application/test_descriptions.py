"""
Name: Audit Description Templates Tests
"""

import pytest

from bitacora.application.audit.descriptions import (
    build_description,
    generic_description,
    role_change_description,
)
from bitacora.domain.audit import AuditAction, AuditEntity

pytestmark = pytest.mark.unit


def test_report_specific_template():
    text = build_description(
        AuditAction.DELETE,
        AuditEntity.REPORTES,
        "9",
        {"fecha": "2025-03-10", "tipoActividad": "Acarreo"},
    )

    assert text == "Se eliminó reporte del 2025-03-10 (Acarreo)"


def test_user_specific_template():
    text = build_description(
        AuditAction.CREATE, AuditEntity.USUARIOS, "3", {"email": "ana@example.com"}
    )

    assert text == "Se creó usuario ana@example.com"


def test_transport_template_needs_type_and_plate():
    complete = build_description(
        AuditAction.UPDATE,
        AuditEntity.TRANSPORTE,
        "4",
        {"tipoMaquinaria": "vagoneta", "placa": "SM-1"},
    )
    partial = build_description(
        AuditAction.UPDATE, AuditEntity.TRANSPORTE, "4", {"placa": "SM-1"}
    )

    assert complete == "Se actualizó transporte vagoneta placa SM-1"
    assert partial == "Se actualizó transporte con ID 4"


def test_generic_description_without_id():
    assert generic_description(AuditAction.SYSTEM, AuditEntity.SYSTEM, None) == (
        "Evento del sistema en sistema"
    )


def test_role_change_description():
    assert role_change_description("ana@example.com", "Ana", "Mora") == (
        "Se cambiaron los roles del usuario ana@example.com (Ana Mora)"
    )
    assert role_change_description(None, None, None) == (
        "Se cambiaron los roles del usuario desconocido"
    )
