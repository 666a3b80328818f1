"""
Name: Reports API Tests

Responsibilities:
  - End-to-end HTTP flow over in-memory storage: create, read, edit,
    soft delete, restore
  - RFC 7807 error mapping (404 / 409 / 422)
  - Audit trail written for each mutation
"""

import pytest
from fastapi.testclient import TestClient

from bitacora.api.main import create_app

pytestmark = pytest.mark.unit

ACTOR_HEADERS = {
    "X-User-Id": "7",
    "X-User-Email": "ana.mora@example.com",
    "X-User-Name": "Ana",
    "X-User-Lastname": "Mora",
    "X-User-Roles": "ADMIN,INGENIERO",
}

PAYLOAD = {
    "fecha": "2025-03-10",
    "tipoActividad": "Acarreo",
    "tipoMaquinaria": "vagoneta",
    "placa": "sm-1234",
    "fuente": "Palo de Arco",
    "boleta": "123456",
    "cantidad": 12,
}


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


def _create(client, kind: str = "municipal") -> dict:
    res = client.post(f"/v1/reports/{kind}", json=PAYLOAD, headers=ACTOR_HEADERS)
    assert res.status_code == 201, res.text
    return res.json()


def _is_problem(res) -> bool:
    return res.headers["content-type"].startswith("application/problem+json")


def test_create_returns_normalized_report(client):
    body = _create(client)

    assert body["kind"] == "MUNICIPAL"
    assert body["placa"] == "SM-1234"
    assert body["version"] == 1
    assert body["deletedAt"] is None


def test_get_and_list_report(client):
    created = _create(client)

    got = client.get(f"/v1/reports/municipal/{created['id']}")
    listed = client.get("/v1/reports/municipales")

    assert got.status_code == 200
    assert got.json()["id"] == created["id"]
    assert [r["id"] for r in listed.json()["reports"]] == [created["id"]]


def test_unknown_kind_is_validation_error(client):
    res = client.get("/v1/reports/camiones")

    assert res.status_code == 422
    assert _is_problem(res)
    assert res.json()["errors"][0]["field"] == "kind"


def test_unknown_body_field_is_rejected(client):
    res = client.post(
        "/v1/reports/municipal", json={**PAYLOAD, "colorCamion": "rojo"}
    )

    assert res.status_code == 422
    assert res.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize(
    "override",
    [{"cantidad": "nan"}, {"cantidad": "1e400"}, {"horas": "inf"}, {"horaInicio": "99:00 AM"}],
)
def test_invalid_numbers_and_hours_are_rejected_before_storage(client, override):
    res = client.post(
        "/v1/reports/municipal", json={**PAYLOAD, **override}, headers=ACTOR_HEADERS
    )

    assert res.status_code == 422
    assert res.json()["errors"][0]["code"] == "INVALID_VALUE"
    assert client.get("/v1/reports/municipal").json()["reports"] == []


def test_missing_report_is_not_found(client):
    res = client.get("/v1/reports/alquiler/999")

    assert res.status_code == 404
    assert _is_problem(res)
    assert res.json()["code"] == "NOT_FOUND"
    assert res.json()["instance"] == "/v1/reports/alquiler/999"
    assert "requestId" in res.json()


def test_patch_with_stale_version_conflicts(client):
    created = _create(client)
    url = f"/v1/reports/municipal/{created['id']}"

    first = client.patch(url, json={"distrito": "Norte", "expectedVersion": 1})
    second = client.patch(url, json={"distrito": "Sur", "expectedVersion": 1})

    assert first.status_code == 200
    assert first.json()["version"] == 2
    assert second.status_code == 409
    assert second.json()["code"] == "CONFLICT"


def test_delete_and_restore_round_trip(client):
    created = _create(client)
    url = f"/v1/reports/municipal/{created['id']}"

    deleted = client.request(
        "DELETE", url, json={"reason": "duplicado"}, headers=ACTOR_HEADERS
    )
    assert deleted.status_code == 200
    assert deleted.json() == {"ok": True, "id": created["id"], "reason": "duplicado"}

    assert client.get(url).status_code == 404
    assert client.get(url, params={"includeDeleted": "true"}).status_code == 200
    trash = client.get("/v1/reports/municipal/deleted").json()["reports"]
    assert [r["deleteReason"] for r in trash] == ["duplicado"]

    restored = client.post(f"{url}/restore", headers=ACTOR_HEADERS)
    assert restored.status_code == 200
    body = restored.json()
    assert body["report"]["deletedAt"] is None
    assert body["restoreInfo"]["deleteReason"] == "duplicado"
    assert body["restoreInfo"]["deletedById"] == "7"
    assert client.get(url).status_code == 200


def test_delete_without_body(client):
    created = _create(client, kind="alquiler")

    res = client.delete(f"/v1/reports/alquiler/{created['id']}")

    assert res.status_code == 200
    assert res.json()["reason"] is None


def test_mutations_are_audited(client):
    created = _create(client)
    client.request(
        "DELETE",
        f"/v1/reports/municipal/{created['id']}",
        json={"reason": "error de digitación"},
        headers=ACTOR_HEADERS,
    )

    res = client.get(f"/v1/audit/logs/entity/REPORTES/{created['id']}")

    assert res.status_code == 200
    page = res.json()
    assert page["total"] == 2
    assert [e["action"] for e in page["data"]] == ["DELETE", "CREATE"]
    assert page["data"][0]["userEmail"] == "ana.mora@example.com"
    assert page["data"][0]["userRoles"] == ["ADMIN", "INGENIERO"]
