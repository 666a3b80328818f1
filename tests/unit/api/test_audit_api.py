"""
Name: Audit API Tests

Responsibilities:
  - POST /v1/audit/log is fire-and-forget (always 202)
  - Listing: pagination envelope, filter validation (422)
  - Stats / activity summary / export shapes
  - /healthz and X-Request-Id propagation
"""

import pytest
from fastapi.testclient import TestClient

from bitacora.api.main import create_app

pytestmark = pytest.mark.unit

HEADERS = {"X-User-Id": "7", "X-User-Email": "ana.mora@example.com"}


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


def _log(client, **overrides):
    body = {"action": "DELETE", "entity": "REPORTES", "description": "Borrado"}
    body.update(overrides)
    return client.post("/v1/audit/log", json=body, headers=HEADERS)


def test_post_log_is_accepted(client):
    res = _log(client, entityId="15", changesBefore={"password": "x", "placa": "SM-1"})

    assert res.status_code == 202
    assert res.json() == {"accepted": True}

    [entry] = client.get("/v1/audit/logs").json()["data"]
    assert entry["entityId"] == "15"
    assert entry["changesBefore"]["password"] == "[REDACTED]"
    assert entry["url"] == "/v1/audit/log"


def test_invalid_entry_is_still_accepted_but_dropped(client):
    res = _log(client, action="BORRAR")

    assert res.status_code == 202
    assert client.get("/v1/audit/logs").json()["total"] == 0


def test_pagination_envelope(client):
    for i in range(15):
        _log(client, entityId=str(i))

    first = client.get("/v1/audit/logs", params={"limit": "10"}).json()
    second = client.get(
        "/v1/audit/logs", params={"limit": "10", "page": "2"}
    ).json()

    assert (first["total"], first["totalPages"], len(first["data"])) == (15, 2, 10)
    assert len(second["data"]) == 5


def test_invalid_sort_is_validation_error(client):
    res = client.get("/v1/audit/logs", params={"sortBy": "description"})

    assert res.status_code == 422
    assert res.headers["content-type"].startswith("application/problem+json")
    assert res.json()["errors"][0]["field"] == "sortBy"


def test_user_logs(client):
    _log(client)

    res = client.get("/v1/audit/logs/user/7")

    assert res.status_code == 200
    assert res.json()["total"] == 1


def test_stats_shape(client):
    _log(client)

    stats = client.get("/v1/audit/stats").json()

    assert stats["totalLogs"] == 1
    assert stats["logsByAction"] == {"DELETE": 1}
    assert len(stats["logsByHour"]) == 24
    assert stats["securityEvents"][0]["type"] == "DELETE"


def test_activity_summary_and_export(client):
    _log(client)

    users = client.get("/v1/audit/users/activity-summary").json()
    export = client.get("/v1/audit/export").json()

    assert users[0]["userId"] == "7"
    assert users[0]["totalActions"] == 1
    assert export["format"] == "json"
    assert export["data"]["total"] == 1


def test_healthz_in_memory(client):
    res = client.get("/healthz")

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["db"] == "in-memory"
    assert body["audit_pending"] == 0


def test_request_id_is_propagated(client):
    res = client.get("/healthz", headers={"X-Request-Id": "abc-123"})

    assert res.headers["X-Request-Id"] == "abc-123"
    assert res.json()["request_id"] == "abc-123"
