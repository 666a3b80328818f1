"""
Name: Exception Handler Tests

Responsibilities:
  - BitacoraError hierarchy -> problem+json (409 / 503 / 500) with errorId
  - Unhandled exceptions -> 500 INTERNAL_ERROR
"""

import pytest
from fastapi.testclient import TestClient

from bitacora.api.main import create_app
from bitacora.container import get_list_reports_use_case
from bitacora.crosscutting.exceptions import ConflictError, DatabaseError

pytestmark = pytest.mark.unit


class _Raising:
    def __init__(self, exc: Exception):
        self._exc = exc

    def execute(self, *args, **kwargs):
        raise self._exc


def _client_raising(exc: Exception) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_list_reports_use_case] = lambda: _Raising(exc)
    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (ConflictError("fila modificada"), 409, "CONFLICT"),
        (DatabaseError("pool agotado"), 503, "DATABASE_ERROR"),
    ],
)
def test_service_errors_map_to_problem_json(exc, status, code):
    with _client_raising(exc) as client:
        res = client.get("/v1/reports/municipal")

    assert res.status_code == status
    assert res.headers["content-type"].startswith("application/problem+json")
    body = res.json()
    assert body["code"] == code
    assert body["errors"] == [{"errorId": exc.error_id}]


def test_unhandled_error_is_500():
    with _client_raising(RuntimeError("inesperado")) as client:
        res = client.get("/v1/reports/municipal")

    assert res.status_code == 500
    assert res.json()["code"] == "INTERNAL_ERROR"
