"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, no .env file)
  - Provide in-memory repositories, a fixed clock and a synchronous recorder
  - Reset container singletons between tests

Collaborators:
  - pytest: Test framework
  - bitacora.container: lru_cache singletons
  - bitacora.infrastructure.repositories.in_memory

Notes:
  - Fixtures are auto-discovered by pytest
  - The recorder fixture writes inline (no executor) so assertions are deterministic
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("AUDIT_ASYNC", "false")

from bitacora.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from bitacora import container  # noqa: E402
from bitacora.application.audit import AuditRecorder  # noqa: E402
from bitacora.domain.audit import AuditActor  # noqa: E402
from bitacora.infrastructure.repositories import (  # noqa: E402
    InMemoryAuditLogRepository,
    InMemoryReportRepository,
)

FIXED_NOW = datetime(2025, 3, 12, 15, 30, tzinfo=timezone.utc)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Cada test arranca con repos/recorder nuevos."""
    app_config.get_settings.cache_clear()
    container.get_audit_log_repository.cache_clear()
    container.get_report_repository.cache_clear()
    container.shutdown_recorder()
    yield
    container.shutdown_recorder()
    container.get_audit_log_repository.cache_clear()
    container.get_report_repository.cache_clear()
    app_config.get_settings.cache_clear()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def audit_repo() -> InMemoryAuditLogRepository:
    return InMemoryAuditLogRepository(clock=lambda: FIXED_NOW)


@pytest.fixture
def report_repo() -> InMemoryReportRepository:
    return InMemoryReportRepository(clock=lambda: FIXED_NOW)


@pytest.fixture
def recorder(audit_repo) -> AuditRecorder:
    return AuditRecorder(audit_repo)


@pytest.fixture
def actor() -> AuditActor:
    return AuditActor(
        user_id="7",
        email="ana.mora@example.com",
        name="Ana",
        lastname="Mora",
        roles=("ADMIN",),
    )
