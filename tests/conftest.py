from __future__ import annotations

import os
from typing import Any

import pytest
from fastapi.testclient import TestClient

from helpers import SERVICE_TOKEN


def pytest_configure() -> None:
    # Ensure the SQLAlchemy engine is created against sqlite for tests.
    os.environ["ORM_DB_URL"] = "sqlite:///./test.db"
    os.environ["DB_USE_MYSQL"] = "false"
    os.environ.setdefault("ADMIN_EMAILS", '["admin@example.com"]')
    os.environ["NOTIFICATION_SERVICE_TOKEN"] = SERVICE_TOKEN
    os.environ["PUBLIC_BASE_URL"] = "http://testserver"

    # Ensure a local .env cannot switch on real SMTP or LLM calls in tests.
    os.environ["ENVIRONMENT"] = "test"
    for key in ("EMAIL_USER", "EMAIL_PASSWORD", "LLM_API_KEY"):
        os.environ.pop(key, None)


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> Any:
    # Ensure admin check can be exercised in tests.
    monkeypatch.setenv("ADMIN_EMAILS", '["admin@example.com"]')

    from jobboard.database import Base, engine
    from jobboard.main import create_app

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    app = create_app()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
