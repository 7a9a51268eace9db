# This project was developed with assistance from AI tools.
"""Tests for gateway header identity."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from intake_api.core.config import settings
from intake_api.middleware.auth import CurrentUser


def _make_app() -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(user: CurrentUser) -> dict:
        return user.model_dump(mode="json")

    return app


@pytest.fixture
def client():
    with patch.object(settings, "AUTH_DISABLED", False):
        yield TestClient(_make_app())


def test_identity_read_from_headers(client):
    response = client.get(
        "/whoami",
        headers={
            "X-User-Id": "partner-9",
            "X-User-Role": "partner",
            "X-User-Email": "ops@northstar.test",
            "X-User-Name": "North Star Ops",
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "user_id": "partner-9",
        "role": "partner",
        "email": "ops@northstar.test",
        "name": "North Star Ops",
    }


def test_missing_identity_rejected(client):
    response = client.get("/whoami")
    assert response.status_code == 401


@pytest.mark.parametrize("raw,expected", [("super_admin", "admin"), ("auditor", "system"), (None, "system")])
def test_role_normalized(client, raw, expected):
    headers = {"X-User-Id": "u-1"}
    if raw:
        headers["X-User-Role"] = raw
    assert client.get("/whoami", headers=headers).json()["role"] == expected


def test_disabled_auth_uses_dev_admin():
    with patch.object(settings, "AUTH_DISABLED", True):
        response = TestClient(_make_app()).get("/whoami")

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert response.json()["user_id"] == "dev-user"
