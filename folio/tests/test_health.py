"""Tests for the health endpoint."""

import pytest


@pytest.fixture
def db_up(mocker):
    return mocker.patch(
        "folio.main.check_database_connectivity", mocker.AsyncMock(return_value=True)
    )


async def test_ok_when_config_and_database_healthy(client, db_up):
    response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["checks"] == {"config": "ok", "database": "ok"}


async def test_degraded_when_database_down(client, mocker):
    mocker.patch(
        "folio.main.check_database_connectivity", mocker.AsyncMock(return_value=False)
    )

    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["database"] == "fail"


async def test_default_secret_reported_as_config_failure(client, db_up, mock_settings):
    mock_settings.session_secret = "change-me"

    response = await client.get("/api/health")

    assert response.json()["checks"]["config"] == "fail"


async def test_result_cached(client, db_up):
    await client.get("/api/health")
    await client.get("/api/health")

    assert db_up.await_count == 1
