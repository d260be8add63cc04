"""
Failure handling: unconfigured database, connectivity errors, production
message hiding.
"""

import socket

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.exc import OperationalError, ProgrammingError

from daytrack.app.main import app
from daytrack.app.core.config import Settings, settings
from daytrack.app.core.exceptions import DatabaseNotConfiguredError, classify_db_error
from daytrack.app.db.session import get_driver_db, get_optional_driver_db
from daytrack.app.services.driver_repository import DriverRepository


def test_missing_database_url_is_reported():
    config = Settings(driver_database_url=None)
    assert config.driver_db_config_error == "Missing required database setting: DRIVER_DATABASE_URL"


def test_invalid_database_url_is_reported_without_echo():
    config = Settings(driver_database_url="not a url at all")
    assert config.driver_db_config_error == "Invalid DRIVER_DATABASE_URL value"


def test_valid_database_url_has_no_error():
    config = Settings(driver_database_url="postgresql+asyncpg://user:pw@db:5432/fleet")
    assert config.driver_db_config_error is None


def test_connection_errors_classify_as_503():
    wrapped = OperationalError("SELECT 1", {}, ConnectionRefusedError(111, "refused"))

    message, status_code = classify_db_error(wrapped)

    assert status_code == 503
    assert "ConnectionRefusedError" in message
    assert "DRIVER_DATABASE_URL" in message


def test_dns_failure_found_through_exception_chain():
    try:
        try:
            raise socket.gaierror(-2, "Name or service not known")
        except socket.gaierror as e:
            raise RuntimeError("pool checkout failed") from e
    except RuntimeError as e:
        message, status_code = classify_db_error(e)

    assert status_code == 503
    assert "gaierror" in message


def test_query_errors_hide_message_in_production():
    error = ProgrammingError("SELECT nope", {}, Exception("no such column: nope"))

    dev_message, dev_status = classify_db_error(error, production=False)
    prod_message, prod_status = classify_db_error(error, production=True)

    assert dev_status == prod_status == 500
    assert "no such column" in dev_message
    assert prod_message == ""


@pytest.fixture
async def unconfigured_client(apply_overrides):
    async def unconfigured_driver_db():
        raise DatabaseNotConfiguredError(settings.driver_db_config_error)
        yield

    async def no_driver_db():
        yield None

    app.dependency_overrides[get_driver_db] = unconfigured_driver_db
    app.dependency_overrides[get_optional_driver_db] = no_driver_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_unconfigured_database_answers_503(unconfigured_client, monkeypatch):
    monkeypatch.setattr(settings, "driver_database_url", None)

    drivers = await unconfigured_client.get("/v1/drivers")
    gps = await unconfigured_client.get("/v1/drivers/42/gps", params={"date": "2024-03-05"})
    db_health = await unconfigured_client.get("/v1/db/health")
    health = await unconfigured_client.get("/health")

    assert drivers.status_code == 503
    assert drivers.json()["error_code"] == "ERR_DB_UNCONFIGURED"
    assert drivers.json()["message"] == "Missing required database setting: DRIVER_DATABASE_URL"
    assert gps.status_code == 503
    assert db_health.status_code == 503
    assert health.status_code == 200
    assert health.json()["status"] == "degraded"
    assert health.json()["database"] == "not_configured"


@pytest.mark.asyncio
async def test_tracker_works_without_driver_database(unconfigured_client):
    response = await unconfigured_client.get("/v1/tracker/settings")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unreachable_database_maps_to_503(client, driver_data, mocker):
    mocker.patch.object(
        DriverRepository,
        "list_drivers",
        side_effect=OperationalError("SELECT", {}, ConnectionRefusedError(111, "refused")),
    )

    response = await client.get("/v1/drivers")

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_DB_UNAVAILABLE"


@pytest.mark.asyncio
async def test_db_health_reports_classified_error(client, driver_data, mocker):
    mocker.patch.object(
        DriverRepository,
        "ping",
        side_effect=OperationalError("SELECT 1", {}, ConnectionRefusedError(111, "refused")),
    )

    db_health = await client.get("/v1/db/health")
    health = await client.get("/health")

    assert db_health.status_code == 503
    assert db_health.json()["ok"] is False
    assert "Database connection failed" in db_health.json()["error"]
    assert health.json()["status"] == "degraded"
    assert health.json()["database"] == "disconnected"


@pytest.mark.asyncio
async def test_query_error_message_hidden_in_production(client, driver_data, mocker, monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    mocker.patch.object(
        DriverRepository,
        "list_drivers",
        side_effect=ProgrammingError("SELECT", {}, Exception("relation tbl_driver does not exist")),
    )

    response = await client.get("/v1/drivers")

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_DB_QUERY"
    assert response.json()["message"] == "A database error occurred"


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers
