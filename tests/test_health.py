"""Tests for health check and metrics endpoints."""

from fastapi import status

from weather_api.database import Database


def test_health_check(client):
    """Test health check endpoint returns healthy status."""
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()

    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert "message" in data


def test_health_check_database_down(client, monkeypatch):
    monkeypatch.setattr(Database, "check_connection", lambda self: False)

    response = client.get("/health")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_root_endpoint(client):
    """Test root endpoint returns API information."""
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()

    assert data["service"] == "Weather Station API"
    assert data["version"] == "1.0.0"
    assert data["endpoints"]["stations"] == "/stations"
    assert data["endpoints"]["observations"] == "/input/data"


def test_metrics_endpoint(client, sample_stations):
    """Test Prometheus metrics endpoint."""
    client.get("/stations")

    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert "text/plain" in response.headers["content-type"]

    content = response.text
    assert "weather_api_requests_total" in content
    assert 'weather_api_db_query_duration_seconds_count{operation="list_stations"}' in content


def test_request_id_header(client):
    response = client.get("/")

    assert "x-request-id" in response.headers
    assert response.headers["x-response-time"].endswith("s")
