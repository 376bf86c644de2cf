import uuid
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from starlette.testclient import TestClient

from middleware.request_id import RequestIDMiddleware


@pytest.fixture
def app_with_middleware():
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/restaurants")
    async def restaurants_endpoint(request: Request, refresh: str | None = None):
        request.state.data_source = "refresh" if refresh == "true" else "hit"
        return {"restaurants": []}

    @app.get("/version")
    async def version_endpoint():
        return {}

    @app.get("/api/health")
    async def health_endpoint():
        return {"status": "ok"}

    return app


@pytest.fixture
def client(app_with_middleware):
    return TestClient(app_with_middleware)


class TestRequestIDMiddleware:
    def test_adds_request_id_header_to_response(self, client):
        response = client.get("/api/restaurants")
        assert "X-Request-ID" in response.headers
        uuid.UUID(response.headers["X-Request-ID"])

    def test_unique_ids_per_request(self, client):
        r1 = client.get("/api/restaurants")
        r2 = client.get("/api/restaurants")
        assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]

    def test_honors_incoming_request_id(self, client):
        custom_id = "550e8400-e29b-41d4-a716-446655440000"
        response = client.get("/api/restaurants", headers={"x-request-id": custom_id})
        assert response.headers["X-Request-ID"] == custom_id

    def test_reports_response_time(self, client):
        response = client.get("/api/restaurants")
        assert float(response.headers["X-Response-Time-Ms"]) >= 0

    def test_logs_restaurant_requests_with_data_source(self, client):
        with patch("middleware.request_id.logger") as mock_logger:
            response = client.get("/api/restaurants?refresh=true")

        assert response.headers["X-Data-Source"] == "refresh"
        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.args == ("Served restaurants",)
        kwargs = mock_logger.info.call_args.kwargs
        assert kwargs["source"] == "refresh"
        assert kwargs["refresh"] is True
        assert kwargs["status"] == 200

    def test_cache_hit_is_not_a_refresh(self, client):
        with patch("middleware.request_id.logger") as mock_logger:
            response = client.get("/api/restaurants")

        assert response.headers["X-Data-Source"] == "hit"
        assert mock_logger.info.call_args.kwargs["refresh"] is False

    def test_other_paths_log_generic_line(self, client):
        with patch("middleware.request_id.logger") as mock_logger:
            response = client.get("/version")

        assert "X-Data-Source" not in response.headers
        assert mock_logger.info.call_args.args == ("request",)
        assert mock_logger.info.call_args.kwargs["path"] == "/version"

    def test_skips_logging_health_endpoints(self, client):
        with patch("middleware.request_id.logger") as mock_logger:
            response = client.get("/api/health")

        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        mock_logger.info.assert_not_called()
