"""Tests for the home and health endpoints and app-wide error handling."""

from unittest.mock import MagicMock, patch

from opentelemetry.trace import StatusCode


class TestHome:
    def test_home_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Welcome to the Todo API"
        assert response.headers["content-type"].startswith("text/plain")

    def test_unknown_route_returns_404(self, client):
        response = client.get("/nonexistent")
        assert response.status_code == 404


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "todo-api"
        assert data["components"]["database"] == "healthy"

    def test_health_database_down(self, client):
        from sqlalchemy.exc import OperationalError

        from app.database import get_db
        from app.main import app

        broken = MagicMock()
        broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        app.dependency_overrides[get_db] = lambda: broken

        response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"] == "unhealthy"


class TestErrorHandling:
    def test_database_error_has_no_trace_id_without_span(self, client, broken_db):
        response = client.get("/todos")
        assert response.status_code == 500
        assert "trace_id" not in response.json()

    def test_database_error_recorded_on_span(self, client, broken_db):
        mock_span = MagicMock()
        mock_span.is_recording.return_value = True
        mock_span.get_span_context.return_value.is_valid = True
        mock_span.get_span_context.return_value.trace_id = 0xABC

        with patch("app.errors.trace") as mock_trace:
            mock_trace.get_current_span.return_value = mock_span
            response = client.get("/todos")

        assert response.status_code == 500
        assert response.json()["trace_id"] == format(0xABC, "032x")
        mock_span.record_exception.assert_called_once()
        mock_span.set_attribute.assert_any_call("error.type", "OperationalError")
        assert mock_span.set_status.call_args.args[0] == StatusCode.ERROR

    def test_validation_error_returns_422(self, client):
        response = client.post("/register", json={"password": "secret"})
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["body", "name"]

    def test_malformed_json_returns_422(self, client):
        response = client.post(
            "/todos", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422

    def test_not_found_is_plain_text(self, client):
        response = client.patch("/user/42", json={})
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/plain")


class TestStartup:
    def test_console_logging_configured_before_telemetry(self):
        import importlib

        import app.main as main_mod

        calls = MagicMock()
        with (
            patch("app.telemetry.setup_telemetry", calls.setup_telemetry),
            patch("logging.basicConfig", calls.basicConfig),
        ):
            importlib.reload(main_mod)
        importlib.reload(main_mod)

        order = [name for name, _args, _kwargs in calls.mock_calls]
        assert order.index("basicConfig") < order.index("setup_telemetry")
