"""
Unit tests for system routes
"""
from highscores.routes.system import health


class TestSystemRoutes:
    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_endpoint_direct(self):
        assert health() == {"status": "ok"}
