"""
Tests for the health check endpoint.
"""

from django.db.utils import OperationalError


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    def test_database_down(self, client, db, mocker):
        mocker.patch("core.views.connection.cursor", side_effect=OperationalError("gone"))

        response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
