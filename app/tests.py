"""
Tests de los endpoints raíz de la aplicación
"""
from sqlalchemy.exc import OperationalError

from app.core.config import settings


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == f"{settings.APP_NAME} is running"

    def test_health_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["application"] == settings.APP_NAME

    def test_health_database_down(self, client, db_session, monkeypatch):
        def broken_execute(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(db_session, "execute", broken_execute)
        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
