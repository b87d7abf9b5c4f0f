"""
Tests for public routes and the error envelope.
"""
from database import Database
from errors import ApiError, NotFound
from schemas import CATEGORIES, Category


class TestPublicRoutes:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "Personal Finance API is running"}

    def test_categories_with_colors(self, client):
        data = client.get("/api/categories").json()["data"]
        assert [c["name"] for c in data] == CATEGORIES
        assert data[0] == {"name": "Jedzenie i napoje", "color": "#ef4444"}

    def test_categories_route_items_match_model(self, client):
        data = client.get("/api/categories").json()["data"]
        assert [Category(**item) for item in data][2] == Category(name="Transport", color="#3b82f6")

    def test_health_connected(self, client, monkeypatch):
        monkeypatch.setattr(Database, "ping", lambda self: True)
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "connected"

    def test_health_unavailable(self, client, monkeypatch):
        monkeypatch.setattr(Database, "ping", lambda self: False)
        response = client.get("/api/health")
        assert response.status_code == 503
        assert response.json()["success"] is False


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Nie znaleziono"}

    def test_malformed_json(self, client):
        response = client.post("/api/auth/login", content="{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Nieprawidłowe dane wejściowe"}


class TestApiError:
    def test_default_status_from_class(self):
        assert ApiError("x").status_code == 400
        assert NotFound("x").status_code == 404

    def test_status_override(self):
        error = ApiError("Konflikt", status_code=409)
        assert error.status_code == 409
        assert error.message == "Konflikt"


class TestDatabaseLifecycle:
    def test_indexes_created(self, database):
        budget_indexes = database.budgets.index_information()
        assert any(info.get("unique") for name, info in budget_indexes.items() if name != "_id_")
        assert "email_1" in database.users.index_information()
