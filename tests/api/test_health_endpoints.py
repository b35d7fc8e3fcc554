"""Tests for health check endpoints and request logging middleware."""

from httpx import AsyncClient


class TestHealth:
    async def test_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_request_id_header(self, async_client: AsyncClient) -> None:
        first = await async_client.get("/health")
        second = await async_client.get("/health")

        assert first.headers["X-Request-ID"]
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    async def test_database_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health/db")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": True}

    async def test_integrations_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health/integrations")

        assert response.status_code == 200
        data = response.json()
        assert data["default_engine"] == "gpt-4o"
        assert data["openai"]["available"] is True
        assert data["claude"]["available"] is True
        assert data["claude"]["circuit_state"] == "closed"


class TestSanitizeBody:
    def test_redacts_nested_secrets(self) -> None:
        from pbnj.main import sanitize_body

        body = {
            "title": "Hello",
            "userToken": "abc",
            "site": {"password": "hunter2", "domain": "blog.example.com"},
        }

        assert sanitize_body(body) == {
            "title": "Hello",
            "userToken": "****",
            "site": {"password": "****", "domain": "blog.example.com"},
        }

    def test_non_dict_passthrough(self) -> None:
        from pbnj.main import sanitize_body

        assert sanitize_body(["a"]) == ["a"]


class TestCreateApp:
    def test_registers_every_route(self) -> None:
        from pbnj.main import create_app

        paths = {route.path for route in create_app().routes}

        assert {
            "/health",
            "/health/db",
            "/health/integrations",
            "/api/v1/articles/generate",
            "/api/v1/articles/pipeline",
            "/api/v1/articles/remix",
            "/api/v1/articles/insert-backlinks",
            "/api/v1/articles/replace-links",
            "/api/v1/articles/preview",
            "/api/v1/pbn/posts",
            "/api/v1/pbn/posts/bulk",
        } <= paths
