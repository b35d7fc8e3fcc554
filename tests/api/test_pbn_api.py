"""Tests for PBN publishing API endpoints.

The publisher dependency is overridden so every site's WordPress API is the
in-memory fake; sites and submissions live in SQLite in-memory.
"""

from typing import Any

import pytest
from fastapi import Depends, FastAPI
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from pbnj.api.deps import get_pbn_publisher, get_session
from pbnj.core.config import Settings
from pbnj.repositories.pbn import PBNRepository
from pbnj.services.pbn_publishing import PBNPublisher

BASE = "/api/v1/pbn"


@pytest.fixture(autouse=True)
def _fake_wordpress(app: FastAPI, test_settings: Settings, wordpress: Any) -> None:
    def publisher(session: AsyncSession = Depends(get_session)) -> PBNPublisher:
        return PBNPublisher(
            PBNRepository(session), test_settings, client_factory=wordpress.client_factory
        )

    app.dependency_overrides[get_pbn_publisher] = publisher


class TestCreatePost:
    async def test_publishes(
        self, async_client: AsyncClient, make_site: Any, wordpress: Any
    ) -> None:
        await make_site("https://blog.example.com")

        response = await async_client.post(
            f"{BASE}/posts",
            json={
                "title": "Hello",
                "content": "<p>Body</p>",
                "userToken": "tok",
                "categories": [5],
                "clientName": "Acme",
            },
        )

        assert response.status_code == 201
        assert response.json()["link"] == "https://blog.example.com/post-100/"
        assert wordpress.posts[0]["status"] == "publish"
        assert wordpress.posts[0]["categories"] == [5]

    async def test_format_content(
        self, async_client: AsyncClient, make_site: Any, wordpress: Any
    ) -> None:
        await make_site("https://blog.example.com")

        response = await async_client.post(
            f"{BASE}/posts",
            json={
                "title": "Hello",
                "content": "**Heading**\nSee [docs](https://docs.example.com).",
                "formatContent": True,
            },
        )

        assert response.status_code == 201
        assert wordpress.posts[0]["content"] == (
            '<b>Heading</b><br><br><br>See <a href="https://docs.example.com" '
            'target="_blank">docs</a>.'
        )

    async def test_no_active_site_is_404(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            f"{BASE}/posts", json={"title": "Hello", "content": "<p>Body</p>"}
        )

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["error"] == "No active blogs found in the database"

    async def test_duplicate_is_409(self, async_client: AsyncClient, make_site: Any) -> None:
        await make_site("https://blog.example.com")
        body = {"title": "Hello", "content": "<p>Body</p>"}
        await async_client.post(f"{BASE}/posts", json=body)

        response = await async_client.post(f"{BASE}/posts", json=body)

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "DUPLICATE_CONTENT"
        assert data["existing_url"] == "https://blog.example.com/post-100/"

    async def test_wordpress_failure_is_502(
        self, async_client: AsyncClient, make_site: Any, wordpress: Any
    ) -> None:
        await make_site("https://blog.example.com")
        wordpress.fail_posts = True

        response = await async_client.post(
            f"{BASE}/posts", json={"title": "Hello", "content": "<p>Body</p>"}
        )

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_ERROR"

    async def test_missing_title_is_422(self, async_client: AsyncClient) -> None:
        response = await async_client.post(f"{BASE}/posts", json={"content": "<p>Body</p>"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestBulkPosts:
    async def test_publishes_batch(self, async_client: AsyncClient, make_site: Any) -> None:
        await make_site("https://one.example.com")
        await make_site("https://two.example.com")

        response = await async_client.post(
            f"{BASE}/posts/bulk",
            json={
                "articles": [
                    {"title": "First", "content": "<p>One</p>"},
                    {"title": "Second", "content": "<p>Two</p>"},
                ],
                "userToken": "tok",
                "clientName": "Acme",
                "category": "Gardening",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 2
        assert data["failed_count"] == 0
        assert data["links"] == [s["link"] for s in data["successful"]]
        assert {s["site_domain"] for s in data["successful"]} == {
            "https://one.example.com",
            "https://two.example.com",
        }

    async def test_empty_batch_is_400(self, async_client: AsyncClient, make_site: Any) -> None:
        await make_site("https://one.example.com")

        response = await async_client.post(
            f"{BASE}/posts/bulk", json={"articles": [], "clientName": "Acme"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No articles provided"

    async def test_oversized_batch_is_400(
        self, async_client: AsyncClient, make_site: Any
    ) -> None:
        await make_site("https://one.example.com")
        articles = [{"title": f"T{i}", "content": f"<p>{i}</p>"} for i in range(21)]

        response = await async_client.post(
            f"{BASE}/posts/bulk", json={"articles": articles, "clientName": "Acme"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_no_active_sites_is_404(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            f"{BASE}/posts/bulk",
            json={"articles": [{"title": "T", "content": "C"}], "clientName": "Acme"},
        )

        assert response.status_code == 404
