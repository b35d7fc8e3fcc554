"""WordPress REST API client for publishing to PBN sites.

Uses httpx with HTTP Basic Auth (application passwords). Each PBN site gets
its own short-lived client; requests time out after 30 seconds.
"""

from typing import Any, cast

import httpx

from pbnj.core.logging import get_logger, wordpress_logger

logger = get_logger(__name__)

# WordPress REST API pagination limit
WP_PER_PAGE = 100

# ID of the "Uncategorized" category on a stock install
DEFAULT_CATEGORY_ID = 1


class WordPressClient:
    """WordPress REST API client using httpx + Basic Auth.

    Args:
        site_url: The WordPress site URL (e.g. https://example.com).
        username: WordPress username.
        app_password: WordPress application password.
        timeout: Request timeout in seconds.
        default_category_id: Category used when a named one cannot be resolved.
    """

    def __init__(
        self,
        site_url: str,
        username: str,
        app_password: str,
        timeout: float = 30.0,
        default_category_id: int = DEFAULT_CATEGORY_ID,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._site_url = site_url.rstrip("/")
        self._api_base = f"{self._site_url}/wp-json/wp/v2"
        self._timeout = timeout
        self._default_category_id = default_category_id
        self._client = httpx.AsyncClient(
            auth=(username, app_password),
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def site_url(self) -> str:
        return self._site_url

    async def create_post(
        self,
        title: str,
        content: str,
        categories: list[int] | None = None,
        status: str = "publish",
    ) -> dict[str, Any]:
        """Create a post and return the WordPress post object.

        Raises:
            httpx.HTTPStatusError: If WordPress rejects the post.
            httpx.RequestError: If the site is unreachable or times out.
        """
        payload: dict[str, Any] = {"title": title, "content": content, "status": status}
        if categories:
            payload["categories"] = categories

        wordpress_logger.post_start(self._site_url, title)
        try:
            resp = await self._client.post(f"{self._api_base}/posts", json=payload)
            resp.raise_for_status()
        except httpx.TimeoutException:
            wordpress_logger.timeout(self._site_url, self._timeout)
            raise
        except httpx.HTTPStatusError as exc:
            wordpress_logger.post_error(
                self._site_url, str(exc), status_code=exc.response.status_code
            )
            raise
        except httpx.RequestError as exc:
            wordpress_logger.post_error(self._site_url, str(exc))
            raise

        post = cast(dict[str, Any], resp.json())
        wordpress_logger.post_success(self._site_url, post.get("id"), post.get("link"))
        return post

    async def fetch_categories(self) -> list[dict[str, Any]]:
        """Fetch the first page of categories."""
        resp = await self._client.get(
            f"{self._api_base}/categories",
            params={"per_page": WP_PER_PAGE},
        )
        resp.raise_for_status()
        return cast(list[dict[str, Any]], resp.json())

    async def get_or_create_category(self, name: str | None) -> int:
        """Resolve a category name to its id, creating it when missing.

        Never raises: a blank name or any failure yields the default
        category id so the post itself can still go out.
        """
        if not name or not name.strip():
            return self._default_category_id

        clean_name = name.strip()
        try:
            categories = await self.fetch_categories()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info(
                "Could not list categories, will try to create",
                extra={"domain": self._site_url, "category": clean_name, "error": str(exc)},
            )
        else:
            for category in categories:
                if str(category.get("name", "")).lower() == clean_name.lower():
                    return int(category["id"])

        try:
            resp = await self._client.post(
                f"{self._api_base}/categories", json={"name": clean_name}
            )
            resp.raise_for_status()
            return int(resp.json()["id"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            wordpress_logger.category_fallback(self._site_url, clean_name, str(exc))
            return self._default_category_id

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()
