"""Publishing generated articles to PBN sites.

Single posts go to a random active site. Bulk posts rotate sites per client:
each article prefers an active site that has not carried a post for the same
client within the reuse window, and falls back to any active site. Bulk
failures are tallied per article instead of aborting the batch.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from pbnj.core.config import Settings
from pbnj.core.logging import get_logger
from pbnj.integrations.wordpress import WordPressClient
from pbnj.models.pbn_site import PBNSite
from pbnj.repositories.pbn import PBNRepository
from pbnj.services.pipeline_types import PipelineValidationError

logger = get_logger(__name__)

WordPressClientFactory = Callable[[PBNSite], WordPressClient]


class PBNPublishError(Exception):
    """Base exception for publishing failures."""

    pass


class NoActiveSitesError(PBNPublishError):
    def __init__(self) -> None:
        super().__init__("No active blogs found in the database")


class DuplicateContentError(PBNPublishError):
    def __init__(self, existing_url: str | None = None) -> None:
        super().__init__("Content already uploaded to PBN")
        self.existing_url = existing_url


class WordPressPostError(PBNPublishError):
    """WordPress refused or never answered the post request."""

    pass


@dataclass
class ArticleSubmission:
    title: str
    content: str


@dataclass
class SuccessfulSubmission:
    title: str
    link: str
    site_id: int
    site_domain: str


@dataclass
class FailedSubmission:
    title: str
    error: str
    existing_url: str | None = None


@dataclass
class BulkPublishResult:
    successful: list[SuccessfulSubmission] = field(default_factory=list)
    failed: list[FailedSubmission] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def links(self) -> list[str]:
        return [submission.link for submission in self.successful]


class PBNPublisher:
    """Posts articles to PBN sites and records each submission."""

    def __init__(
        self,
        repository: PBNRepository,
        settings: Settings,
        client_factory: WordPressClientFactory | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._client_factory = client_factory or self._default_client

    def _default_client(self, site: PBNSite) -> WordPressClient:
        return WordPressClient(
            site.domain,
            site.login or "",
            site.password or "",
            timeout=self._settings.wordpress_timeout,
            default_category_id=self._settings.pbn_default_category_id,
        )

    async def publish(
        self,
        title: str,
        content: str,
        user_token: str | None = None,
        categories: list[int] | None = None,
        client_name: str | None = None,
    ) -> dict[str, Any]:
        """Publish one article to a random active site.

        Returns:
            The WordPress post object.

        Raises:
            NoActiveSitesError: No active site exists.
            DuplicateContentError: This exact content was already published.
            WordPressPostError: WordPress rejected the post or timed out.
        """
        site = await self._repository.get_random_active_site()
        if site is None:
            raise NoActiveSitesError()

        existing = await self._repository.find_submission_by_content(content)
        if existing is not None:
            raise DuplicateContentError(existing.submission_response)

        client = self._client_factory(site)
        try:
            post = await client.create_post(title, content, categories=categories)
        except httpx.HTTPError as e:
            raise WordPressPostError(f"Failed to post article to WordPress: {e}") from e
        finally:
            await client.close()

        await self._repository.create_submission(
            site,
            title=title,
            content=content,
            user_token=user_token,
            submission_response=post.get("link"),
            client_name=client_name,
            categories=",".join(str(c) for c in categories) if categories else None,
        )
        return post

    async def _pick_site(
        self, client_name: str, since: datetime, fallback: list[PBNSite]
    ) -> PBNSite:
        site = await self._repository.get_random_site_for_client(client_name, since)
        if site is None:
            site = random.choice(fallback)
        return site

    async def bulk_publish(
        self,
        articles: list[ArticleSubmission],
        user_token: str | None,
        client_name: str,
        category: str | None = None,
    ) -> BulkPublishResult:
        """Publish up to ``pbn_bulk_max_articles`` articles, one site each.

        Raises:
            PipelineValidationError: Empty batch or too many articles.
            NoActiveSitesError: No active site exists.
        """
        limit = self._settings.pbn_bulk_max_articles
        if not articles:
            raise PipelineValidationError("No articles provided")
        if len(articles) > limit:
            raise PipelineValidationError(f"Maximum {limit} articles allowed per request")

        active_sites = await self._repository.list_active_sites()
        if not active_sites:
            raise NoActiveSitesError()

        since = datetime.now(UTC) - timedelta(days=self._settings.pbn_site_reuse_window_days)
        result = BulkPublishResult()

        for article in articles:
            site = await self._pick_site(client_name, since, active_sites)

            if not site.has_credentials:
                logger.error("Invalid PBN site data", extra={"pbn_site_id": site.id})
                result.failed.append(
                    FailedSubmission(title=article.title, error="Invalid PBN site data")
                )
                continue

            existing = await self._repository.find_submission_by_content(article.content)
            if existing is not None:
                result.failed.append(
                    FailedSubmission(
                        title=article.title,
                        error="Content already uploaded to PBN",
                        existing_url=existing.submission_response,
                    )
                )
                continue

            client = self._client_factory(site)
            try:
                category_id = await client.get_or_create_category(category)
                post = await client.create_post(
                    article.title, article.content, categories=[category_id]
                )
                link = post.get("link")
                if not link:
                    raise WordPressPostError("Invalid response from WordPress API")
            except (httpx.HTTPError, WordPressPostError) as e:
                result.failed.append(
                    FailedSubmission(
                        title=article.title,
                        error=f"Failed to post to WordPress: {e}",
                    )
                )
                continue
            finally:
                await client.close()

            await self._repository.create_submission(
                site,
                title=article.title,
                content=article.content,
                user_token=user_token,
                submission_response=link,
                client_name=client_name,
                categories=category,
            )
            result.successful.append(
                SuccessfulSubmission(
                    title=article.title,
                    link=link,
                    site_id=site.id,
                    site_domain=site.domain,
                )
            )

        logger.info(
            "Bulk PBN publish finished",
            extra={
                "client_name": client_name,
                "success_count": result.success_count,
                "failed_count": result.failed_count,
            },
        )
        return result
