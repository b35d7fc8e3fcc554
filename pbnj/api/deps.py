"""FastAPI dependencies.

Long-lived resources are created by the application lifespan and stored on
``app.state``; these dependencies only read them, so tests can swap any of
them through ``app.dependency_overrides``.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pbnj.core.config import Settings, get_settings
from pbnj.core.database import DatabaseManager
from pbnj.integrations.providers import CompletionProviders
from pbnj.repositories.pbn import PBNRepository
from pbnj.services.article_pipeline import ArticlePipeline
from pbnj.services.pbn_publishing import PBNPublisher


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def get_db_manager(request: Request) -> DatabaseManager:
    return request.app.state.db


async def get_session(
    db: DatabaseManager = Depends(get_db_manager),
) -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    async with db.session() as session:
        yield session


def get_providers(request: Request) -> CompletionProviders:
    return request.app.state.providers


def get_article_pipeline(
    providers: CompletionProviders = Depends(get_providers),
    settings: Settings = Depends(get_settings),
) -> ArticlePipeline:
    return ArticlePipeline(providers, settings)


def get_pbn_publisher(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> PBNPublisher:
    return PBNPublisher(PBNRepository(session), settings)
