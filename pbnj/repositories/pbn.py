"""PBNRepository: site selection and submission records.

Follows the layered architecture pattern: API -> Service -> Repository -> Database.

ERROR LOGGING REQUIREMENTS:
- Log method entry at DEBUG level with parameters (never credentials)
- Log SQLAlchemy failures through db_logger with the table name
- Add timing logs for operations >1 second
"""

import time
from datetime import datetime

from sqlalchemy import exists, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pbnj.core.logging import db_logger, get_logger
from pbnj.models.pbn_site import PBNSite, PBNSiteSubmission

logger = get_logger(__name__)

SLOW_OPERATION_THRESHOLD_MS = 1000  # 1 second


class PBNRepository:
    """Repository for PBN sites and their submissions."""

    SITES_TABLE = "pbn_sites"
    SUBMISSIONS_TABLE = "pbn_site_submissions"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _check_slow(self, start_time: float, query: str, table: str) -> None:
        duration_ms = (time.monotonic() - start_time) * 1000
        if duration_ms > SLOW_OPERATION_THRESHOLD_MS:
            db_logger.slow_query(query=query, duration_ms=duration_ms, table=table)

    async def get_random_active_site(self) -> PBNSite | None:
        """Pick one active site uniformly at random."""
        start_time = time.monotonic()
        try:
            result = await self.session.execute(
                select(PBNSite)
                .where(PBNSite.active.is_(True))
                .order_by(func.random())
                .limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e, table=self.SITES_TABLE, context="Selecting random active site"
            )
            raise
        finally:
            self._check_slow(start_time, "SELECT random pbn_site", self.SITES_TABLE)

    async def get_random_site_for_client(
        self, client_name: str, since: datetime
    ) -> PBNSite | None:
        """Pick a random active site with no live submission for this client since ``since``."""
        logger.debug(
            "Selecting site not recently used for client",
            extra={"client_name": client_name, "since": since.isoformat()},
        )
        start_time = time.monotonic()
        recently_used = exists().where(
            PBNSiteSubmission.pbn_site_id == PBNSite.id,
            PBNSiteSubmission.client_name == client_name,
            PBNSiteSubmission.created_at >= since,
            PBNSiteSubmission.deleted_at.is_(None),
        )
        try:
            result = await self.session.execute(
                select(PBNSite)
                .where(PBNSite.active.is_(True), ~recently_used)
                .order_by(func.random())
                .limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e,
                table=self.SITES_TABLE,
                context=f"Selecting site for client_name={client_name}",
            )
            raise
        finally:
            self._check_slow(start_time, "SELECT pbn_site for client", self.SITES_TABLE)

    async def list_active_sites(self) -> list[PBNSite]:
        try:
            result = await self.session.execute(
                select(PBNSite).where(PBNSite.active.is_(True)).order_by(PBNSite.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e, table=self.SITES_TABLE, context="Listing active sites"
            )
            raise

    async def find_submission_by_content(self, content: str) -> PBNSiteSubmission | None:
        """Return a live submission with exactly this content, if any."""
        try:
            result = await self.session.execute(
                select(PBNSiteSubmission)
                .where(
                    PBNSiteSubmission.content == content,
                    PBNSiteSubmission.deleted_at.is_(None),
                )
                .order_by(PBNSiteSubmission.id)
                .limit(1)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e,
                table=self.SUBMISSIONS_TABLE,
                context="Checking for duplicate content",
            )
            raise

    async def create_submission(
        self,
        site: PBNSite,
        title: str,
        content: str,
        user_token: str | None = None,
        submission_response: str | None = None,
        client_name: str | None = None,
        categories: str | None = None,
    ) -> PBNSiteSubmission:
        """Record a published article."""
        start_time = time.monotonic()
        try:
            submission = PBNSiteSubmission(
                pbn_site_id=site.id,
                title=title,
                content=content,
                categories=categories,
                user_token=user_token,
                submission_response=submission_response,
                client_name=client_name,
            )
            self.session.add(submission)
            await self.session.flush()
            await self.session.refresh(submission)

            logger.info(
                "PBN submission recorded",
                extra={
                    "submission_id": submission.id,
                    "pbn_site_id": site.id,
                    "client_name": client_name,
                },
            )
            return submission
        except SQLAlchemyError as e:
            db_logger.transaction_failure(
                e,
                table=self.SUBMISSIONS_TABLE,
                context=f"Recording submission for pbn_site_id={site.id}",
            )
            raise
        finally:
            self._check_slow(
                start_time, "INSERT INTO pbn_site_submissions", self.SUBMISSIONS_TABLE
            )
