"""PBN site and submission models.

A PBN site is a WordPress install the service can publish to using an
application password. Every published article is recorded as a submission,
which is also what the duplicate-content and site-rotation checks read.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pbnj.core.database import Base


class PBNSite(Base):
    """WordPress site in the private blog network.

    Attributes:
        id: Integer primary key
        domain: Site base URL, e.g. https://example-blog.com
        login: WordPress username
        password: WordPress application password
        active: Only active sites are picked for publishing
        created_at: Timestamp when the site was added
    """

    __tablename__ = "pbn_sites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    domain: Mapped[str] = mapped_column(String(2048), nullable=False, index=True)

    login: Mapped[str | None] = mapped_column(String(255), nullable=True)

    password: Mapped[str | None] = mapped_column(String(255), nullable=True)

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    submissions: Mapped[list["PBNSiteSubmission"]] = relationship(
        "PBNSiteSubmission",
        back_populates="site",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.domain and self.login and self.password)

    def __repr__(self) -> str:
        return f"<PBNSite(id={self.id!r}, domain={self.domain!r}, active={self.active!r})>"


class PBNSiteSubmission(Base):
    """An article published to a PBN site.

    Attributes:
        submission_response: Public link of the published post
        client_name: Client the article was written for; drives site rotation
        deleted_at: Set when the post is withdrawn; such rows are ignored
    """

    __tablename__ = "pbn_site_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    pbn_site_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pbn_sites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    categories: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user_token: Mapped[str | None] = mapped_column(String(255), nullable=True)

    submission_response: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    client_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        index=True,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    site: Mapped[PBNSite] = relationship("PBNSite", back_populates="submissions")

    def __repr__(self) -> str:
        return (
            f"<PBNSiteSubmission(id={self.id!r}, pbn_site_id={self.pbn_site_id!r}, "
            f"client_name={self.client_name!r})>"
        )
