"""Create pbn_sites and pbn_site_submissions tables.

Revision ID: 0001
Revises: None
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create PBN site and submission tables."""
    op.create_table(
        "pbn_sites",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("domain", sa.String(length=2048), nullable=False),
        sa.Column("login", sa.String(length=255), nullable=True),
        sa.Column("password", sa.String(length=255), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_pbn_sites_domain"), "pbn_sites", ["domain"], unique=False)
    op.create_index(op.f("ix_pbn_sites_active"), "pbn_sites", ["active"], unique=False)

    op.create_table(
        "pbn_site_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("pbn_site_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("categories", sa.String(length=255), nullable=True),
        sa.Column("user_token", sa.String(length=255), nullable=True),
        sa.Column("submission_response", sa.String(length=2048), nullable=True),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["pbn_site_id"], ["pbn_sites.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_pbn_site_submissions_pbn_site_id"),
        "pbn_site_submissions",
        ["pbn_site_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_pbn_site_submissions_client_name"),
        "pbn_site_submissions",
        ["client_name"],
        unique=False,
    )
    op.create_index(
        op.f("ix_pbn_site_submissions_created_at"),
        "pbn_site_submissions",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop PBN tables."""
    op.drop_index(op.f("ix_pbn_site_submissions_created_at"), table_name="pbn_site_submissions")
    op.drop_index(op.f("ix_pbn_site_submissions_client_name"), table_name="pbn_site_submissions")
    op.drop_index(op.f("ix_pbn_site_submissions_pbn_site_id"), table_name="pbn_site_submissions")
    op.drop_table("pbn_site_submissions")
    op.drop_index(op.f("ix_pbn_sites_active"), table_name="pbn_sites")
    op.drop_index(op.f("ix_pbn_sites_domain"), table_name="pbn_sites")
    op.drop_table("pbn_sites")
