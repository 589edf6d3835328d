"""seo settings and ad placements

Revision ID: 202601220001
Revises: 202601150001
Create Date: 2026-01-22 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "202601220001"
down_revision = "202601150001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    seo_settings = op.create_table(
        "seo_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_name", sa.String(length=100), nullable=False),
        sa.Column("site_tagline", sa.String(length=200), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("og_image", sa.String(length=500), nullable=True),
        sa.Column("google_analytics", sa.String(length=50), nullable=True),
        sa.Column("robots_txt", sa.Text(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("id = 1", name="ck_seo_settings_single_row"),
    )
    op.bulk_insert(
        seo_settings,
        [
            {
                "id": 1,
                "site_name": "Inkwell",
                "robots_txt": "User-agent: *\nAllow: /",
            }
        ],
    )

    op.create_table(
        "ad_placements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("position", sa.String(length=50), nullable=False),
        sa.Column("code", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_ad_placements_position", "ad_placements", ["position"])
    op.create_index("ix_ad_placements_created_at", "ad_placements", ["created_at"])


def downgrade() -> None:
    op.drop_table("ad_placements")
    op.drop_table("seo_settings")
