"""initial

Revision ID: 20261015000100
Revises: 
Create Date: 2026-10-15 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261015000100"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("gemini_api_key_enc", sa.Text(), nullable=True),
        sa.Column("gemini_model", sa.String(), nullable=False, server_default="gemini-2.5-flash"),
        sa.Column("search_grounding_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("fixtures_ttl_seconds", sa.Integer(), nullable=False, server_default="1800"),
        sa.Column("odds_ttl_seconds", sa.Integer(), nullable=False, server_default="90"),
        sa.Column("comparison_ttl_seconds", sa.Integer(), nullable=False, server_default="86400"),
        sa.Column("analysis_ttl_seconds", sa.Integer(), nullable=False, server_default="600"),
        sa.Column("odds_poll_seconds", sa.Integer(), nullable=False, server_default="90"),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_app_settings_id", "app_settings", ["id"], unique=False)

    op.create_table(
        "cache_entries",
        sa.Column("key", sa.String(), primary_key=True, nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("cache_entries")
    op.drop_index("ix_app_settings_id", table_name="app_settings")
    op.drop_table("app_settings")
