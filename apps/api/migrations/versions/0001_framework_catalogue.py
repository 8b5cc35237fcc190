"""framework catalogue: pillar_catalogue / theme_catalogue / subtheme_catalogue

Revision ID: 0001_framework_catalogue
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_framework_catalogue"
down_revision = None
branch_labels = None
depends_on = None


def _entity_columns():
    return [
        sa.Column("code", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("can_have_indicators", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "pillar_catalogue",
        sa.Column("id", sa.Text(), primary_key=True),
        *_entity_columns(),
    )

    op.create_table(
        "theme_catalogue",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("pillar_id", sa.Text(), sa.ForeignKey("pillar_catalogue.id"), nullable=False),
        *_entity_columns(),
    )
    op.create_index("ix_theme_catalogue_pillar_id", "theme_catalogue", ["pillar_id"])

    op.create_table(
        "subtheme_catalogue",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("theme_id", sa.Text(), sa.ForeignKey("theme_catalogue.id"), nullable=False),
        *_entity_columns(),
    )
    op.create_index("ix_subtheme_catalogue_theme_id", "subtheme_catalogue", ["theme_id"])


def downgrade() -> None:
    op.drop_index("ix_subtheme_catalogue_theme_id", table_name="subtheme_catalogue")
    op.drop_table("subtheme_catalogue")
    op.drop_index("ix_theme_catalogue_pillar_id", table_name="theme_catalogue")
    op.drop_table("theme_catalogue")
    op.drop_table("pillar_catalogue")
