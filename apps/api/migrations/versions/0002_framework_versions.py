"""framework versions + version items + active version pointer

- framework_versions (draft|published)
- framework_version_items (one row per pillar/theme/subtheme membership)
- framework_active_version (single row, id=1)

Revision ID: 0002_framework_versions
Revises: 0001_framework_catalogue
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from ssc_api.modules.framework_versions.models import ITEM_TRIGGER_NAMES, ITEM_TRIGGERS

revision = "0002_framework_versions"
down_revision = "0001_framework_catalogue"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- framework_versions ---
    op.create_table(
        "framework_versions",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),  # draft|published
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_framework_versions_status", "framework_versions", ["status"])
    op.create_index("ix_framework_versions_created_at", "framework_versions", ["created_at"])

    # --- framework_version_items ---
    op.create_table(
        "framework_version_items",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("version_id", sa.Text(), sa.ForeignKey("framework_versions.id"), nullable=False),
        sa.Column("pillar_id", sa.Text(), sa.ForeignKey("pillar_catalogue.id"), nullable=False),
        sa.Column("theme_id", sa.Text(), sa.ForeignKey("theme_catalogue.id"), nullable=True),
        sa.Column("subtheme_id", sa.Text(), sa.ForeignKey("subtheme_catalogue.id"), nullable=True),
        sa.Column("ref_code", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.UniqueConstraint("version_id", "sort_order", name="uq_framework_version_items_version_sort"),
        sa.UniqueConstraint("version_id", "ref_code", name="uq_framework_version_items_version_ref"),
    )
    op.create_index("ix_framework_version_items_version_id", "framework_version_items", ["version_id"])

    # level shape + published freeze (sqlite only, same DDL as create_all)
    if op.get_bind().dialect.name == "sqlite":
        for stmt in ITEM_TRIGGERS:
            op.execute(stmt)

    # --- framework_active_version (single row) ---
    op.create_table(
        "framework_active_version",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("version_id", sa.Text(), sa.ForeignKey("framework_versions.id"), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.CheckConstraint("id = 1", name="ck_framework_active_version_single_row"),
    )


def downgrade() -> None:
    op.drop_table("framework_active_version")

    if op.get_bind().dialect.name == "sqlite":
        for name in reversed(ITEM_TRIGGER_NAMES):
            op.execute(f"DROP TRIGGER IF EXISTS {name};")
    op.drop_index("ix_framework_version_items_version_id", table_name="framework_version_items")
    op.drop_table("framework_version_items")

    op.drop_index("ix_framework_versions_created_at", table_name="framework_versions")
    op.drop_index("ix_framework_versions_status", table_name="framework_versions")
    op.drop_table("framework_versions")
