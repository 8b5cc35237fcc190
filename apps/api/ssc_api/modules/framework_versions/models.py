from __future__ import annotations

from typing import Optional
from sqlalchemy import DDL, CheckConstraint, UniqueConstraint, event
from sqlmodel import SQLModel, Field


# lock: draft|published (one-way)
class FrameworkVersion(SQLModel, table=True):
    __tablename__ = "framework_versions"

    id: str = Field(primary_key=True)
    name: str
    status: str = Field(index=True)  # draft|published

    created_at: str = Field(index=True)
    updated_at: str


# one row per pillar / theme / subtheme membership; replaced wholesale
class FrameworkVersionItem(SQLModel, table=True):
    __tablename__ = "framework_version_items"
    __table_args__ = (
        UniqueConstraint("version_id", "sort_order", name="uq_framework_version_items_version_sort"),
        UniqueConstraint("version_id", "ref_code", name="uq_framework_version_items_version_ref"),
    )

    id: str = Field(primary_key=True)
    version_id: str = Field(foreign_key="framework_versions.id", index=True)
    pillar_id: str = Field(foreign_key="pillar_catalogue.id")
    theme_id: Optional[str] = Field(default=None, foreign_key="theme_catalogue.id")
    subtheme_id: Optional[str] = Field(default=None, foreign_key="subtheme_catalogue.id")
    ref_code: str
    sort_order: int


# sqlite guards shared by create_all and the alembic revision
ITEM_TRIGGERS = (
    # level shape: theme null -> subtheme null
    """
    CREATE TRIGGER IF NOT EXISTS trg_framework_version_items_level
    BEFORE INSERT ON framework_version_items
    WHEN NEW.theme_id IS NULL AND NEW.subtheme_id IS NOT NULL
    BEGIN
      SELECT RAISE(ABORT, 'framework_version_items: subtheme row requires theme_id');
    END;
    """,
    # published versions are frozen (items cannot change)
    """
    CREATE TRIGGER IF NOT EXISTS trg_framework_version_items_frozen_insert
    BEFORE INSERT ON framework_version_items
    WHEN (SELECT status FROM framework_versions WHERE id = NEW.version_id) = 'published'
    BEGIN
      SELECT RAISE(ABORT, 'framework_version_items: version is published');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_framework_version_items_frozen_delete
    BEFORE DELETE ON framework_version_items
    WHEN (SELECT status FROM framework_versions WHERE id = OLD.version_id) = 'published'
    BEGIN
      SELECT RAISE(ABORT, 'framework_version_items: version is published');
    END;
    """,
)

ITEM_TRIGGER_NAMES = (
    "trg_framework_version_items_level",
    "trg_framework_version_items_frozen_insert",
    "trg_framework_version_items_frozen_delete",
)

for _stmt in ITEM_TRIGGERS:
    event.listen(FrameworkVersionItem.__table__, "after_create", DDL(_stmt).execute_if(dialect="sqlite"))


# single row (id=1): the published version currently in effect
class FrameworkActiveVersion(SQLModel, table=True):
    __tablename__ = "framework_active_version"
    __table_args__ = (CheckConstraint("id = 1", name="ck_framework_active_version_single_row"),)

    id: int = Field(default=1, primary_key=True)
    version_id: str = Field(foreign_key="framework_versions.id")
    updated_at: str
