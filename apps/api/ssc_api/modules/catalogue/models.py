from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


# master catalogue: version-independent, referenced (never owned) by versions
class PillarCatalogue(SQLModel, table=True):
    __tablename__ = "pillar_catalogue"

    id: str = Field(primary_key=True)
    code: Optional[str] = Field(default=None)
    name: str
    description: Optional[str] = Field(default=None)
    color: Optional[str] = Field(default=None)
    icon: Optional[str] = Field(default=None)
    can_have_indicators: bool = Field(default=False)
    sort_order: int = Field(default=0)

    created_at: str
    updated_at: str


class ThemeCatalogue(SQLModel, table=True):
    __tablename__ = "theme_catalogue"

    id: str = Field(primary_key=True)
    pillar_id: str = Field(foreign_key="pillar_catalogue.id", index=True)
    code: Optional[str] = Field(default=None)
    name: str
    description: Optional[str] = Field(default=None)
    color: Optional[str] = Field(default=None)
    icon: Optional[str] = Field(default=None)
    can_have_indicators: bool = Field(default=False)
    sort_order: int = Field(default=0)

    created_at: str
    updated_at: str


class SubthemeCatalogue(SQLModel, table=True):
    __tablename__ = "subtheme_catalogue"

    id: str = Field(primary_key=True)
    theme_id: str = Field(foreign_key="theme_catalogue.id", index=True)
    code: Optional[str] = Field(default=None)
    name: str
    description: Optional[str] = Field(default=None)
    color: Optional[str] = Field(default=None)
    icon: Optional[str] = Field(default=None)
    can_have_indicators: bool = Field(default=False)
    sort_order: int = Field(default=0)

    created_at: str
    updated_at: str
