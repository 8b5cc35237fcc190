from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class CatalogueEntityIn(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    can_have_indicators: bool = False


class ThemeCreateIn(CatalogueEntityIn):
    pillar_id: str = Field(min_length=1)


class SubthemeCreateIn(CatalogueEntityIn):
    theme_id: str = Field(min_length=1)


class CataloguePatchIn(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    can_have_indicators: Optional[bool] = None


class OrderIn(BaseModel):
    ids: List[str]


class PillarOut(BaseModel):
    id: str
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    can_have_indicators: bool = False
    sort_order: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ThemeOut(PillarOut):
    pillar_id: str


class SubthemeOut(PillarOut):
    theme_id: str


class ThemeTreeOut(ThemeOut):
    subthemes: List[SubthemeOut] = Field(default_factory=list)


class PillarTreeOut(PillarOut):
    themes: List[ThemeTreeOut] = Field(default_factory=list)


class PillarsListOut(BaseModel):
    items: List[PillarOut]


class ThemesListOut(BaseModel):
    items: List[ThemeOut]


class SubthemesListOut(BaseModel):
    items: List[SubthemeOut]


class CatalogueTreeOut(BaseModel):
    items: List[PillarTreeOut]


class DeleteOut(BaseModel):
    id: str
    deleted: bool = True
