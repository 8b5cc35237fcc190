from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

VersionStatus = Literal["draft", "published"]
DraftSource = Literal["blank", "catalogue"]


class VersionCreateIn(BaseModel):
    name: str = Field(min_length=1)
    source: DraftSource = "catalogue"


class VersionCloneIn(BaseModel):
    name: str = Field(min_length=1)


class VersionPatchIn(BaseModel):
    name: str = Field(min_length=1)


class VersionOut(BaseModel):
    id: str
    name: str
    status: VersionStatus
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class VersionsListOut(BaseModel):
    items: List[VersionOut]


class VersionItemOut(BaseModel):
    id: str
    version_id: str
    pillar_id: str
    theme_id: Optional[str] = None
    subtheme_id: Optional[str] = None
    ref_code: str
    sort_order: int


class VersionItemsOut(BaseModel):
    version_id: str
    items: List[VersionItemOut]


# nested selection used to save a draft (order = display order)
class ThemeSelectionIn(BaseModel):
    theme_id: str = Field(min_length=1)
    subthemes: List[str] = Field(default_factory=list)


class PillarSelectionIn(BaseModel):
    pillar_id: str = Field(min_length=1)
    themes: List[ThemeSelectionIn] = Field(default_factory=list)


class VersionItemsSaveIn(BaseModel):
    pillars: List[PillarSelectionIn] = Field(default_factory=list)


class TreeNodeOut(BaseModel):
    id: str
    type: Literal["pillar", "theme", "subtheme"]
    ref_code: str
    sort_order: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    can_have_indicators: bool = False


class SubthemeNodeOut(TreeNodeOut):
    pass


class ThemeNodeOut(TreeNodeOut):
    subthemes: List[SubthemeNodeOut] = Field(default_factory=list)


class PillarNodeOut(TreeNodeOut):
    themes: List[ThemeNodeOut] = Field(default_factory=list)


class VersionTreeOut(BaseModel):
    version: VersionOut
    pillars: List[PillarNodeOut]


class VersionDeleteOut(BaseModel):
    id: str
    deleted: bool = True


class ActiveVersionOut(BaseModel):
    version: Optional[VersionOut] = None
