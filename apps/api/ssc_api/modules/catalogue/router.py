from __future__ import annotations

from fastapi import APIRouter, Depends

from ssc_api.core.db import get_store
from ssc_api.core.store import Store

from .repository import CatalogueRepository
from .schemas import (
    CatalogueEntityIn,
    CataloguePatchIn,
    CatalogueTreeOut,
    DeleteOut,
    OrderIn,
    PillarOut,
    PillarsListOut,
    SubthemeCreateIn,
    SubthemeOut,
    SubthemesListOut,
    ThemeCreateIn,
    ThemeOut,
    ThemesListOut,
)

router = APIRouter(prefix="/catalogue", tags=["catalogue"])


def _repo(store: Store = Depends(get_store)) -> CatalogueRepository:
    return CatalogueRepository(store)


@router.get("/tree", response_model=CatalogueTreeOut)
def api_catalogue_tree(repo: CatalogueRepository = Depends(_repo)) -> CatalogueTreeOut:
    return CatalogueTreeOut(items=repo.catalogue_tree())


# --- pillars ---
@router.get("/pillars", response_model=PillarsListOut)
def api_list_pillars(repo: CatalogueRepository = Depends(_repo)) -> PillarsListOut:
    return PillarsListOut(items=repo.list_pillars())


@router.post("/pillars", response_model=PillarOut)
def api_create_pillar(body: CatalogueEntityIn, repo: CatalogueRepository = Depends(_repo)) -> PillarOut:
    return PillarOut(**repo.create_pillar(**body.model_dump()))


@router.put("/pillars/order", response_model=PillarsListOut)
def api_reorder_pillars(body: OrderIn, repo: CatalogueRepository = Depends(_repo)) -> PillarsListOut:
    return PillarsListOut(items=repo.reorder_pillars(body.ids))


@router.patch("/pillars/{pillar_id}", response_model=PillarOut)
def api_patch_pillar(pillar_id: str, body: CataloguePatchIn, repo: CatalogueRepository = Depends(_repo)) -> PillarOut:
    return PillarOut(**repo.update_pillar(pillar_id, body.model_dump(exclude_unset=True)))


@router.delete("/pillars/{pillar_id}", response_model=DeleteOut)
def api_delete_pillar(pillar_id: str, repo: CatalogueRepository = Depends(_repo)) -> DeleteOut:
    repo.delete_pillar(pillar_id)
    return DeleteOut(id=pillar_id)


@router.get("/pillars/{pillar_id}/themes", response_model=ThemesListOut)
def api_list_themes(pillar_id: str, repo: CatalogueRepository = Depends(_repo)) -> ThemesListOut:
    return ThemesListOut(items=repo.list_themes(pillar_id))


@router.put("/pillars/{pillar_id}/themes/order", response_model=ThemesListOut)
def api_reorder_themes(pillar_id: str, body: OrderIn, repo: CatalogueRepository = Depends(_repo)) -> ThemesListOut:
    return ThemesListOut(items=repo.reorder_themes(pillar_id, body.ids))


# --- themes ---
@router.post("/themes", response_model=ThemeOut)
def api_create_theme(body: ThemeCreateIn, repo: CatalogueRepository = Depends(_repo)) -> ThemeOut:
    payload = body.model_dump(exclude={"pillar_id"})
    return ThemeOut(**repo.create_theme(body.pillar_id, **payload))


@router.patch("/themes/{theme_id}", response_model=ThemeOut)
def api_patch_theme(theme_id: str, body: CataloguePatchIn, repo: CatalogueRepository = Depends(_repo)) -> ThemeOut:
    return ThemeOut(**repo.update_theme(theme_id, body.model_dump(exclude_unset=True)))


@router.delete("/themes/{theme_id}", response_model=DeleteOut)
def api_delete_theme(theme_id: str, repo: CatalogueRepository = Depends(_repo)) -> DeleteOut:
    repo.delete_theme(theme_id)
    return DeleteOut(id=theme_id)


@router.get("/themes/{theme_id}/subthemes", response_model=SubthemesListOut)
def api_list_subthemes(theme_id: str, repo: CatalogueRepository = Depends(_repo)) -> SubthemesListOut:
    return SubthemesListOut(items=repo.list_subthemes(theme_id))


@router.put("/themes/{theme_id}/subthemes/order", response_model=SubthemesListOut)
def api_reorder_subthemes(theme_id: str, body: OrderIn, repo: CatalogueRepository = Depends(_repo)) -> SubthemesListOut:
    return SubthemesListOut(items=repo.reorder_subthemes(theme_id, body.ids))


# --- subthemes ---
@router.post("/subthemes", response_model=SubthemeOut)
def api_create_subtheme(body: SubthemeCreateIn, repo: CatalogueRepository = Depends(_repo)) -> SubthemeOut:
    payload = body.model_dump(exclude={"theme_id"})
    return SubthemeOut(**repo.create_subtheme(body.theme_id, **payload))


@router.patch("/subthemes/{subtheme_id}", response_model=SubthemeOut)
def api_patch_subtheme(subtheme_id: str, body: CataloguePatchIn, repo: CatalogueRepository = Depends(_repo)) -> SubthemeOut:
    return SubthemeOut(**repo.update_subtheme(subtheme_id, body.model_dump(exclude_unset=True)))


@router.delete("/subthemes/{subtheme_id}", response_model=DeleteOut)
def api_delete_subtheme(subtheme_id: str, repo: CatalogueRepository = Depends(_repo)) -> DeleteOut:
    repo.delete_subtheme(subtheme_id)
    return DeleteOut(id=subtheme_id)
