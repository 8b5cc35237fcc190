from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ssc_api.core.db import get_store
from ssc_api.core.store import Store

from .schemas import (
    ActiveVersionOut,
    VersionCloneIn,
    VersionCreateIn,
    VersionDeleteOut,
    VersionItemsOut,
    VersionItemsSaveIn,
    VersionOut,
    VersionPatchIn,
    VersionsListOut,
    VersionTreeOut,
)
from .service import VersionLifecycle

router = APIRouter(prefix="/framework", tags=["framework_versions"])


def _lifecycle(request: Request, store: Store = Depends(get_store)) -> VersionLifecycle:
    # request_id is injected by the main.py middleware
    rid = getattr(getattr(request, "state", None), "request_id", None)
    return VersionLifecycle(store, request_id=rid)


@router.get("/versions", response_model=VersionsListOut)
def api_list_versions(svc: VersionLifecycle = Depends(_lifecycle)) -> VersionsListOut:
    return VersionsListOut(items=svc.list_versions())


@router.post("/versions", response_model=VersionOut)
def api_create_version(body: VersionCreateIn, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    if body.source == "blank":
        return VersionOut(**svc.create_blank_draft(body.name))
    return VersionOut(**svc.create_draft_from_catalogue(body.name))


@router.get("/versions/{version_id}", response_model=VersionOut)
def api_get_version(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    return VersionOut(**svc.get_version(version_id))


@router.patch("/versions/{version_id}", response_model=VersionOut)
def api_rename_version(version_id: str, body: VersionPatchIn, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    return VersionOut(**svc.rename_version(version_id, body.name))


@router.delete("/versions/{version_id}", response_model=VersionDeleteOut)
def api_delete_version(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionDeleteOut:
    svc.delete_version(version_id)
    return VersionDeleteOut(id=version_id)


@router.post("/versions/{version_id}/clone", response_model=VersionOut)
def api_clone_version(version_id: str, body: VersionCloneIn, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    return VersionOut(**svc.clone_version(version_id, body.name))


@router.get("/versions/{version_id}/items", response_model=VersionItemsOut)
def api_get_items(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionItemsOut:
    return VersionItemsOut(version_id=version_id, items=svc.get_version_items(version_id))


@router.put("/versions/{version_id}/items", response_model=VersionItemsOut)
def api_save_items(version_id: str, body: VersionItemsSaveIn, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionItemsOut:
    items = svc.save_tree(version_id, [p.model_dump() for p in body.pillars])
    return VersionItemsOut(version_id=version_id, items=items)


@router.get("/versions/{version_id}/tree", response_model=VersionTreeOut)
def api_get_tree(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionTreeOut:
    version = svc.get_version(version_id)
    return VersionTreeOut(version=version, pillars=svc.build_tree(version_id))


@router.post("/versions/{version_id}/publish", response_model=VersionOut)
def api_publish_version(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    return VersionOut(**svc.publish_version(version_id))


@router.post("/versions/{version_id}/activate", response_model=VersionOut)
def api_activate_version(version_id: str, svc: VersionLifecycle = Depends(_lifecycle)) -> VersionOut:
    return VersionOut(**svc.activate_version(version_id))


@router.get("/active", response_model=ActiveVersionOut)
def api_get_active_version(svc: VersionLifecycle = Depends(_lifecycle)) -> ActiveVersionOut:
    return ActiveVersionOut(version=svc.get_active_version())
