"""
Framework version lifecycle: draft creation, cloning, editing, publish, activate.

States: draft (initial) -> published (terminal). Every operation runs inside
one store transaction so readers never see a half-populated draft.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from ssc_api.core.errors import IncoherentTreeError, InvalidStateError, InvalidTransitionError, NotFoundError, ValidationError
from ssc_api.core.observability import audit
from ssc_api.core.store import Row, Store
from ssc_api.modules.catalogue.repository import CatalogueRepository
from ssc_api.modules.framework_versions.refcode import LEVEL_CAPACITY, ref_code, sort_key
from ssc_api.modules.framework_versions.repository import STATUS_DRAFT, STATUS_PUBLISHED, VersionRepository
from ssc_api.modules.framework_versions.tree import build_tree

Entry = Tuple[str, Optional[str], Optional[str]]


def _check_capacity(kind: str, index: int, parent_id: str) -> None:
    if index >= LEVEL_CAPACITY:
        raise ValidationError(
            f"{kind} #{index + 1} under {parent_id} exceeds the {LEVEL_CAPACITY} entries a parent can hold",
            parent_id=parent_id,
            level=kind,
        )


def derive_items(entries: Iterable[Entry]) -> List[Dict[str, Any]]:
    """Assign ref_code/sort_order from document order.

    `entries` are (pillar_id, theme_id, subtheme_id) in display order; each
    theme must follow its pillar and each subtheme its theme.
    """
    pillar_pos: Dict[str, int] = {}
    theme_pos: Dict[Tuple[str, str], Tuple[int, int]] = {}
    themes_seen: Dict[str, int] = {}
    subs_seen: Dict[Tuple[str, str], int] = {}
    out: List[Dict[str, Any]] = []

    for pillar_id, theme_id, subtheme_id in entries:
        if not theme_id:
            p = pillar_pos.setdefault(pillar_id, len(pillar_pos))
            pos: Tuple[int, Optional[int], Optional[int]] = (p, None, None)
        elif not subtheme_id:
            if pillar_id not in pillar_pos:
                raise IncoherentTreeError(
                    f"theme {theme_id} appears before/without its pillar {pillar_id}",
                    theme_id=theme_id,
                    pillar_id=pillar_id,
                )
            t = themes_seen.get(pillar_id, 0)
            _check_capacity("theme", t, pillar_id)
            themes_seen[pillar_id] = t + 1
            theme_pos[(pillar_id, theme_id)] = (pillar_pos[pillar_id], t)
            pos = (pillar_pos[pillar_id], t, None)
        else:
            parent = theme_pos.get((pillar_id, theme_id))
            if parent is None:
                raise IncoherentTreeError(
                    f"subtheme {subtheme_id} appears before/without its theme {theme_id}",
                    subtheme_id=subtheme_id,
                    theme_id=theme_id,
                )
            s = subs_seen.get((pillar_id, theme_id), 0)
            _check_capacity("subtheme", s, theme_id)
            subs_seen[(pillar_id, theme_id)] = s + 1
            pos = (parent[0], parent[1], s)

        out.append(
            {
                "pillar_id": pillar_id,
                "theme_id": theme_id or None,
                "subtheme_id": subtheme_id or None,
                "ref_code": ref_code(*pos),
                "sort_order": sort_key(*pos),
            }
        )
    return out


def _catalogue_entries(tree: List[Dict[str, Any]]) -> List[Entry]:
    entries: List[Entry] = []
    for p in tree:
        entries.append((p["id"], None, None))
        for t in p.get("themes") or []:
            entries.append((p["id"], t["id"], None))
            for s in t.get("subthemes") or []:
                entries.append((p["id"], t["id"], s["id"]))
    return entries


class VersionLifecycle:
    def __init__(self, store: Store, request_id: Optional[str] = None) -> None:
        self.store = store
        self.request_id = request_id

    def _audit(self, event: str, message: str, **extra: Any) -> None:
        audit(event, message, self.request_id, __name__, **extra)

    # -------------------------
    # reads
    # -------------------------
    def list_versions(self) -> List[Row]:
        return VersionRepository(self.store).list_versions()

    def get_version(self, version_id: str) -> Row:
        return VersionRepository(self.store).get_version(version_id)

    def get_version_items(self, version_id: str) -> List[Row]:
        return VersionRepository(self.store).get_version_items(version_id)

    def build_tree(self, version_id: str) -> List[Dict[str, Any]]:
        return build_tree(self.store, version_id)

    # -------------------------
    # drafts
    # -------------------------
    def create_blank_draft(self, name: str) -> Row:
        v = VersionRepository(self.store).create_version(name)
        self._audit("framework.version.created", f"draft {v['id']} created", version_id=v["id"], source="blank")
        return v

    def create_draft_from_catalogue(self, name: str) -> Row:
        with self.store.transaction() as tx:
            versions = VersionRepository(tx)
            # snapshot read inside the write transaction
            entries = _catalogue_entries(CatalogueRepository(tx).catalogue_tree())
            v = versions.create_version(name)
            items = versions.replace_items(v["id"], derive_items(entries))
            v = versions.get_version(v["id"])
        self._audit(
            "framework.version.created",
            f"draft {v['id']} created from catalogue",
            version_id=v["id"],
            source="catalogue",
            items=len(items),
        )
        return v

    def clone_version(self, source_version_id: str, new_name: str) -> Row:
        with self.store.transaction() as tx:
            versions = VersionRepository(tx)
            source = versions.get_version_items(source_version_id)
            entries = [(r["pillar_id"], r["theme_id"], r["subtheme_id"]) for r in source]
            try:
                items = derive_items(entries)
            except IncoherentTreeError as e:
                raise IncoherentTreeError(
                    f"cannot clone version {source_version_id}: {e.message}",
                    source_version_id=source_version_id,
                    **e.details,
                ) from e
            v = versions.create_version(new_name)
            versions.replace_items(v["id"], items)
            v = versions.get_version(v["id"])
        self._audit(
            "framework.version.cloned",
            f"draft {v['id']} cloned from {source_version_id}",
            version_id=v["id"],
            source_version_id=source_version_id,
            items=len(source),
        )
        return v

    def save_tree(self, version_id: str, pillars: List[Dict[str, Any]]) -> List[Row]:
        """Replace a draft's membership from a nested pillar/theme/subtheme selection."""
        with self.store.transaction() as tx:
            versions = VersionRepository(tx)
            v = versions.get_version(version_id)
            if v["status"] != STATUS_DRAFT:
                raise InvalidStateError(
                    f"cannot replace items of version {version_id}: status is {v['status']}",
                    version_id=version_id,
                    status=v["status"],
                )

            entries: List[Entry] = []
            for p in pillars:
                entries.append((p["pillar_id"], None, None))
                for t in p.get("themes") or []:
                    entries.append((p["pillar_id"], t["theme_id"], None))
                    for sid in t.get("subthemes") or []:
                        entries.append((p["pillar_id"], t["theme_id"], sid))

            self._check_membership(CatalogueRepository(tx), entries)
            items = versions.replace_items(version_id, derive_items(entries))

        self._audit("framework.version.items_replaced", f"version {version_id} items replaced", version_id=version_id, items=len(items))
        return items

    def _check_membership(self, catalogue: CatalogueRepository, entries: List[Entry]) -> None:
        pillars = catalogue.pillars_by_id(e[0] for e in entries)
        themes = catalogue.themes_by_id(e[1] for e in entries if e[1])
        subs = catalogue.subthemes_by_id(e[2] for e in entries if e[2])

        for pillar_id, theme_id, subtheme_id in entries:
            if pillar_id not in pillars:
                raise NotFoundError(f"pillar not found: {pillar_id}", pillar_id=pillar_id)
            if theme_id:
                theme = themes.get(theme_id)
                if theme is None:
                    raise NotFoundError(f"theme not found: {theme_id}", theme_id=theme_id)
                if theme["pillar_id"] != pillar_id:
                    raise ValidationError(
                        f"theme {theme_id} belongs to pillar {theme['pillar_id']}, not {pillar_id}",
                        theme_id=theme_id,
                        pillar_id=pillar_id,
                    )
            if subtheme_id:
                sub = subs.get(subtheme_id)
                if sub is None:
                    raise NotFoundError(f"subtheme not found: {subtheme_id}", subtheme_id=subtheme_id)
                if sub["theme_id"] != theme_id:
                    raise ValidationError(
                        f"subtheme {subtheme_id} belongs to theme {sub['theme_id']}, not {theme_id}",
                        subtheme_id=subtheme_id,
                        theme_id=theme_id,
                    )

    def rename_version(self, version_id: str, name: str) -> Row:
        return VersionRepository(self.store).rename_version(version_id, name)

    def delete_version(self, version_id: str) -> None:
        VersionRepository(self.store).delete_version(version_id)
        self._audit("framework.version.deleted", f"draft {version_id} deleted", version_id=version_id)

    # -------------------------
    # publish / activate
    # -------------------------
    def publish_version(self, version_id: str) -> Row:
        with self.store.transaction() as tx:
            versions = VersionRepository(tx)
            v = versions.get_version(version_id)
            if v["status"] != STATUS_DRAFT:
                raise InvalidTransitionError(
                    f"version {version_id} is already {v['status']}",
                    version_id=version_id,
                    current=v["status"],
                    requested=STATUS_PUBLISHED,
                )
            tree = build_tree(tx, version_id)
            v = versions.set_status(version_id, STATUS_PUBLISHED)
        self._audit("framework.version.published", f"version {version_id} published", version_id=version_id, pillars=len(tree))
        return v

    def activate_version(self, version_id: str) -> Row:
        with self.store.transaction() as tx:
            versions = VersionRepository(tx)
            v = versions.get_version(version_id)
            if v["status"] != STATUS_PUBLISHED:
                raise InvalidStateError(
                    f"only published versions can be activated; version {version_id} is {v['status']}",
                    version_id=version_id,
                    status=v["status"],
                )
            versions.set_active_pointer(version_id)
        self._audit("framework.version.activated", f"version {version_id} activated", version_id=version_id)
        return v

    def get_active_version(self) -> Optional[Row]:
        versions = VersionRepository(self.store)
        pointer = versions.get_active_pointer()
        if pointer is None:
            return None
        return versions.get_version(pointer["version_id"])
