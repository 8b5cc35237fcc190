from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ssc_api.core.errors import InvalidStateError, NotFoundError, ValidationError
from ssc_api.core.ids import new_ulid, now_iso
from ssc_api.core.store import Row, Store
from ssc_api.modules.catalogue import models as _models  # noqa: F401
from ssc_api.modules.framework_versions import models as _version_models  # noqa: F401

PILLARS = "pillar_catalogue"
THEMES = "theme_catalogue"
SUBTHEMES = "subtheme_catalogue"
VERSION_ITEMS = "framework_version_items"

EDITABLE_FIELDS = ("code", "name", "description", "color", "icon", "can_have_indicators")

# level -> (table, parent column, parent level, child table, version item column)
_LEVELS: Dict[str, Dict[str, Optional[str]]] = {
    "pillar": {"table": PILLARS, "parent_col": None, "parent": None, "child_table": THEMES, "item_col": "pillar_id"},
    "theme": {"table": THEMES, "parent_col": "pillar_id", "parent": "pillar", "child_table": SUBTHEMES, "item_col": "theme_id"},
    "subtheme": {"table": SUBTHEMES, "parent_col": "theme_id", "parent": "theme", "child_table": None, "item_col": "subtheme_id"},
}

_ORDER = ["sort_order", "name"]


def _clean_name(name: Optional[str], level: str) -> str:
    n = (name or "").strip()
    if not n:
        raise ValidationError(f"{level} name must not be empty", level=level)
    return n


class CatalogueRepository:
    """Master catalogue of pillars, themes and subthemes.

    Reads reflect the store at call time; nothing is cached.
    """

    def __init__(self, store: Store) -> None:
        self.store = store

    # -------------------------
    # reads
    # -------------------------
    def _get(self, level: str, entity_id: str) -> Row:
        rows = self.store.query(str(_LEVELS[level]["table"]), {"id": entity_id})
        if not rows:
            raise NotFoundError(f"{level} not found: {entity_id}", **{f"{level}_id": entity_id})
        return rows[0]

    def get_pillar(self, pillar_id: str) -> Row:
        return self._get("pillar", pillar_id)

    def get_theme(self, theme_id: str) -> Row:
        return self._get("theme", theme_id)

    def get_subtheme(self, subtheme_id: str) -> Row:
        return self._get("subtheme", subtheme_id)

    def list_pillars(self) -> List[Row]:
        return self.store.query(PILLARS, order=_ORDER)

    def list_themes(self, pillar_id: str) -> List[Row]:
        self.get_pillar(pillar_id)
        return self.store.query(THEMES, {"pillar_id": pillar_id}, order=_ORDER)

    def list_subthemes(self, theme_id: str) -> List[Row]:
        self.get_theme(theme_id)
        return self.store.query(SUBTHEMES, {"theme_id": theme_id}, order=_ORDER)

    def _by_id(self, table: str, ids: Iterable[str]) -> Dict[str, Row]:
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        return {r["id"]: r for r in self.store.query(table, {"id": wanted})}

    def pillars_by_id(self, ids: Iterable[str]) -> Dict[str, Row]:
        return self._by_id(PILLARS, ids)

    def themes_by_id(self, ids: Iterable[str]) -> Dict[str, Row]:
        return self._by_id(THEMES, ids)

    def subthemes_by_id(self, ids: Iterable[str]) -> Dict[str, Row]:
        return self._by_id(SUBTHEMES, ids)

    def catalogue_tree(self) -> List[Dict[str, Any]]:
        """Pillars -> themes -> subthemes, each level in catalogue order."""
        pillars = self.store.query(PILLARS, order=_ORDER)
        themes = self.store.query(THEMES, order=_ORDER)
        subs = self.store.query(SUBTHEMES, order=_ORDER)

        subs_by_theme: Dict[str, List[Row]] = {}
        for s in subs:
            subs_by_theme.setdefault(s["theme_id"], []).append(dict(s))

        themes_by_pillar: Dict[str, List[Row]] = {}
        for t in themes:
            node = dict(t)
            node["subthemes"] = subs_by_theme.get(t["id"], [])
            themes_by_pillar.setdefault(t["pillar_id"], []).append(node)

        out: List[Dict[str, Any]] = []
        for p in pillars:
            node = dict(p)
            node["themes"] = themes_by_pillar.get(p["id"], [])
            out.append(node)
        return out

    # -------------------------
    # writes
    # -------------------------
    def _next_sort_order(self, table: str, filters: Optional[Dict[str, Any]]) -> int:
        rows = self.store.query(table, filters, order=["-sort_order"])
        if not rows:
            return 0
        return int(rows[0]["sort_order"]) + 1

    def _create(self, level: str, parent_id: Optional[str], payload: Dict[str, Any]) -> Row:
        level_meta = _LEVELS[level]
        table = str(level_meta["table"])
        filters: Optional[Dict[str, Any]] = None
        row: Dict[str, Any] = {}
        if level_meta["parent_col"]:
            self._get(str(level_meta["parent"]), str(parent_id))
            filters = {str(level_meta["parent_col"]): parent_id}
            row[str(level_meta["parent_col"])] = parent_id

        now = now_iso()
        row.update(
            {
                "id": new_ulid(),
                "code": payload.get("code"),
                "name": _clean_name(payload.get("name"), level),
                "description": payload.get("description"),
                "color": payload.get("color"),
                "icon": payload.get("icon"),
                "can_have_indicators": bool(payload.get("can_have_indicators", False)),
                "created_at": now,
                "updated_at": now,
            }
        )
        with self.store.transaction() as tx:
            row["sort_order"] = CatalogueRepository(tx)._next_sort_order(table, filters)
            tx.insert(table, [row])
        return self._get(level, row["id"])

    def create_pillar(self, **payload: Any) -> Row:
        return self._create("pillar", None, payload)

    def create_theme(self, pillar_id: str, **payload: Any) -> Row:
        return self._create("theme", pillar_id, payload)

    def create_subtheme(self, theme_id: str, **payload: Any) -> Row:
        return self._create("subtheme", theme_id, payload)

    def _update(self, level: str, entity_id: str, patch: Dict[str, Any]) -> Row:
        table = str(_LEVELS[level]["table"])
        self._get(level, entity_id)

        values = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS}
        if "name" in values:
            values["name"] = _clean_name(values["name"], level)
        if "can_have_indicators" in values:
            values["can_have_indicators"] = bool(values["can_have_indicators"])
        if values:
            values["updated_at"] = now_iso()
            self.store.update(table, {"id": entity_id}, values)
        return self._get(level, entity_id)

    def update_pillar(self, pillar_id: str, patch: Dict[str, Any]) -> Row:
        return self._update("pillar", pillar_id, patch)

    def update_theme(self, theme_id: str, patch: Dict[str, Any]) -> Row:
        return self._update("theme", theme_id, patch)

    def update_subtheme(self, subtheme_id: str, patch: Dict[str, Any]) -> Row:
        return self._update("subtheme", subtheme_id, patch)

    def _delete(self, level: str, entity_id: str) -> None:
        level_meta = _LEVELS[level]
        with self.store.transaction() as tx:
            CatalogueRepository(tx)._get(level, entity_id)

            if level_meta["child_table"]:
                children = tx.query(str(level_meta["child_table"]), {f"{level}_id": entity_id})
                if children:
                    raise InvalidStateError(
                        f"{level} {entity_id} still has {len(children)} child entries",
                        **{f"{level}_id": entity_id, "children": len(children)},
                    )

            refs = tx.query(VERSION_ITEMS, {str(level_meta["item_col"]): entity_id})
            if refs:
                versions = sorted({r["version_id"] for r in refs})
                raise InvalidStateError(
                    f"{level} {entity_id} is referenced by framework versions: {', '.join(versions)}",
                    **{f"{level}_id": entity_id, "version_ids": versions},
                )

            tx.delete(str(level_meta["table"]), {"id": entity_id})

    def delete_pillar(self, pillar_id: str) -> None:
        self._delete("pillar", pillar_id)

    def delete_theme(self, theme_id: str) -> None:
        self._delete("theme", theme_id)

    def delete_subtheme(self, subtheme_id: str) -> None:
        self._delete("subtheme", subtheme_id)

    def _reorder(self, level: str, parent_id: Optional[str], ids: List[str]) -> List[Row]:
        level_meta = _LEVELS[level]
        table = str(level_meta["table"])
        filters: Optional[Dict[str, Any]] = None
        with self.store.transaction() as tx:
            repo = CatalogueRepository(tx)
            if level_meta["parent_col"]:
                repo._get(str(level_meta["parent"]), str(parent_id))
                filters = {str(level_meta["parent_col"]): parent_id}

            current = {r["id"] for r in tx.query(table, filters)}
            if len(ids) != len(set(ids)) or set(ids) != current:
                raise ValidationError(
                    f"{level} order must list each existing {level} exactly once",
                    parent_id=parent_id,
                    expected=sorted(current),
                    got=list(ids),
                )

            now = now_iso()
            for pos, entity_id in enumerate(ids):
                tx.update(table, {"id": entity_id}, {"sort_order": pos, "updated_at": now})
            return tx.query(table, filters, order=_ORDER)

    def reorder_pillars(self, ids: List[str]) -> List[Row]:
        return self._reorder("pillar", None, ids)

    def reorder_themes(self, pillar_id: str, ids: List[str]) -> List[Row]:
        return self._reorder("theme", pillar_id, ids)

    def reorder_subthemes(self, theme_id: str, ids: List[str]) -> List[Row]:
        return self._reorder("subtheme", theme_id, ids)
