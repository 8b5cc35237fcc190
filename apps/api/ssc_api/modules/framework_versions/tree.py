"""
Flat version items -> nested pillar/theme/subtheme tree.

Catalogue entities are loaded once per level into id-keyed arenas and rows
are bucketed under their parent node, so the build is linear in the number
of items. Output order is the stored sort_order, whatever order storage
returned the rows in.

Drift is never papered over:
- missing catalogue entity            -> DanglingReferenceError
- theme/subtheme row without a parent -> IncoherentTreeError
- catalogue parent != row parent      -> IncoherentTreeError
"""
from __future__ import annotations

from typing import Any, Dict, List

from ssc_api.core.errors import DanglingReferenceError, IncoherentTreeError
from ssc_api.core.store import Row, Store
from ssc_api.modules.catalogue.repository import CatalogueRepository
from ssc_api.modules.framework_versions.repository import VersionRepository, item_level

_NODE_FIELDS = ("id", "code", "name", "description", "color", "icon", "can_have_indicators")


def _node(kind: str, entity: Row, item: Row) -> Dict[str, Any]:
    node: Dict[str, Any] = {k: entity.get(k) for k in _NODE_FIELDS}
    node["can_have_indicators"] = bool(node.get("can_have_indicators"))
    node["type"] = kind
    node["ref_code"] = item["ref_code"]
    node["sort_order"] = int(item["sort_order"])
    return node


def _resolve(arena: Dict[str, Row], kind: str, entity_id: str, item: Row) -> Row:
    entity = arena.get(entity_id)
    if entity is None:
        raise DanglingReferenceError(
            f"version {item['version_id']} item {item['ref_code']} references missing {kind} {entity_id}",
            version_id=item["version_id"],
            ref_code=item["ref_code"],
            **{f"{kind}_id": entity_id},
        )
    return entity


def build_tree(store: Store, version_id: str) -> List[Dict[str, Any]]:
    versions = VersionRepository(store)
    catalogue = CatalogueRepository(store)

    items = sorted(versions.get_version_items(version_id), key=lambda r: int(r["sort_order"]))

    buckets: Dict[str, List[Row]] = {"pillar": [], "theme": [], "subtheme": []}
    for item in items:
        buckets[item_level(item)].append(item)

    pillars = catalogue.pillars_by_id(r["pillar_id"] for r in buckets["pillar"])
    themes = catalogue.themes_by_id(r["theme_id"] for r in buckets["theme"])
    subthemes = catalogue.subthemes_by_id(r["subtheme_id"] for r in buckets["subtheme"])

    tree: List[Dict[str, Any]] = []
    pillar_nodes: Dict[str, Dict[str, Any]] = {}
    theme_nodes: Dict[str, Dict[str, Any]] = {}

    for item in buckets["pillar"]:
        node = _node("pillar", _resolve(pillars, "pillar", item["pillar_id"], item), item)
        node["themes"] = []
        pillar_nodes[item["pillar_id"]] = node
        tree.append(node)

    for item in buckets["theme"]:
        parent = pillar_nodes.get(item["pillar_id"])
        if parent is None:
            raise IncoherentTreeError(
                f"version {version_id}: theme {item['theme_id']} ({item['ref_code']}) has no pillar row for pillar {item['pillar_id']}",
                version_id=version_id,
                theme_id=item["theme_id"],
                pillar_id=item["pillar_id"],
            )
        entity = _resolve(themes, "theme", item["theme_id"], item)
        if entity["pillar_id"] != item["pillar_id"]:
            raise IncoherentTreeError(
                f"version {version_id}: theme {item['theme_id']} belongs to pillar {entity['pillar_id']}, not {item['pillar_id']}",
                version_id=version_id,
                theme_id=item["theme_id"],
                pillar_id=item["pillar_id"],
            )
        node = _node("theme", entity, item)
        node["subthemes"] = []
        theme_nodes[item["theme_id"]] = node
        parent["themes"].append(node)

    for item in buckets["subtheme"]:
        parent = theme_nodes.get(item["theme_id"])
        if parent is None or themes[item["theme_id"]]["pillar_id"] != item["pillar_id"]:
            raise IncoherentTreeError(
                f"version {version_id}: subtheme {item['subtheme_id']} ({item['ref_code']}) has no theme row for theme {item['theme_id']}",
                version_id=version_id,
                subtheme_id=item["subtheme_id"],
                theme_id=item["theme_id"],
            )
        entity = _resolve(subthemes, "subtheme", item["subtheme_id"], item)
        if entity["theme_id"] != item["theme_id"]:
            raise IncoherentTreeError(
                f"version {version_id}: subtheme {item['subtheme_id']} belongs to theme {entity['theme_id']}, not {item['theme_id']}",
                version_id=version_id,
                subtheme_id=item["subtheme_id"],
                theme_id=item["theme_id"],
            )
        parent["subthemes"].append(_node("subtheme", entity, item))

    return tree
