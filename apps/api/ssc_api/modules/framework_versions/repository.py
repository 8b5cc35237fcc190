from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ssc_api.core.errors import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ssc_api.core.ids import new_ulid, now_iso
from ssc_api.core.store import Row, Store
from ssc_api.modules.framework_versions import models as _models  # noqa: F401
from ssc_api.modules.framework_versions.refcode import (
    LEVEL_CAPACITY,
    Position,
    level_of,
    parse_ref_code,
    sort_key,
)

VERSIONS = "framework_versions"
ITEMS = "framework_version_items"

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED)

# the only legal transition
_TRANSITIONS = {(STATUS_DRAFT, STATUS_PUBLISHED)}


def item_level(item: Dict[str, Any]) -> str:
    pillar_id = item.get("pillar_id")
    theme_id = item.get("theme_id")
    subtheme_id = item.get("subtheme_id")
    if not pillar_id:
        raise ValidationError("version item requires pillar_id", item=dict(item))
    if subtheme_id and not theme_id:
        raise ValidationError(
            f"subtheme {subtheme_id} row has no theme_id",
            subtheme_id=subtheme_id,
            pillar_id=pillar_id,
        )
    if not theme_id:
        return "pillar"
    if not subtheme_id:
        return "theme"
    return "subtheme"


def _validate_items(version_id: str, items: Sequence[Dict[str, Any]]) -> List[Row]:
    seen: Set[Tuple[Any, Any, Any]] = set()
    codes: Set[str] = set()
    rows: List[Row] = []
    positions: List[Position] = []
    for item in items:
        level = item_level(item)
        key = (item.get("pillar_id"), item.get("theme_id") or None, item.get("subtheme_id") or None)
        if key in seen:
            raise ValidationError(
                f"duplicate membership row in version {version_id}: pillar={key[0]} theme={key[1]} subtheme={key[2]}",
                version_id=version_id,
                pillar_id=key[0],
                theme_id=key[1],
                subtheme_id=key[2],
            )
        seen.add(key)

        code = str(item.get("ref_code") or "")
        try:
            pos = parse_ref_code(code)
        except ValueError:
            raise ValidationError(f"malformed ref_code {code!r} in version {version_id}", version_id=version_id, ref_code=code)
        if level_of(pos) != level:
            raise ValidationError(
                f"ref_code {code} does not match a {level} row",
                version_id=version_id,
                ref_code=code,
                level=level,
            )
        if any(i is not None and i >= LEVEL_CAPACITY for i in pos[1:]):
            raise ValidationError(f"ref_code {code} exceeds {LEVEL_CAPACITY} entries per parent", ref_code=code)
        if code in codes:
            raise ValidationError(f"duplicate ref_code {code} in version {version_id}", version_id=version_id, ref_code=code)
        codes.add(code)

        try:
            order = int(item.get("sort_order"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ValidationError(f"sort_order missing for {code}", ref_code=code)
        if order != sort_key(*pos):
            raise ValidationError(
                f"sort_order {order} does not encode ref_code {code} (expected {sort_key(*pos)})",
                ref_code=code,
                sort_order=order,
            )

        positions.append(pos)
        rows.append(
            {
                "id": new_ulid(),
                "version_id": version_id,
                "pillar_id": key[0],
                "theme_id": key[1],
                "subtheme_id": key[2],
                "ref_code": code,
                "sort_order": order,
            }
        )

    _check_prefixes(version_id, rows, positions)
    return rows


def _check_prefixes(version_id: str, rows: List[Row], positions: List[Position]) -> None:
    """A child's code must extend its parent row's code.

    Rows whose parent row is absent are orphans; build_tree reports those.
    """
    pillar_at: Dict[str, int] = {}
    theme_at: Dict[Tuple[str, str], Tuple[int, Optional[int]]] = {}
    for row, pos in zip(rows, positions):
        if row["theme_id"] is None:
            pillar_at[row["pillar_id"]] = pos[0]
        elif row["subtheme_id"] is None:
            theme_at[(row["pillar_id"], row["theme_id"])] = (pos[0], pos[1])

    for row, pos in zip(rows, positions):
        if row["theme_id"] is None:
            continue
        if row["subtheme_id"] is None:
            parent = pillar_at.get(row["pillar_id"])
            if parent is not None and parent != pos[0]:
                raise ValidationError(
                    f"theme {row['theme_id']} coded {row['ref_code']} but its pillar {row['pillar_id']} is P{parent + 1}",
                    version_id=version_id,
                    pillar_id=row["pillar_id"],
                    theme_id=row["theme_id"],
                    ref_code=row["ref_code"],
                )
            continue
        parent_pos = theme_at.get((row["pillar_id"], row["theme_id"]))
        if parent_pos is not None and parent_pos != (pos[0], pos[1]):
            raise ValidationError(
                f"subtheme {row['subtheme_id']} coded {row['ref_code']} does not extend its theme {row['theme_id']} "
                f"(P{parent_pos[0] + 1}.T{(parent_pos[1] or 0) + 1})",
                version_id=version_id,
                pillar_id=row["pillar_id"],
                theme_id=row["theme_id"],
                subtheme_id=row["subtheme_id"],
                ref_code=row["ref_code"],
            )


class VersionRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    def list_versions(self) -> List[Row]:
        return self.store.query(VERSIONS, order=["-created_at", "-id"])

    def get_version(self, version_id: str) -> Row:
        rows = self.store.query(VERSIONS, {"id": version_id})
        if not rows:
            raise NotFoundError(f"framework version not found: {version_id}", version_id=version_id)
        return rows[0]

    def get_version_items(self, version_id: str) -> List[Row]:
        self.get_version(version_id)
        return self.store.query(ITEMS, {"version_id": version_id}, order=["sort_order"])

    def create_version(self, name: str) -> Row:
        n = (name or "").strip()
        if not n:
            raise ValidationError("version name must not be empty")
        now = now_iso()
        row = {"id": new_ulid(), "name": n, "status": STATUS_DRAFT, "created_at": now, "updated_at": now}
        self.store.insert(VERSIONS, [row])
        return row

    def rename_version(self, version_id: str, name: str) -> Row:
        n = (name or "").strip()
        if not n:
            raise ValidationError(f"version name must not be empty (version {version_id})", version_id=version_id)
        with self.store.transaction() as tx:
            repo = VersionRepository(tx)
            repo.get_version(version_id)
            tx.update(VERSIONS, {"id": version_id}, {"name": n, "updated_at": now_iso()})
            return repo.get_version(version_id)

    def _require_draft(self, version_id: str, action: str) -> Row:
        v = self.get_version(version_id)
        if v["status"] != STATUS_DRAFT:
            raise InvalidStateError(
                f"cannot {action} version {version_id}: status is {v['status']}",
                version_id=version_id,
                status=v["status"],
            )
        return v

    def replace_items(self, version_id: str, items: Sequence[Dict[str, Any]]) -> List[Row]:
        with self.store.transaction() as tx:
            repo = VersionRepository(tx)
            # state first: a published version rejects any payload
            repo._require_draft(version_id, "replace items of")
            rows = _validate_items(version_id, items)
            tx.delete(ITEMS, {"version_id": version_id})
            tx.insert(ITEMS, rows)
            tx.update(VERSIONS, {"id": version_id}, {"updated_at": now_iso()})
            return repo.get_version_items(version_id)

    def set_status(self, version_id: str, status: str) -> Row:
        with self.store.transaction() as tx:
            repo = VersionRepository(tx)
            v = repo.get_version(version_id)
            if (v["status"], status) not in _TRANSITIONS:
                raise InvalidTransitionError(
                    f"version {version_id}: transition {v['status']} -> {status} is not allowed",
                    version_id=version_id,
                    current=v["status"],
                    requested=status,
                )
            tx.update(VERSIONS, {"id": version_id}, {"status": status, "updated_at": now_iso()})
            return repo.get_version(version_id)

    def delete_version(self, version_id: str) -> None:
        with self.store.transaction() as tx:
            VersionRepository(tx)._require_draft(version_id, "delete")
            tx.delete(ITEMS, {"version_id": version_id})
            tx.delete(VERSIONS, {"id": version_id})

    # -------------------------
    # active pointer
    # -------------------------
    def get_active_pointer(self) -> Optional[Row]:
        rows = self.store.query("framework_active_version", {"id": 1})
        return rows[0] if rows else None

    def set_active_pointer(self, version_id: str) -> Row:
        row = {"id": 1, "version_id": version_id, "updated_at": now_iso()}
        with self.store.transaction() as tx:
            if VersionRepository(tx).get_active_pointer() is None:
                tx.insert("framework_active_version", [row])
            else:
                tx.update("framework_active_version", {"id": 1}, {"version_id": version_id, "updated_at": row["updated_at"]})
        return row
