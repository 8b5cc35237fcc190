import pytest

from ssc_api.core.errors import ConstraintError, InvalidStateError, InvalidTransitionError, NotFoundError, ValidationError
from ssc_api.core.ids import new_ulid
from ssc_api.modules.framework_versions.repository import VersionRepository


@pytest.fixture
def versions(store):
    return VersionRepository(store)


def _items(cat):
    p, t, s = cat["shelter"]["id"], cat["adequacy"]["id"], cat["space"]["id"]
    return [
        {"pillar_id": p, "theme_id": None, "subtheme_id": None, "ref_code": "P1", "sort_order": 1_000_000},
        {"pillar_id": p, "theme_id": t, "subtheme_id": None, "ref_code": "P1.T1", "sort_order": 1_001_000},
        {"pillar_id": p, "theme_id": t, "subtheme_id": s, "ref_code": "P1.T1.S1", "sort_order": 1_001_001},
    ]


def test_create_version_starts_as_empty_draft(versions):
    v = versions.create_version("  2026 draft ")
    assert v["status"] == "draft"
    assert v["name"] == "2026 draft"
    assert versions.get_version_items(v["id"]) == []


def test_create_version_requires_name(versions):
    with pytest.raises(ValidationError):
        versions.create_version("")


def test_list_versions_newest_first(versions):
    a = versions.create_version("a")
    b = versions.create_version("b")
    c = versions.create_version("c")
    assert [v["id"] for v in versions.list_versions()] == [c["id"], b["id"], a["id"]]


def test_unknown_version_is_not_found(versions):
    with pytest.raises(NotFoundError) as ei:
        versions.get_version_items("nope")
    assert ei.value.details == {"version_id": "nope"}
    assert "nope" in str(ei.value)


def test_replace_items_replaces_whole_set(versions, shelter_catalogue):
    v = versions.create_version("v")
    versions.replace_items(v["id"], _items(shelter_catalogue))
    out = versions.replace_items(v["id"], _items(shelter_catalogue)[:1])

    assert [r["ref_code"] for r in out] == ["P1"]
    assert [r["ref_code"] for r in versions.get_version_items(v["id"])] == ["P1"]


def test_items_come_back_in_sort_order(versions, shelter_catalogue):
    v = versions.create_version("v")
    versions.replace_items(v["id"], list(reversed(_items(shelter_catalogue))))
    assert [r["ref_code"] for r in versions.get_version_items(v["id"])] == ["P1", "P1.T1", "P1.T1.S1"]


@pytest.mark.parametrize(
    "mutate",
    [
        lambda rows: rows + [dict(rows[1], ref_code="P1.T2", sort_order=1_002_000)],  # duplicate triple
        lambda rows: [dict(rows[0], pillar_id=None)] + rows[1:],  # missing pillar
        lambda rows: rows[:2] + [dict(rows[2], theme_id=None, ref_code="P1.S1")],  # subtheme without theme
        lambda rows: rows[:2] + [dict(rows[2], ref_code="P1.T2")],  # code depth != row level
        lambda rows: rows[:2] + [dict(rows[2], sort_order=5)],  # sort_order does not encode code
        lambda rows: rows[:2] + [dict(rows[2], ref_code="garbage")],
        lambda rows: [rows[0], dict(rows[1], ref_code="P2.T1", sort_order=2_001_000)],  # theme code under another pillar
        lambda rows: rows[:2] + [dict(rows[2], ref_code="P1.T2.S1", sort_order=1_002_001)],  # subtheme code under another theme
    ],
)
def test_replace_items_rejects_invalid_rows(versions, shelter_catalogue, mutate):
    v = versions.create_version("v")
    with pytest.raises(ValidationError):
        versions.replace_items(v["id"], mutate(_items(shelter_catalogue)))
    assert versions.get_version_items(v["id"]) == []


def test_replace_items_on_published_version_is_invalid_state(versions, shelter_catalogue):
    v = versions.create_version("v")
    versions.replace_items(v["id"], _items(shelter_catalogue))
    versions.set_status(v["id"], "published")

    with pytest.raises(InvalidStateError):
        versions.replace_items(v["id"], _items(shelter_catalogue))
    with pytest.raises(InvalidStateError):
        versions.replace_items(v["id"], [{"pillar_id": None, "ref_code": "nonsense"}])
    assert len(versions.get_version_items(v["id"])) == 3


@pytest.mark.parametrize("start,target", [("draft", "draft"), ("published", "published"), ("published", "draft"), ("draft", "archived")])
def test_set_status_rejects_everything_but_publish(versions, start, target):
    v = versions.create_version("v")
    if start == "published":
        versions.set_status(v["id"], "published")
    with pytest.raises(InvalidTransitionError):
        versions.set_status(v["id"], target)


def test_set_status_publishes_draft(versions):
    v = versions.create_version("v")
    assert versions.set_status(v["id"], "published")["status"] == "published"


def test_delete_version_draft_only(versions, shelter_catalogue):
    draft = versions.create_version("draft")
    versions.replace_items(draft["id"], _items(shelter_catalogue))
    versions.delete_version(draft["id"])
    with pytest.raises(NotFoundError):
        versions.get_version(draft["id"])
    assert versions.store.query("framework_version_items", {"version_id": draft["id"]}) == []

    published = versions.create_version("published")
    versions.set_status(published["id"], "published")
    with pytest.raises(InvalidStateError):
        versions.delete_version(published["id"])


def test_rename_version(versions):
    v = versions.create_version("old")
    versions.set_status(v["id"], "published")
    assert versions.rename_version(v["id"], "new")["name"] == "new"
    with pytest.raises(ValidationError):
        versions.rename_version(v["id"], " ")


def test_prefix_check_leaves_orphans_to_the_tree_builder(versions, shelter_catalogue):
    rows = _items(shelter_catalogue)
    v = versions.create_version("v")
    # theme row without its pillar row
    out = versions.replace_items(v["id"], [dict(rows[1], ref_code="P2.T1", sort_order=2_001_000)])
    assert [r["ref_code"] for r in out] == ["P2.T1"]


def test_published_items_are_frozen_at_the_database(versions, shelter_catalogue):
    v = versions.create_version("v")
    versions.replace_items(v["id"], _items(shelter_catalogue)[:1])
    versions.set_status(v["id"], "published")

    extra = dict(_items(shelter_catalogue)[1], id=new_ulid(), version_id=v["id"])
    with pytest.raises(ConstraintError):
        versions.store.insert("framework_version_items", [extra])
    with pytest.raises(ConstraintError):
        versions.store.delete("framework_version_items", {"version_id": v["id"]})
    assert len(versions.get_version_items(v["id"])) == 1


def test_subtheme_row_without_theme_is_refused_at_the_database(versions, shelter_catalogue):
    v = versions.create_version("v")
    row = dict(_items(shelter_catalogue)[2], id=new_ulid(), version_id=v["id"], theme_id=None, ref_code="P1.S1")
    with pytest.raises(ConstraintError):
        versions.store.insert("framework_version_items", [row])
