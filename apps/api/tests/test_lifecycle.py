import pytest

from ssc_api.core.errors import (
    IncoherentTreeError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ssc_api.modules.framework_versions.repository import VersionRepository
from ssc_api.modules.framework_versions.service import derive_items


def _codes(lifecycle, version_id):
    return [(r["ref_code"], r["pillar_id"], r["theme_id"], r["subtheme_id"]) for r in lifecycle.get_version_items(version_id)]


def test_draft_from_catalogue_reproduces_catalogue(lifecycle, catalogue, wide_catalogue):
    v = lifecycle.create_draft_from_catalogue("v1")
    assert v["status"] == "draft"

    tree = lifecycle.build_tree(v["id"])
    expected = catalogue.catalogue_tree()
    assert [p["id"] for p in tree] == [p["id"] for p in expected]
    for got, want in zip(tree, expected):
        assert [t["id"] for t in got["themes"]] == [t["id"] for t in want["themes"]]
        for gt, wt in zip(got["themes"], want["themes"]):
            assert [s["id"] for s in gt["subthemes"]] == [s["id"] for s in wt["subthemes"]]


def test_draft_from_catalogue_follows_catalogue_order(lifecycle, catalogue, wide_catalogue):
    catalogue.reorder_pillars([wide_catalogue["wash"]["id"], wide_catalogue["shelter"]["id"]])
    v = lifecycle.create_draft_from_catalogue("v1")
    assert [p["name"] for p in lifecycle.build_tree(v["id"])] == ["WASH", "Shelter"]


def test_draft_from_empty_catalogue(lifecycle):
    v = lifecycle.create_draft_from_catalogue("empty")
    assert lifecycle.get_version_items(v["id"]) == []


def test_blank_draft(lifecycle, shelter_catalogue):
    v = lifecycle.create_blank_draft("blank")
    assert lifecycle.build_tree(v["id"]) == []


def test_clone_copies_membership_and_rederives_codes(lifecycle, wide_catalogue):
    w = wide_catalogue
    source = lifecycle.create_blank_draft("source")
    # a subset of the catalogue, not in catalogue order
    lifecycle.save_tree(
        source["id"],
        [
            {"pillar_id": w["wash"]["id"], "themes": []},
            {"pillar_id": w["shelter"]["id"], "themes": [{"theme_id": w["tenure"]["id"], "subthemes": []}]},
        ],
    )
    VersionRepository(lifecycle.store).set_status(source["id"], "published")

    clone = lifecycle.clone_version(source["id"], "copy")

    assert clone["status"] == "draft"
    assert clone["name"] == "copy"
    assert _codes(lifecycle, clone["id"]) == _codes(lifecycle, source["id"])


def test_clone_replaces_inherited_gaps(lifecycle, shelter_catalogue):
    p = shelter_catalogue["shelter"]["id"]
    source = lifecycle.create_blank_draft("gappy")
    VersionRepository(lifecycle.store).replace_items(
        source["id"],
        [{"pillar_id": p, "theme_id": None, "subtheme_id": None, "ref_code": "P3", "sort_order": 3_000_000}],
    )

    clone = lifecycle.clone_version(source["id"], "clean")
    assert [r["ref_code"] for r in lifecycle.get_version_items(clone["id"])] == ["P1"]


def test_clone_of_unknown_version(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.clone_version("nope", "copy")
    assert lifecycle.list_versions() == []


def test_publish_is_one_shot(lifecycle, shelter_catalogue):
    v = lifecycle.create_draft_from_catalogue("v1")

    assert lifecycle.publish_version(v["id"])["status"] == "published"
    with pytest.raises(InvalidTransitionError):
        lifecycle.publish_version(v["id"])


def test_publish_refuses_incoherent_tree(lifecycle, shelter_catalogue):
    p, t, s = (shelter_catalogue[k]["id"] for k in ("shelter", "adequacy", "space"))
    v = lifecycle.create_blank_draft("broken")
    VersionRepository(lifecycle.store).replace_items(
        v["id"],
        [
            {"pillar_id": p, "ref_code": "P1", "sort_order": 1_000_000},
            {"pillar_id": p, "theme_id": t, "subtheme_id": s, "ref_code": "P1.T1.S1", "sort_order": 1_001_001},
        ],
    )

    with pytest.raises(IncoherentTreeError):
        lifecycle.publish_version(v["id"])
    assert lifecycle.get_version(v["id"])["status"] == "draft"


def test_published_version_items_are_frozen(lifecycle, shelter_catalogue):
    v = lifecycle.create_draft_from_catalogue("v1")
    lifecycle.publish_version(v["id"])

    with pytest.raises(InvalidStateError):
        lifecycle.save_tree(v["id"], [{"pillar_id": "does-not-exist", "themes": []}])
    with pytest.raises(InvalidStateError):
        lifecycle.delete_version(v["id"])


def test_save_tree_derives_codes(lifecycle, wide_catalogue):
    w = wide_catalogue
    v = lifecycle.create_blank_draft("edit")
    items = lifecycle.save_tree(
        v["id"],
        [
            {
                "pillar_id": w["shelter"]["id"],
                "themes": [{"theme_id": w["adequacy"]["id"], "subthemes": [w["weatherproofing"]["id"], w["space"]["id"]]}],
            }
        ],
    )

    assert [(r["ref_code"], r["subtheme_id"]) for r in items] == [
        ("P1", None),
        ("P1.T1", None),
        ("P1.T1.S1", w["weatherproofing"]["id"]),
        ("P1.T1.S2", w["space"]["id"]),
    ]


def test_save_tree_checks_catalogue_membership(lifecycle, wide_catalogue):
    w = wide_catalogue
    v = lifecycle.create_blank_draft("edit")

    with pytest.raises(ValidationError):
        lifecycle.save_tree(v["id"], [{"pillar_id": w["wash"]["id"], "themes": [{"theme_id": w["adequacy"]["id"], "subthemes": []}]}])
    with pytest.raises(ValidationError):
        lifecycle.save_tree(
            v["id"],
            [{"pillar_id": w["shelter"]["id"], "themes": [{"theme_id": w["tenure"]["id"], "subthemes": [w["space"]["id"]]}]}],
        )
    with pytest.raises(NotFoundError):
        lifecycle.save_tree(v["id"], [{"pillar_id": "missing", "themes": []}])
    with pytest.raises(ValidationError):
        lifecycle.save_tree(v["id"], [{"pillar_id": w["wash"]["id"]}, {"pillar_id": w["wash"]["id"]}])


def test_activate_requires_published(lifecycle, shelter_catalogue):
    assert lifecycle.get_active_version() is None
    v1 = lifecycle.create_draft_from_catalogue("v1")

    with pytest.raises(InvalidStateError):
        lifecycle.activate_version(v1["id"])

    lifecycle.publish_version(v1["id"])
    assert lifecycle.get_active_version() is None  # publishing alone does not activate

    lifecycle.activate_version(v1["id"])
    assert lifecycle.get_active_version()["id"] == v1["id"]

    v2 = lifecycle.clone_version(v1["id"], "v2")
    lifecycle.publish_version(v2["id"])
    lifecycle.activate_version(v2["id"])
    assert lifecycle.get_active_version()["id"] == v2["id"]


def test_delete_draft(lifecycle, shelter_catalogue):
    v = lifecycle.create_draft_from_catalogue("v1")
    lifecycle.delete_version(v["id"])
    with pytest.raises(NotFoundError):
        lifecycle.get_version(v["id"])


def test_derive_items_orphans_and_capacity():
    with pytest.raises(IncoherentTreeError):
        derive_items([("p", "t", None)])
    with pytest.raises(IncoherentTreeError):
        derive_items([("p", None, None), ("p", "t", "s")])

    entries = [("p", None, None)] + [("p", f"t{i}", None) for i in range(1000)]
    with pytest.raises(ValidationError):
        derive_items(entries)

    out = derive_items(entries[:1000])
    assert out[-1]["ref_code"] == "P1.T999"
    assert out[-1]["sort_order"] == 1_999_000


def test_clone_of_incoherent_version_names_the_source(lifecycle, shelter_catalogue):
    p, t, s = (shelter_catalogue[k]["id"] for k in ("shelter", "adequacy", "space"))
    source = lifecycle.create_blank_draft("broken")
    VersionRepository(lifecycle.store).replace_items(
        source["id"],
        [
            {"pillar_id": p, "ref_code": "P1", "sort_order": 1_000_000},
            {"pillar_id": p, "theme_id": t, "subtheme_id": s, "ref_code": "P1.T1.S1", "sort_order": 1_001_001},
        ],
    )

    with pytest.raises(IncoherentTreeError) as ei:
        lifecycle.clone_version(source["id"], "copy")
    assert ei.value.details["source_version_id"] == source["id"]
    assert source["id"] in ei.value.message
    assert [v["id"] for v in lifecycle.list_versions()] == [source["id"]]
