"""Pytest fixtures: a fresh SQLite file per test, a Store, seeded catalogues."""
from __future__ import annotations

import sys
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

import pytest
from fastapi.testclient import TestClient

from ssc_api.core.db import get_store, init_db, reset_engine
from ssc_api.core.store import Store
from ssc_api.modules.catalogue.repository import CatalogueRepository
from ssc_api.modules.framework_versions.service import VersionLifecycle


@pytest.fixture
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Store:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{(tmp_path / 'app.db').as_posix()}")
    reset_engine()
    init_db()
    yield get_store()
    reset_engine()


@pytest.fixture
def catalogue(store: Store) -> CatalogueRepository:
    return CatalogueRepository(store)


@pytest.fixture
def lifecycle(store: Store) -> VersionLifecycle:
    return VersionLifecycle(store, request_id="TEST")


@pytest.fixture
def shelter_catalogue(catalogue: CatalogueRepository) -> dict:
    """Shelter -> Adequacy -> (Space, Weatherproofing)."""
    shelter = catalogue.create_pillar(name="Shelter")
    adequacy = catalogue.create_theme(shelter["id"], name="Adequacy")
    space = catalogue.create_subtheme(adequacy["id"], name="Space")
    weather = catalogue.create_subtheme(adequacy["id"], name="Weatherproofing")
    return {"shelter": shelter, "adequacy": adequacy, "space": space, "weatherproofing": weather}


@pytest.fixture
def wide_catalogue(catalogue: CatalogueRepository) -> dict:
    """Two pillars; one theme without subthemes; one pillar without themes."""
    shelter = catalogue.create_pillar(name="Shelter", code="SH")
    adequacy = catalogue.create_theme(shelter["id"], name="Adequacy")
    tenure = catalogue.create_theme(shelter["id"], name="Tenure")
    space = catalogue.create_subtheme(adequacy["id"], name="Space")
    weather = catalogue.create_subtheme(adequacy["id"], name="Weatherproofing")
    wash = catalogue.create_pillar(name="WASH", code="WA")
    return {
        "shelter": shelter,
        "adequacy": adequacy,
        "tenure": tenure,
        "space": space,
        "weatherproofing": weather,
        "wash": wash,
    }


@pytest.fixture
def client(store: Store) -> TestClient:
    from ssc_api.main import app

    return TestClient(app)
