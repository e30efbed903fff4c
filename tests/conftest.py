"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from fastapi.testclient import TestClient

from catalog.app import create_app
from catalog.config import Settings
from catalog.resolver import ResolutionContext
from fakes import FakeRest, FakeStore


@pytest.fixture
def catalog_tables() -> Dict[str, List[Dict[str, Any]]]:
    """A small label catalog."""
    return {
        "artists": [
            {"id": "artist-42", "name": "Monsieur Minimal", "spotify_id": "37BAm9SFMmFBFoV5VjdUGm", "label_id": "buildit-records"},
            {"id": "artist-7", "name": "George Lesley", "spotify_id": "2mpeljBig2IXLXRAFO9AAs", "label_id": "buildit-tech"},
            {"id": "artist-8", "name": "Casimann!", "spotify_id": None, "label_id": "buildit-deep"},
            {"id": "artist-9", "name": "DJ", "spotify_id": None, "label_id": "buildit-deep"},
        ],
        "releases": [
            {"id": "r1", "title": "EP One", "artist_id": "artist-42", "label_id": "buildit-records", "spotify_id": "sp-r1"},
            {"id": "r2", "title": "Casimann Remixes", "artist_id": None, "label_id": "buildit-deep"},
            {"id": "r3", "title": "Tech Sessions", "artist_id": None, "label_id": "buildit-tech"},
        ],
        "labels": [
            {"id": "buildit-records", "name": "Build It Records"},
            {"id": "buildit-tech", "name": "Build It Tech"},
            {"id": "buildit-deep", "name": "Build It Deep"},
        ],
        "release_artists": [
            {"release_id": "r3", "artist_id": "artist-7"},
        ],
        "tracks": [
            {"id": "t1", "title": "Intro", "release_id": "r1", "label_id": "buildit-records", "spotify_id": "sp-t1"},
            {"id": "t2", "title": "Outro", "release_id": "r1", "label_id": "buildit-records", "spotify_id": "sp-t2"},
        ],
    }


@pytest.fixture
def fake_store(catalog_tables) -> FakeStore:
    return FakeStore(tables=catalog_tables, procedures={"get_artist_releases": lambda artist_id_param: []})


@pytest.fixture
def fake_rest() -> FakeRest:
    return FakeRest()


@pytest.fixture
def context(fake_store, fake_rest) -> ResolutionContext:
    return ResolutionContext(store=fake_store, rest=fake_rest)


@pytest.fixture
def settings() -> Settings:
    """Settings with timeouts and rate limiting switched off."""
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="test-key",
        strategy_timeout=None,
        resolve_deadline=None,
        rate_limit_per_minute=0,
    )


@pytest.fixture
def app(settings, fake_store, fake_rest):
    return create_app(settings, store=fake_store, rest=fake_rest)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
