"""Shared test fixtures for az-region-resolver tests."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from az_region_resolver.app import app
from az_region_resolver.resolver import RegionAliasResolver, get_resolver, load_table
from az_region_resolver.settings import get_settings


@pytest.fixture()
def client():
    """Create a FastAPI test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def _mock_credential():
    """Prevent real Azure credential calls in every test."""
    mock_token = MagicMock()
    mock_token.token = "fake-token"
    with patch("az_region_resolver.azure_api._auth.credential") as cred:
        cred.get_token.return_value = mock_token
        yield cred


@pytest.fixture(autouse=True)
def _clear_locations_cache():
    """Clear the ARM locations cache between tests."""
    from az_region_resolver.azure_api import _locations_cache

    _locations_cache.clear()
    yield
    _locations_cache.clear()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Run every test with default settings (no env overrides, no .env file)."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "DEFAULT_CLOUD",
        "ON_MISSING",
        "REGION_COLUMN",
        "TABLE_PATH",
        "HOST",
        "PORT",
    ):
        monkeypatch.delenv(f"AZ_REGION_RESOLVER_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    get_resolver.cache_clear()
    load_table.cache_clear()


@pytest.fixture()
def resolver() -> RegionAliasResolver:
    """Resolver over the packaged alias table."""
    return get_resolver()

