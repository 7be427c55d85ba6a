"""
Shared test fixtures.

Every test gets a fresh in-memory store with pinned production config,
and service singletons are reset so nothing leaks between tests.
"""

import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from typing import Generator

from models.material import Material
from models.product import ProductRecipe
from models.production import ProductionConfig
from services.store import InMemoryStore, set_store
from tests.factories import MaterialFactory, RecipeFactory


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None):
        self.data = data or []
        self.count = len(self.data)


class MockSupabaseQuery:
    """Chainable query over one mock table. Filters apply on execute()."""

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> MockSupabaseResponse:
        rows = self._table.rows

        if self._action == "upsert":
            key = "id" if "id" in self._payload else "name"
            for i, row in enumerate(rows):
                if row.get(key) == self._payload[key]:
                    rows[i] = dict(self._payload)
                    break
            else:
                rows.append(dict(self._payload))
            return MockSupabaseResponse([self._payload])

        if self._action == "delete":
            deleted = [row for row in rows if self._matches(row)]
            self._table.rows = [row for row in rows if not self._matches(row)]
            return MockSupabaseResponse(deleted)

        selected = [dict(row) for row in rows if self._matches(row)]
        if self._limit is not None:
            selected = selected[:self._limit]
        return MockSupabaseResponse(selected)


class MockSupabaseTable:
    """Mock Supabase table backed by a list of rows."""

    def __init__(self):
        self.rows: list[dict] = []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self)

    def upsert(self, data: dict):
        return MockSupabaseQuery(self, "upsert", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            store = SupabaseStore(client=mock_supabase)
    """
    return MockSupabaseClient()


@pytest.fixture
def production_config() -> ProductionConfig:
    """Production constants pinned independently of the environment."""
    return ProductionConfig(
        fixed_startup_meters=500,
        reprint_meters=300,
        lamination1_meters=300,
        lamination2_meters=300,
        variable_scrap_percent=0.05,
    )


@pytest.fixture
def store(monkeypatch, production_config) -> Generator:
    """
    Fresh in-memory store installed as the active store.

    Usage:
        def test_something(store):
            store.save_record("materials", MaterialFactory.create())
    """
    memory_store = InMemoryStore()
    memory_store.save_config(production_config.model_dump(mode="json"))

    monkeypatch.setattr("services.config_service._config_service", None)
    monkeypatch.setattr("services.production_service._production_service", None)
    monkeypatch.setattr("services.recommendation_service._recommendation_service", None)
    monkeypatch.setattr("services.order_service._order_service", None)
    set_store(memory_store)

    yield memory_store

    set_store(None)


@pytest.fixture
def sample_recipe() -> ProductRecipe:
    """Single-layer BOPP 20μ reel: web 400mm, 4 tracks, 300mm cutoff."""
    return ProductRecipe(**RecipeFactory.create())


@pytest.fixture
def sample_material() -> Material:
    """BOPP 20μ roll 450mm wide with 1000kg on hand."""
    return Material(**MaterialFactory.create())


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(store):
    """
    Create FastAPI test client over the in-memory store.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/materials")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
