"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time; tests never talk to a real project
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Generator, Optional

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """What execute() returns: .data and .count."""

    def __init__(self, data=None, count: Optional[int] = None):
        self.data = data if data is not None else []
        if count is None:
            count = len(self.data) if isinstance(self.data, list) else 1
        self.count = count


class MockSupabaseQuery:
    """Chainable select query over a fixed row list."""

    def __init__(self, rows: list, error: Optional[Exception] = None):
        self._rows = rows
        self._error = error
        self.filters: list[tuple] = []

    def select(self, *args, **kwargs):
        return self

    def in_(self, column, values):
        # Filter for real so fallback lookups only see requested rows
        self.filters.append(("in", column, list(values)))
        self._rows = [row for row in self._rows if row.get(column) in values]
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(data=self._rows)


class MockSupabaseRpc:
    """Pending RPC call; execute() returns the configured result or raises."""

    def __init__(self, result):
        self._result = result

    def execute(self) -> MockSupabaseResponse:
        if isinstance(self._result, Exception):
            raise self._result
        if callable(self._result):
            return MockSupabaseResponse(data=self._result())
        return MockSupabaseResponse(data=self._result)


class MockSupabaseClient:
    """Stand-in for supabase.Client covering table().select() and rpc()."""

    def __init__(self):
        self._tables: dict[str, tuple[list, Optional[Exception]]] = {}
        self._rpcs: dict = {}
        self.rpc_calls: list[tuple[str, dict]] = []

    def set_table_data(self, table_name: str, rows: list):
        self._tables[table_name] = (rows, None)

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = ([], error)

    def set_rpc_result(self, name: str, result):
        """
        Configure an RPC.

        result may be data, an exception to raise, or a zero-arg callable
        producing data.
        """
        self._rpcs[name] = result

    def table(self, name: str) -> MockSupabaseQuery:
        rows, error = self._tables.get(name, ([], None))
        return MockSupabaseQuery(list(rows), error)

    def rpc(self, name: str, params: Optional[dict] = None) -> MockSupabaseRpc:
        self.rpc_calls.append((name, params or {}))
        return MockSupabaseRpc(self._rpcs.get(name, []))

    def calls_to(self, name: str) -> list[dict]:
        """Params of every call made to one RPC."""
        return [params for rpc_name, params in self.rpc_calls if rpc_name == name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_rpc_result("validate_bulk_skus", [...])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service created while the fixture is active gets the mock.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_validation_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.cart_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase


@pytest.fixture
def pricing_rpc(mock_supabase) -> MockSupabaseClient:
    """Secure pricing RPC that answers 9.50 per unit."""
    mock_supabase.set_rpc_result(
        "calculate_secure_pricing",
        {"unit_price": 9.5, "line_total": 9.5}
    )
    return mock_supabase


@pytest.fixture
def sample_validation_rows() -> list:
    """validate_bulk_skus rows as the RPC returns them."""
    return [
        {
            "part_number": "ABC123",
            "part_id": "part-uuid-1",
            "description": "Door gasket, 24in",
            "price": 10.0,
            "discounted_price": 9.5,
            "in_stock": True,
            "status": "ok",
            "message": None,
        },
        {
            "part_number": "XYZ-9",
            "part_id": "part-uuid-2",
            "description": "Thermostat kit",
            "price": 42.0,
            "discounted_price": 40.0,
            "in_stock": False,
            "status": "warn",
            "message": "Backordered, ships in 2 weeks",
        },
    ]


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Sessions, limiter windows and service singletons are process-global."""
    from services import bulk_session_store
    import services.rate_limit_service as rate_limit_service
    import services.cart_service as cart_service
    import services.catalog_validation_service as catalog_validation_service

    yield

    bulk_session_store.clear_sessions()
    rate_limit_service._bulk_limiter = None
    cart_service._cart_service = None
    catalog_validation_service._catalog_validation_service = None


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    FastAPI test client whose services use the mock Supabase client.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_rpc_result("validate_bulk_skus", [...])
            response = test_client_with_mock_db.post("/api/bulk-orders", json={...})
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.cart_service import CartService, get_cart_service
    from services.catalog_validation_service import (
        CatalogValidationService,
        get_catalog_validation_service,
    )

    cart = CartService(client=mock_db)
    validator = CatalogValidationService(client=mock_db)
    app.dependency_overrides[get_cart_service] = lambda: cart
    app.dependency_overrides[get_catalog_validation_service] = lambda: validator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
