"""
Pytest configuration and shared fixtures for sheetsync tests.

This module provides shared fixtures and utilities for testing all sheetsync components.
"""

import tempfile
from contextlib import asynccontextmanager
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml
from aioresponses import aioresponses

from sheetsync.config import (
    GoogleSheetsConfig,
    MetadataStoreConfig,
    SheetsyncConfig,
    SyncConfig,
)
from sheetsync.columns import ColumnDescriptor, ColumnType, SheetColumn


# ============================================================================
# Test Configuration Fixtures
# ============================================================================

@pytest.fixture
def google_config() -> GoogleSheetsConfig:
    """Google Sheets configuration without retries, for fast failure tests."""
    return GoogleSheetsConfig(
        access_token="test-token",
        max_retries=0,
        retry_delay=0.0,
        timeout=5,
    )


@pytest.fixture
def sample_config_data() -> Dict[str, Any]:
    """Raw configuration mapping as it would appear in YAML."""
    return {
        "service_name": "sheetsync-test",
        "debug": False,
        "google": {
            "access_token": "test-token",
            "sample_rows": 5,
            "max_retries": 2,
        },
        "metadata_store": {
            "connection": {
                "host": "localhost",
                "port": 5432,
                "database": "sheetsync_test",
                "user": "test_user",
                "password": "test_password",
            },
            "schema_name": "sheetsync",
            "table_name": "column_metadata",
            "min_pool_size": 1,
            "max_pool_size": 3,
        },
        "sync": {
            "drop_removed_on_apply": True,
            "infer_types_on_init": True,
        },
        "logging": {"level": "INFO"},
    }


@pytest.fixture
def sample_sheetsync_config(sample_config_data) -> SheetsyncConfig:
    """Complete sheetsync configuration for testing."""
    return SheetsyncConfig(**sample_config_data)


@pytest.fixture
def temp_config_file(sample_config_data) -> str:
    """Temporary configuration file for testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(sample_config_data, f)
        return f.name


@pytest.fixture
def store_config(sample_config_data) -> MetadataStoreConfig:
    return MetadataStoreConfig(**sample_config_data["metadata_store"])


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


# ============================================================================
# Column Fixtures
# ============================================================================

@pytest.fixture
def saved_columns() -> List[ColumnDescriptor]:
    """Saved descriptors for a three-column sheet with user customizations."""
    return [
        ColumnDescriptor(
            id="col-name",
            name="Name",
            type=ColumnType.TEXT,
            description="Full name",
            original_index=0,
        ),
        ColumnDescriptor(
            id="col-email",
            name="Email",
            type=ColumnType.EMAIL,
            description="Work email",
            original_index=1,
        ),
        ColumnDescriptor(
            id="col-status",
            name="Status",
            type=ColumnType.DROPDOWN,
            options=["Open", "Closed"],
            original_index=2,
        ),
    ]


@pytest.fixture
def current_columns() -> List[SheetColumn]:
    """Live sheet columns matching saved_columns."""
    return [
        SheetColumn(name="Name"),
        SheetColumn(name="Email", type=ColumnType.EMAIL),
        SheetColumn(name="Status"),
    ]


@pytest.fixture
def id_factory():
    """Deterministic id factory: new-1, new-2, ..."""
    counter = {"value": 0}

    def next_id() -> str:
        counter["value"] += 1
        return f"new-{counter['value']}"

    return next_id


# ============================================================================
# Mock API Fixtures
# ============================================================================

@pytest.fixture
def mock_sheets_api():
    """Mock Google Sheets API using aioresponses."""
    with aioresponses() as m:
        yield m


# ============================================================================
# Database Test Fixtures
# ============================================================================

@pytest.fixture
def mock_database_connection():
    """Mock asyncpg connection for testing."""
    conn = AsyncMock()
    conn.execute = AsyncMock()
    conn.fetchval = AsyncMock()
    return conn


@pytest.fixture
def mock_pool(mock_database_connection):
    """Mock ConnectionPool whose acquire() yields mock_database_connection."""
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield mock_database_connection

    pool.acquire = acquire
    pool.initialize = AsyncMock()
    pool.close = AsyncMock()
    pool.execute = AsyncMock()
    pool.fetchval = AsyncMock()
    pool.get_stats = MagicMock(return_value={"size": 1, "free": 1, "acquired": 0, "initialized": True})
    return pool
