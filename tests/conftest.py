"""
Shared fixtures for distbloom tests
"""

from unittest.mock import MagicMock

import pytest

from distbloom import DistBloomFilter


# ============================================================================
# Filter Fixtures
# ============================================================================

@pytest.fixture
def small_filter():
    """Filter with seed "seed", n=10, p=0.5 (m=15, k=2)."""
    return DistBloomFilter(b"seed", expected_count=10, fp_rate=0.5)


@pytest.fixture
def large_filter():
    """Filter sized for 1000 elements at 1% false positives."""
    return DistBloomFilter(b"shared-seed", expected_count=1000, fp_rate=0.01)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_cursor():
    """Cursor returned by mock_conn.cursor() inside a with block."""
    return MagicMock()


@pytest.fixture
def mock_conn(mock_cursor):
    """psycopg2 connection whose cursor() context manager yields mock_cursor."""
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = mock_cursor
    return conn
