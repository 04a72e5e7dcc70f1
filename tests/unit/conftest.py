"""Fixtures for unit tests that run without a database."""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def scalar_result():
    """Build a result object whose scalar_one_or_none returns the given value."""

    def build(value):
        result = MagicMock()
        result.scalar_one_or_none.return_value = value
        return result

    return build
