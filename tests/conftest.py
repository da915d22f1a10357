"""
Shared fixtures: mocked database session and callers of each role.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

import plastic_clever.models  # noqa: F401 - registers every mapper
from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.cache import clear_memory_cache
from plastic_clever.core.rate_limit import reset_memory_store


@pytest.fixture(autouse=True)
def _reset_in_memory_state():
    reset_memory_store()
    clear_memory_cache()
    yield
    reset_memory_store()
    clear_memory_cache()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.rollback = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def admin_user():
    return CurrentUser(id="admin-1", email="admin@test.com", role="admin", name="Ada Admin")


@pytest.fixture
def partner_user():
    return CurrentUser(id="partner-1", email="partner@test.com", role="partner", name="Pat Partner")


@pytest.fixture
def teacher_user():
    return CurrentUser(id="teacher-1", email="teacher@test.com", role="teacher", name="Tom Teacher")
