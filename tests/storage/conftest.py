"""
Conftest for storage tests - minimal setup without database.
"""
import pytest


# Storage tests only touch the filesystem; skip the Alembic session fixture
@pytest.fixture(scope="session")
def setup_database():
    pass
