"""
Shared fixtures: temporary databases and stores backed by test embedding providers.
"""

import pytest
import pytest_asyncio

from parasocial_memory.core.db import init_db
from parasocial_memory.core.store import MemoryStore

from helpers import ConceptEmbedding, FailingEmbedding


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "memory.db")


@pytest.fixture
def initialized_db(db_path):
    init_db(db_path, 2)
    return db_path


@pytest_asyncio.fixture
async def store(db_path):
    """Store with a working embedding provider."""
    async with MemoryStore(db_path=db_path, version=2, provider=ConceptEmbedding()) as s:
        yield s


@pytest_asyncio.fixture
async def offline_store(db_path):
    """Store whose embedding worker fails every request."""
    async with MemoryStore(db_path=db_path, version=2, provider=FailingEmbedding()) as s:
        yield s
