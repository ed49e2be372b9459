# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src to sys.path so `import coachmem` works without installing.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'coachmem.db'}"


@pytest.fixture
def store(db_url):
    from coachmem.infrastructure.stores.memory_store import SqlAlchemyInsightStore

    s = SqlAlchemyInsightStore(db_url=db_url, auto_create_schema=True)
    yield s
    s.close()


@pytest.fixture
def memory(store):
    from coachmem.memory.service import CoachingMemory

    return CoachingMemory(store)
