"""
conftest.py — Shared pytest fixtures for the BoQ Pareto backend test suite.

Three kinds of fixtures live here:
  - in-memory collaborator fakes for the analysis services,
  - an in-memory ``sqlite+aiosqlite`` engine (StaticPool) for repository tests,
  - a FastAPI TestClient wired to that engine and a temporary upload root.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``boq_pareto.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import os
import sys
from dataclasses import replace
from typing import AsyncGenerator

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any boq_pareto imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

# Environment must be set before boq_pareto.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from boq_pareto.config import STATUS_UPLOADED  # noqa: E402
from boq_pareto.models.boq_models import Project  # noqa: E402
from boq_pareto.services.errors import DecodeError, StorageError  # noqa: E402


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class FakeProjectStore:
    def __init__(self, *projects: Project):
        self.projects = {p.id: p for p in projects}
        self.status_calls = []

    async def get_project(self, project_id):
        return self.projects.get(project_id)

    async def set_status(self, project_id, status):
        self.status_calls.append((project_id, status))
        self.projects[project_id] = replace(self.projects[project_id], status=status)

    async def delete(self, project_id):
        self.projects.pop(project_id, None)


class FakeLineItemStore:
    """Mimics LineItemRepository ordering: total_cost DESC, then insertion id ASC."""

    def __init__(self):
        self.items = {}
        self._next_id = 1
        self.calls = []

    async def delete_all_for_project(self, project_id):
        self.calls.append(("delete_all", project_id))
        self.items.pop(project_id, None)

    async def insert(self, project_id, item):
        self.calls.append(("insert", project_id))
        stored = replace(item, id=self._next_id)
        self._next_id += 1
        self.items.setdefault(project_id, []).append(stored)
        return stored

    async def list_for_project(self, project_id, wbs_level=None):
        rows = [it for it in self.items.get(project_id, []) if wbs_level is None or it.wbs_level == wbs_level]
        return sorted(rows, key=lambda it: (-it.total_cost, it.id))

    async def sum_level_one_cost(self, project_id):
        return sum(it.total_cost for it in self.items.get(project_id, []) if it.wbs_level == 1)


class FakeInsightStore:
    def __init__(self):
        self.insights = {}
        self._next_id = 1

    async def delete_all_for_project(self, project_id):
        self.insights.pop(project_id, None)

    async def insert(self, project_id, insight):
        stored = replace(insight, id=self._next_id)
        self._next_id += 1
        self.insights.setdefault(project_id, []).append(stored)
        return stored

    async def list_for_project(self, project_id):
        return sorted(
            self.insights.get(project_id, []),
            key=lambda i: (i.potential_savings is None, -(i.potential_savings or 0), i.id),
        )


class FakeFileStore:
    def __init__(self, files=None):
        self.files = dict(files or {})

    def download(self, path):
        if path not in self.files:
            raise StorageError(f"missing {path}")
        return self.files[path]


class FakeDecoder:
    """Returns preset rows; raises DecodeError when constructed with ``fail=True``."""

    def __init__(self, rows=None, fail=False):
        self.rows = rows or []
        self.fail = fail

    def decode(self, data, file_name=None):
        if self.fail:
            raise DecodeError("corrupt workbook")
        return list(self.rows)


def make_project(project_id="p1", status=STATUS_UPLOADED, file_name="boq.csv") -> Project:
    return Project(
        id=project_id,
        name="Tower A",
        file_name=file_name,
        file_path=f"{project_id}/{file_name}",
        status=status,
    )


@pytest.fixture
def project():
    return make_project()


@pytest.fixture
def project_store(project):
    return FakeProjectStore(project)


@pytest.fixture
def line_item_store():
    return FakeLineItemStore()


@pytest.fixture
def insight_store():
    return FakeInsightStore()


# ---------------------------------------------------------------------------
# In-memory database (SQLite, one shared connection)
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    from boq_pareto.db import Base
    from boq_pareto.models import orm_models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def upload_root(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def test_client(upload_root):
    """
    TestClient with ``get_db`` bound to a fresh in-memory database and the
    file store rooted in a temporary directory.

    The schema is built lazily on the first request, inside the client's
    event loop.
    """
    from fastapi.testclient import TestClient

    from boq_pareto.api.deps import get_file_store
    from boq_pareto.db import Base, get_db
    from boq_pareto.main import app
    from boq_pareto.models import orm_models  # noqa: F401
    from boq_pareto.services.file_store import LocalFileStore

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    schema_ready = {"done": False}

    async def override_get_db():
        if not schema_ready["done"]:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            schema_ready["done"] = True
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: LocalFileStore(upload_root)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
def reset_perf_tracker():
    from boq_pareto.services.perf_monitor import tracker
    tracker.reset()
    yield
