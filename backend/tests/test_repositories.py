"""
test_repositories.py — SQLAlchemy repositories on in-memory SQLite (aiosqlite, StaticPool).
"""

import pytest

from boq_pareto.config import STATUS_PROCESSED, STATUS_UPLOADED
from boq_pareto.db.repositories import InsightRepository, LineItemRepository, ProjectRepository
from boq_pareto.models.boq_models import Insight, LineItem


def _item(code, cost, level=1, parent=None):
    return LineItem(
        item_code=code, description=f"Item {code}", quantity=2.0, unit="m3",
        unit_rate=cost / 2, total_cost=cost, wbs_level=level, parent_item_code=parent,
        cumulative_cost=cost, cumulative_percentage=50.0, is_pareto_critical=True,
    )


def _insight(kind, saving):
    return Insight(
        insight_type=kind, title=kind.title(), description="d", recommendation="r",
        potential_savings=saving, confidence_score=0.7,
    )


@pytest.fixture
async def project_id(db_session):
    repo = ProjectRepository(db_session)
    project = await repo.create("proj-1", "Tower A", "boq.csv", "proj-1/boq.csv")
    await db_session.commit()
    return project.id


class TestProjectRepository:

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session, project_id):
        project = await ProjectRepository(db_session).get_project(project_id)
        assert project.name == "Tower A"
        assert project.status == STATUS_UPLOADED
        assert project.file_path == "proj-1/boq.csv"
        assert project.uploaded_at is not None

    @pytest.mark.asyncio
    async def test_missing(self, db_session):
        assert await ProjectRepository(db_session).get_project("nope") is None

    @pytest.mark.asyncio
    async def test_set_status(self, db_session, project_id):
        repo = ProjectRepository(db_session)
        await repo.set_status(project_id, STATUS_PROCESSED)
        assert (await repo.get_project(project_id)).status == STATUS_PROCESSED

    @pytest.mark.asyncio
    async def test_list_all(self, db_session, project_id):
        repo = ProjectRepository(db_session)
        await repo.create("proj-2", "Tower B", "b.csv", "proj-2/b.csv")
        projects = await repo.list_all()
        assert {p.id for p in projects} == {"proj-1", "proj-2"}

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session, project_id):
        items = LineItemRepository(db_session)
        insights = InsightRepository(db_session)
        await items.insert(project_id, _item("1", 100))
        await insights.insert(project_id, _insight("cost_concentration", 10))

        await ProjectRepository(db_session).delete(project_id)

        assert await ProjectRepository(db_session).get_project(project_id) is None
        assert await items.list_for_project(project_id) == []
        assert await insights.list_for_project(project_id) == []


class TestLineItemRepository:

    @pytest.mark.asyncio
    async def test_insert_assigns_id(self, db_session, project_id):
        stored = await LineItemRepository(db_session).insert(project_id, _item("1.2", 300, 2, "1"))
        assert stored.id is not None
        assert stored.parent_item_code == "1"
        assert stored.is_pareto_critical is True

    @pytest.mark.asyncio
    async def test_list_ordered_by_cost_then_id(self, db_session, project_id):
        repo = LineItemRepository(db_session)
        for code, cost in [("a", 50), ("b", 100), ("c", 50)]:
            await repo.insert(project_id, _item(code, cost))
        rows = await repo.list_for_project(project_id)
        assert [r.item_code for r in rows] == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_filter_by_level_and_level_one_sum(self, db_session, project_id):
        """Level-1 sum = 400 + 600; the 300 child is excluded."""
        repo = LineItemRepository(db_session)
        await repo.insert(project_id, _item("1", 400))
        await repo.insert(project_id, _item("1.1", 300, 2, "1"))
        await repo.insert(project_id, _item("2", 600))
        assert [r.item_code for r in await repo.list_for_project(project_id, wbs_level=2)] == ["1.1"]
        assert await repo.sum_level_one_cost(project_id) == pytest.approx(1000.0)

    @pytest.mark.asyncio
    async def test_sum_without_items_is_zero(self, db_session, project_id):
        assert await LineItemRepository(db_session).sum_level_one_cost(project_id) == 0.0

    @pytest.mark.asyncio
    async def test_delete_all_for_project(self, db_session, project_id):
        repo = LineItemRepository(db_session)
        await repo.insert(project_id, _item("1", 400))
        await repo.delete_all_for_project(project_id)
        assert await repo.list_for_project(project_id) == []


class TestInsightRepository:

    @pytest.mark.asyncio
    async def test_ordered_by_savings_nulls_last(self, db_session, project_id):
        repo = InsightRepository(db_session)
        await repo.insert(project_id, _insight("a", None))
        await repo.insert(project_id, _insight("b", 50))
        await repo.insert(project_id, _insight("c", 200))
        rows = await repo.list_for_project(project_id)
        assert [r.insight_type for r in rows] == ["c", "b", "a"]
