"""
SQLAlchemy repositories backing the analysis collaborators.

Each repository works inside the caller's ``AsyncSession`` and only flushes;
committing is left to the route (or ``get_db``) that owns the session.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.config import STATUS_UPLOADED
from boq_pareto.models.boq_models import Insight, LineItem, Project
from boq_pareto.models.orm_models import BoQItemRecord, InsightRecord, ProjectRecord

logger = logging.getLogger("boq-pareto-db")


def _to_project(rec: ProjectRecord) -> Project:
    return Project(
        id=rec.id,
        name=rec.name,
        file_name=rec.file_name,
        file_path=rec.file_path,
        status=rec.status,
        uploaded_at=rec.uploaded_at,
    )


def _to_line_item(rec: BoQItemRecord) -> LineItem:
    return LineItem(
        id=rec.id,
        item_code=rec.item_code,
        description=rec.description,
        quantity=rec.quantity or 0.0,
        unit=rec.unit,
        unit_rate=rec.unit_rate or 0.0,
        total_cost=rec.total_cost,
        cumulative_cost=rec.cumulative_cost,
        cumulative_percentage=rec.cumulative_percentage,
        is_pareto_critical=bool(rec.is_pareto_critical),
        wbs_level=rec.wbs_level,
        parent_item_code=rec.parent_item_code,
    )


def _to_insight(rec: InsightRecord) -> Insight:
    return Insight(
        id=rec.id,
        insight_type=rec.insight_type,
        title=rec.title,
        description=rec.description,
        recommendation=rec.recommendation,
        potential_savings=rec.potential_savings,
        confidence_score=rec.confidence_score,
        created_at=rec.created_at,
    )


class ProjectRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, project_id: str, name: str, file_name: str, file_path: str) -> Project:
        rec = ProjectRecord(
            id=project_id,
            name=name,
            file_name=file_name,
            file_path=file_path,
            status=STATUS_UPLOADED,
            uploaded_at=datetime.now(timezone.utc),
        )
        self.session.add(rec)
        await self.session.flush()
        return _to_project(rec)

    async def list_all(self) -> list[Project]:
        result = await self.session.execute(
            select(ProjectRecord).order_by(ProjectRecord.uploaded_at.desc(), ProjectRecord.id)
        )
        return [_to_project(r) for r in result.scalars().all()]

    async def get_project(self, project_id: str) -> Optional[Project]:
        result = await self.session.execute(
            select(ProjectRecord).where(ProjectRecord.id == project_id)
        )
        rec = result.scalar_one_or_none()
        return _to_project(rec) if rec else None

    async def set_status(self, project_id: str, status: str) -> None:
        result = await self.session.execute(
            select(ProjectRecord).where(ProjectRecord.id == project_id)
        )
        rec = result.scalar_one_or_none()
        if rec is not None:
            rec.status = status
            await self.session.flush()

    async def delete(self, project_id: str) -> None:
        """Remove a project with its insights and line items, children first."""
        await self.session.execute(delete(InsightRecord).where(InsightRecord.project_id == project_id))
        await self.session.execute(delete(BoQItemRecord).where(BoQItemRecord.project_id == project_id))
        await self.session.execute(delete(ProjectRecord).where(ProjectRecord.id == project_id))
        await self.session.flush()
        logger.info(f"Deleted project {project_id}", extra={"project_id": project_id})


class LineItemRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def delete_all_for_project(self, project_id: str) -> None:
        await self.session.execute(delete(BoQItemRecord).where(BoQItemRecord.project_id == project_id))

    async def insert(self, project_id: str, item: LineItem) -> LineItem:
        rec = BoQItemRecord(
            project_id=project_id,
            item_code=item.item_code,
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_rate=item.unit_rate,
            total_cost=item.total_cost,
            cumulative_cost=item.cumulative_cost,
            cumulative_percentage=item.cumulative_percentage,
            is_pareto_critical=bool(item.is_pareto_critical),
            wbs_level=item.wbs_level,
            parent_item_code=item.parent_item_code,
        )
        self.session.add(rec)
        await self.session.flush()
        return _to_line_item(rec)

    async def list_for_project(self, project_id: str, wbs_level: Optional[int] = None) -> list[LineItem]:
        stmt = select(BoQItemRecord).where(BoQItemRecord.project_id == project_id)
        if wbs_level is not None:
            stmt = stmt.where(BoQItemRecord.wbs_level == wbs_level)
        stmt = stmt.order_by(BoQItemRecord.total_cost.desc(), BoQItemRecord.id.asc())
        result = await self.session.execute(stmt)
        return [_to_line_item(r) for r in result.scalars().all()]

    async def sum_level_one_cost(self, project_id: str) -> float:
        result = await self.session.execute(
            select(func.coalesce(func.sum(BoQItemRecord.total_cost), 0.0)).where(
                BoQItemRecord.project_id == project_id,
                BoQItemRecord.wbs_level == 1,
            )
        )
        return float(result.scalar_one())


class InsightRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def delete_all_for_project(self, project_id: str) -> None:
        await self.session.execute(delete(InsightRecord).where(InsightRecord.project_id == project_id))

    async def insert(self, project_id: str, insight: Insight) -> Insight:
        rec = InsightRecord(
            project_id=project_id,
            insight_type=insight.insight_type,
            title=insight.title,
            description=insight.description,
            recommendation=insight.recommendation,
            potential_savings=insight.potential_savings,
            confidence_score=insight.confidence_score,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(rec)
        await self.session.flush()
        return _to_insight(rec)

    async def list_for_project(self, project_id: str) -> list[Insight]:
        result = await self.session.execute(
            select(InsightRecord)
            .where(InsightRecord.project_id == project_id)
            .order_by(InsightRecord.potential_savings.desc().nulls_last(), InsightRecord.id.asc())
        )
        return [_to_insight(r) for r in result.scalars().all()]
