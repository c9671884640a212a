"""Insight API — rule-based insights and value-engineering suggestions."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.api.deps import get_db, get_insight_service, get_ve_engine
from boq_pareto.models.api_schemas import (
    InsightOut, InsightsResponse, OriginalItemOut, ProjectRef, VEAlternativeOut,
    VESuggestionsRequest, VESuggestionsResponse,
)
from boq_pareto.services.insight_engine import InsightService, total_savings
from boq_pareto.services.value_engineering_engine import ValueEngineeringEngine, VERequest

logger = logging.getLogger("boq-pareto-api.insights")

router = APIRouter(prefix="/api/insights", tags=["Insights"])


def _insights_response(project_id: str, insights) -> InsightsResponse:
    return InsightsResponse(
        project_id=project_id,
        insights=[InsightOut.model_validate(i) for i in insights],
        total_potential_savings=round(total_savings(insights), 2),
    )


@router.post("/generate", response_model=InsightsResponse)
async def generate_insights(
    body: ProjectRef,
    db: AsyncSession = Depends(get_db),
    service: InsightService = Depends(get_insight_service),
):
    insights = await service.generate(body.project_id)
    await db.commit()
    return _insights_response(body.project_id, insights)


@router.post("/ve", response_model=VESuggestionsResponse)
async def ve_suggestions(
    body: VESuggestionsRequest,
    engine: ValueEngineeringEngine = Depends(get_ve_engine),
):
    result = await engine.suggest(VERequest(
        item_name=body.item_name,
        item_description=body.item_description,
        quantity=body.quantity,
        unit_rate=body.unit_rate,
        total_cost=body.total_cost,
        work_category=body.work_category,
    ))
    return VESuggestionsResponse(
        original=OriginalItemOut(
            item_name=result.item_name,
            description=result.description,
            quantity=result.quantity,
            unit_rate=result.unit_rate,
            total_cost=result.total_cost,
        ),
        alternatives=[VEAlternativeOut.model_validate(a) for a in result.alternatives],
        notes=result.notes,
    )


@router.get("/{project_id}", response_model=InsightsResponse)
async def get_insights(
    project_id: str,
    service: InsightService = Depends(get_insight_service),
):
    insights = await service.list(project_id)
    return _insights_response(project_id, insights)
