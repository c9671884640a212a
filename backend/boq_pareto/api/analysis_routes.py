"""Analysis API — Pareto processing, stored results and WBS drill-down."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.api.deps import get_analysis_processor, get_db, get_wbs_aggregator
from boq_pareto.models.api_schemas import (
    AnalysisResponse, LineItemOut, ProcessResponse, ProjectOut, ProjectRef, WbsResponse, WbsRowOut,
)
from boq_pareto.services.analysis_processor import AnalysisProcessor
from boq_pareto.services.wbs_aggregator import WbsAggregator

logger = logging.getLogger("boq-pareto-api.analysis")

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])


@router.post("/process", response_model=ProcessResponse)
async def process_spreadsheet(
    body: ProjectRef,
    db: AsyncSession = Depends(get_db),
    processor: AnalysisProcessor = Depends(get_analysis_processor),
):
    """Parses, ranks and stores the project's spreadsheet, replacing earlier results."""
    result = await processor.process(body.project_id)
    await db.commit()
    return ProcessResponse(
        project_id=result.project_id,
        total_items=result.total_items,
        total_project_cost=result.total_project_cost,
        pareto_critical_items=result.pareto_critical_count,
        items=[LineItemOut.model_validate(it) for it in result.items],
    )


@router.get("/{project_id}", response_model=AnalysisResponse)
async def get_analysis_data(
    project_id: str,
    processor: AnalysisProcessor = Depends(get_analysis_processor),
):
    snapshot = await processor.get_analysis(project_id)
    return AnalysisResponse(
        project=ProjectOut.model_validate(snapshot.project),
        total_items=snapshot.total_items,
        total_project_cost=snapshot.total_project_cost,
        pareto_critical_items=snapshot.pareto_critical_count,
        items=[LineItemOut.model_validate(it) for it in snapshot.items],
    )


@router.get("/{project_id}/wbs", response_model=WbsResponse)
async def get_wbs_data(
    project_id: str,
    level: int = Query(1),
    parent_item_code: Optional[str] = Query(None, alias="parentItemCode"),
    aggregator: WbsAggregator = Depends(get_wbs_aggregator),
):
    """One WBS level, ranked against its own subtotal. Levels below 1 need a parent code."""
    result = await aggregator.aggregate(project_id, level, parent_item_code)
    return WbsResponse(
        project_id=result.project_id,
        level=result.level,
        parent_item_code=result.parent_item_code,
        total_cost=result.total_cost,
        items=[WbsRowOut.model_validate(row) for row in result.rows],
    )
