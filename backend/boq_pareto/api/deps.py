"""FastAPI dependency injection — sessions, file store and services."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boq_pareto.db import get_db
from boq_pareto.db.repositories import InsightRepository, LineItemRepository, ProjectRepository
from boq_pareto.services.analysis_processor import AnalysisProcessor
from boq_pareto.services.file_store import LocalFileStore
from boq_pareto.services.insight_engine import InsightService
from boq_pareto.services.spreadsheet_decoder import PandasSpreadsheetDecoder
from boq_pareto.services.value_engineering_engine import ValueEngineeringEngine
from boq_pareto.services.wbs_aggregator import WbsAggregator


def get_file_store() -> LocalFileStore:
    return LocalFileStore()


def get_project_repository(db: AsyncSession = Depends(get_db)) -> ProjectRepository:
    return ProjectRepository(db)


def get_analysis_processor(
    db: AsyncSession = Depends(get_db),
    files: LocalFileStore = Depends(get_file_store),
) -> AnalysisProcessor:
    return AnalysisProcessor(
        projects=ProjectRepository(db),
        line_items=LineItemRepository(db),
        files=files,
        decoder=PandasSpreadsheetDecoder(),
    )


def get_wbs_aggregator(db: AsyncSession = Depends(get_db)) -> WbsAggregator:
    return WbsAggregator(projects=ProjectRepository(db), line_items=LineItemRepository(db))


def get_insight_service(db: AsyncSession = Depends(get_db)) -> InsightService:
    return InsightService(
        projects=ProjectRepository(db),
        line_items=LineItemRepository(db),
        insights=InsightRepository(db),
    )


def get_ve_engine() -> ValueEngineeringEngine:
    return ValueEngineeringEngine()
