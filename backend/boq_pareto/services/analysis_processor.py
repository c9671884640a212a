"""
Analysis Processor — turns an uploaded BoQ spreadsheet into ranked, persisted line items.

Pipeline per call:
  project lookup → file download → decode rows → parse rows → WBS tagging
  → Pareto ranking → replace stored items → mark project processed

Steps up to parsing are preconditions: any failure there aborts before the
stored items are touched. Re-running on an unchanged file yields identical
results; each run fully replaces the previous items of the project.

Callers must not overlap two ``process`` calls for the same project; the
delete-then-insert is not locked here.
"""
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Optional

from boq_pareto.config import PARETO_CRITICAL_THRESHOLD_PCT, STATUS_PROCESSED
from boq_pareto.models.boq_models import LineItem, Project
from boq_pareto.services.collaborators import (
    FileStore, LineItemStore, ProjectStore, SpreadsheetDecoder,
)
from boq_pareto.services.errors import (
    DecodeError, InternalError, InvalidArgumentError, NotFoundError, StorageError,
)
from boq_pareto.services.pareto_engine import ParetoRanker
from boq_pareto.services.perf_monitor import timed_async
from boq_pareto.services.row_parser import RowParser
from boq_pareto.services.wbs_code import parent_code, wbs_level

logger = logging.getLogger("boq-pareto-analysis")


@dataclass
class ProcessResult:
    project_id: str
    total_items: int
    total_project_cost: float
    pareto_critical_count: int
    items: list = field(default_factory=list)


@dataclass
class AnalysisSnapshot:
    project: Project
    total_items: int
    total_project_cost: float
    pareto_critical_count: int
    items: list = field(default_factory=list)


def level_one_total(items) -> float:
    """Sum of level-1 costs; deeper levels roll up into them and would double count."""
    return sum(it.total_cost for it in items if it.wbs_level == 1)


class AnalysisProcessor:

    def __init__(
        self,
        projects: ProjectStore,
        line_items: LineItemStore,
        files: FileStore,
        decoder: SpreadsheetDecoder,
        parser: Optional[RowParser] = None,
        ranker: Optional[ParetoRanker] = None,
    ):
        self.projects = projects
        self.line_items = line_items
        self.files = files
        self.decoder = decoder
        self.parser = parser or RowParser()
        self.ranker = ranker or ParetoRanker(PARETO_CRITICAL_THRESHOLD_PCT)

    async def _require_project(self, project_id: str) -> Project:
        project = await self.projects.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    @timed_async("process")
    async def process(self, project_id: str) -> ProcessResult:
        start = time.perf_counter()
        project = await self._require_project(project_id)
        logger.info("Processing started", extra={"project_id": project_id})

        try:
            data = self.files.download(project.file_path)
        except StorageError as exc:
            logger.error(
                f"[{project_id}] File retrieval failed for {project.file_path}: {exc}",
                extra={"project_id": project_id},
            )
            raise InternalError("Failed to retrieve project file") from exc

        try:
            rows = self.decoder.decode(data, project.file_name)
        except DecodeError as exc:
            logger.error(
                f"[{project_id}] Spreadsheet decode failed: {exc}",
                extra={"project_id": project_id},
            )
            raise InternalError("Failed to read spreadsheet") from exc

        if not rows:
            raise InvalidArgumentError("Spreadsheet contains no data")

        parsed, rejected = self.parser.parse_all(rows)
        logger.info(
            f"[{project_id}] {len(rows)} rows decoded, {len(parsed)} accepted, {rejected} rejected",
            extra={"project_id": project_id},
        )
        if not parsed:
            raise InvalidArgumentError("No valid BoQ items found in spreadsheet")

        tagged = [self._tag_wbs(item) for item in parsed]
        ranking = self.ranker.rank(tagged)

        # Old items must be gone before any new one is inserted
        await self.line_items.delete_all_for_project(project_id)
        stored: list[LineItem] = []
        for item in ranking.items:
            stored.append(await self.line_items.insert(project_id, item))

        await self.projects.set_status(project_id, STATUS_PROCESSED)

        total_project_cost = level_one_total(stored)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            f"[{project_id}] Processed {len(stored)} items, "
            f"{ranking.critical_count} Pareto-critical, level-1 cost {total_project_cost:,.2f}",
            extra={"project_id": project_id, "duration_ms": duration_ms},
        )

        return ProcessResult(
            project_id=project_id,
            total_items=len(stored),
            total_project_cost=total_project_cost,
            pareto_critical_count=ranking.critical_count,
            items=stored,
        )

    @staticmethod
    def _tag_wbs(item: LineItem) -> LineItem:
        return replace(
            item,
            wbs_level=wbs_level(item.item_code),
            parent_item_code=parent_code(item.item_code),
        )

    async def get_analysis(self, project_id: str) -> AnalysisSnapshot:
        """Stored analysis for a project; empty until the project has been processed."""
        project = await self._require_project(project_id)
        if project.status != STATUS_PROCESSED:
            return AnalysisSnapshot(
                project=project, total_items=0, total_project_cost=0.0, pareto_critical_count=0,
            )

        items = await self.line_items.list_for_project(project_id)
        total_project_cost = await self.line_items.sum_level_one_cost(project_id)
        return AnalysisSnapshot(
            project=project,
            total_items=len(items),
            total_project_cost=total_project_cost,
            pareto_critical_count=sum(1 for it in items if it.is_pareto_critical),
            items=items,
        )
