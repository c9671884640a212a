"""
WBS Aggregator — drill-down view of persisted line items, one WBS level at a time.

Level 1 takes every top-level item. Deeper levels take only the direct
children of ``parent_item_code`` (``"1.2"`` under ``"1"``, never ``"1.2.3"``).
Items sharing a code are merged into one row, and the rows are ranked against
their own subtotal, so a drill-down always spans 0–100 %.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from boq_pareto.config import PARETO_CRITICAL_THRESHOLD_PCT
from boq_pareto.models.boq_models import LineItem, WbsAggregateRow
from boq_pareto.services.collaborators import LineItemStore, ProjectStore
from boq_pareto.services.errors import InvalidArgumentError, NotFoundError
from boq_pareto.services.pareto_engine import ParetoRanker
from boq_pareto.services.perf_monitor import timed_async
from boq_pareto.services.wbs_code import is_direct_child

logger = logging.getLogger("boq-pareto-wbs")

DESCRIPTION_JOINER = "; "


@dataclass
class WbsAggregation:
    project_id: str
    level: int
    parent_item_code: Optional[str]
    total_cost: float = 0.0
    rows: list = field(default_factory=list)


def group_by_code(items: list[LineItem]) -> list[WbsAggregateRow]:
    """
    Merge items sharing an item code, keeping first-seen order.

    Quantities and costs are summed; unit, unit rate and id come from the
    first item of the group; distinct descriptions are joined in order.
    Groups with an empty code or a non-positive total are dropped.
    """
    groups: dict[str, dict] = {}
    for it in items:
        g = groups.get(it.item_code)
        if g is None:
            g = groups[it.item_code] = {
                "first": it,
                "descriptions": [],
                "total_cost": 0.0,
                "quantity": 0.0,
                "count": 0,
            }
        if it.description and it.description not in g["descriptions"]:
            g["descriptions"].append(it.description)
        g["total_cost"] += it.total_cost
        g["quantity"] += it.quantity or 0.0
        g["count"] += 1

    rows = []
    for code, g in groups.items():
        if not code or g["total_cost"] <= 0:
            continue
        first: LineItem = g["first"]
        rows.append(WbsAggregateRow(
            item_code=code,
            description=DESCRIPTION_JOINER.join(g["descriptions"]),
            total_cost=g["total_cost"],
            quantity=g["quantity"],
            item_count=g["count"],
            unit=first.unit,
            unit_rate=first.unit_rate,
            id=first.id,
        ))
    return rows


class WbsAggregator:

    def __init__(
        self,
        projects: ProjectStore,
        line_items: LineItemStore,
        ranker: Optional[ParetoRanker] = None,
    ):
        self.projects = projects
        self.line_items = line_items
        self.ranker = ranker or ParetoRanker(PARETO_CRITICAL_THRESHOLD_PCT)

    @timed_async("wbs")
    async def aggregate(
        self, project_id: str, level: int, parent_item_code: Optional[str] = None
    ) -> WbsAggregation:
        project = await self.projects.get_project(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        if level < 1:
            raise InvalidArgumentError("WBS level must be 1 or greater")
        parent = (parent_item_code or "").strip() or None
        if level >= 2 and parent is None:
            raise InvalidArgumentError(f"Parent item code required for level {level}")

        candidates = await self.line_items.list_for_project(project_id, wbs_level=level)
        if level == 1:
            selected = [it for it in candidates if it.item_code]
        else:
            selected = [it for it in candidates if is_direct_child(it.item_code, parent, level)]

        rows = group_by_code(selected)
        result = WbsAggregation(project_id=project_id, level=level, parent_item_code=parent)
        if not rows:
            logger.debug(f"[{project_id}] No WBS rows at level {level} under {parent!r}")
            return result

        ranking = self.ranker.rank(rows)
        result.total_cost = ranking.total
        result.rows = ranking.items
        logger.debug(
            f"[{project_id}] WBS level {level} under {parent!r}: "
            f"{len(rows)} rows, {ranking.critical_count} critical",
        )
        return result
