"""
Pareto Engine — cost ranking, cumulative sweep and 80/20 critical classification.

Works on any sequence of dataclass rows exposing ``total_cost`` and the three
ranking fields (LineItem, WbsAggregateRow). The input is never mutated;
ranked copies are returned.

"Critical" is always relative to the scope being ranked: the whole project
during processing, or one drill-down level's own subtotal during WBS
aggregation.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Sequence

from boq_pareto.config import PARETO_CRITICAL_THRESHOLD_PCT

logger = logging.getLogger("boq-pareto-analysis")


@dataclass
class RankingResult:
    items: list = field(default_factory=list)
    total: float = 0.0
    critical_count: int = 0


class ParetoRanker:

    def __init__(self, critical_threshold_pct: float = PARETO_CRITICAL_THRESHOLD_PCT):
        self.critical_threshold_pct = critical_threshold_pct

    def rank(self, items: Sequence, critical_threshold_pct: float = None) -> RankingResult:
        """
        Sort by total_cost descending and populate cumulative fields.

        Ties keep their input order (``sorted`` is stable, including with
        ``reverse=True``). An item whose cumulative percentage equals the
        threshold exactly is critical.

        When the total is not positive the items come back in input order
        with cumulative fields at 0 and nothing flagged critical.
        """
        threshold = self.critical_threshold_pct if critical_threshold_pct is None else critical_threshold_pct
        ordered = sorted(items, key=lambda it: it.total_cost, reverse=True)

        total = 0.0
        for it in ordered:
            total += it.total_cost

        if total <= 0:
            return RankingResult(
                items=[
                    replace(it, cumulative_cost=0.0, cumulative_percentage=0.0, is_pareto_critical=False)
                    for it in items
                ],
                total=total,
                critical_count=0,
            )

        ranked = []
        cumulative = 0.0
        critical_count = 0
        for it in ordered:
            cumulative += it.total_cost
            pct = cumulative / total * 100
            is_critical = pct <= threshold
            if is_critical:
                critical_count += 1
            ranked.append(replace(
                it,
                cumulative_cost=cumulative,
                cumulative_percentage=pct,
                is_pareto_critical=is_critical,
            ))

        return RankingResult(items=ranked, total=total, critical_count=critical_count)
