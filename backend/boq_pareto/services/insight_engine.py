"""
Insight Engine — rule-based cost-reduction insights over Pareto-critical items.

This is a heuristic layer on top of the processed analysis, not part of it.
Every rule claims a share of the affected cost as potential saving, clamped to
the cap in ``config.INSIGHT_POLICY`` and rounded to 2 decimals.
"""
import logging
from collections import defaultdict
from typing import Optional

from boq_pareto.config import INSIGHT_MAX_LISTED_CODES, INSIGHT_POLICY
from boq_pareto.models.boq_models import Insight, LineItem
from boq_pareto.services.collaborators import InsightStore, LineItemStore, ProjectStore
from boq_pareto.services.errors import InvalidArgumentError, NotFoundError
from boq_pareto.services.perf_monitor import timed_async

logger = logging.getLogger("boq-pareto-insights")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def bounded_saving(base: float, rate: float, cap: float) -> float:
    return round(clamp(base * rate, 0.0, base * cap), 2)


def _matches(item: LineItem, keywords) -> bool:
    text = (item.description or "").lower()
    return any(k in text for k in keywords)


def _codes(items: list[LineItem]) -> str:
    return ", ".join(it.item_code for it in items[:INSIGHT_MAX_LISTED_CODES])


class InsightEngine:
    """Evaluates the insight rules. Input items are expected in cost-descending order."""

    def __init__(self, policy: Optional[dict] = None):
        self.policy = policy or INSIGHT_POLICY

    def generate(self, critical_items: list[LineItem], total_project_cost: float) -> list[Insight]:
        if total_project_cost <= 0:
            return []

        insights: list[Insight] = []
        for rule in (
            self._cost_concentration,
            self._material_substitution,
            self._quantity_optimization,
            self._rate_variance,
            self._design_optimization,
            self._wbs_concentration,
        ):
            insights.extend(rule(critical_items, total_project_cost))

        insights.sort(key=lambda i: i.potential_savings or 0.0, reverse=True)
        logger.info(
            f"Insight rules produced {len(insights)} insights, "
            f"{sum(i.potential_savings or 0 for i in insights):,.2f} potential saving"
        )
        return insights

    def _cost_concentration(self, items, total):
        p = self.policy["cost_concentration"]
        if not items:
            return []
        top = items[0]
        share = top.total_cost / total
        if share <= p["min_share"]:
            return []
        return [Insight(
            insight_type="cost_concentration",
            title=f"High Cost Concentration Risk - {top.item_code}",
            description=(
                f'Item "{top.description}" ({top.item_code}) accounts for '
                f"{share * 100:.1f}% of total project cost."
            ),
            recommendation=(
                "Consider value engineering, alternate specifications, or supplier "
                "consolidation to reduce reliance on this high-cost item."
            ),
            potential_savings=bounded_saving(top.total_cost, p["rate"], p["cap"]),
            confidence_score=p["confidence"],
        )]

    def _material_substitution(self, items, total):
        p = self.policy["material_substitution"]
        matched = [it for it in items if _matches(it, p["keywords"])]
        if not matched:
            return []
        cost = sum(it.total_cost for it in matched)
        return [Insight(
            insight_type="material_substitution",
            title="Material Substitution Opportunity",
            description=f"{len(matched)} high-cost material items identified ({_codes(matched)}).",
            recommendation=(
                "Evaluate alternative materials and multiple suppliers. Validate compliance "
                "with standards and performance requirements."
            ),
            potential_savings=bounded_saving(cost, p["rate"], p["cap"]),
            confidence_score=p["confidence"],
        )]

    def _quantity_optimization(self, items, total):
        p = self.policy["quantity_optimization"]
        matched = [it for it in items if (it.quantity or 0) > p["min_quantity"]]
        if not matched:
            return []
        cost = sum(it.total_cost for it in matched)
        return [Insight(
            insight_type="quantity_optimization",
            title="Bulk Procurement Opportunity",
            description=f"{len(matched)} items with high quantities suitable for volume discounts.",
            recommendation=(
                "Aggregate orders, negotiate framework agreements, and align deliveries "
                "just-in-time to reduce storage costs."
            ),
            potential_savings=bounded_saving(cost, p["rate"], p["cap"]),
            confidence_score=p["confidence"],
        )]

    def _rate_variance(self, items, total):
        p = self.policy["rate_variance"]
        by_unit: dict[str, list[LineItem]] = {}
        for it in items:
            if it.unit and it.unit_rate > 0:
                by_unit.setdefault(it.unit, []).append(it)

        insights = []
        for unit, group in by_unit.items():
            if len(group) < 2:
                continue
            rates = [it.unit_rate for it in group]
            low, high = min(rates), max(rates)
            variance = (high - low) / low
            if variance <= p["min_variance"]:
                continue
            cost = sum(it.total_cost for it in group)
            saving = bounded_saving(cost, variance * p["recoverable_share"], p["cap"])
            if saving <= 0:
                continue
            insights.append(Insight(
                insight_type="rate_variance",
                title=f"High Rate Variance for {unit} Items",
                description=f"Rates vary {variance * 100:.1f}%. Items: {_codes(group)}.",
                recommendation=(
                    "Standardize specifications and consolidate suppliers to align pricing "
                    "across similar items."
                ),
                potential_savings=saving,
                confidence_score=p["confidence"],
            ))
        return insights

    def _design_optimization(self, items, total):
        p = self.policy["design_optimization"]
        matched = [it for it in items if _matches(it, p["keywords"])]
        if not matched:
            return []
        cost = sum(it.total_cost for it in matched)
        return [Insight(
            insight_type="design_optimization",
            title="Design Optimization Potential",
            description=(
                f"{len(matched)} design-related critical items indicate optimization opportunities."
            ),
            recommendation=(
                "Simplify details, modularize elements, and refine reinforcement layout "
                "to reduce waste and labor time."
            ),
            potential_savings=bounded_saving(cost, p["rate"], p["cap"]),
            confidence_score=p["confidence"],
        )]

    def _wbs_concentration(self, items, total):
        p = self.policy["wbs_concentration"]
        by_level: dict[int, list[LineItem]] = defaultdict(list)
        for it in items:
            by_level[it.wbs_level or 1].append(it)

        insights = []
        for level, group in by_level.items():
            cost = sum(it.total_cost for it in group)
            share = cost / total
            if share <= p["min_share"] or len(group) < p["min_items"]:
                continue
            insights.append(Insight(
                insight_type="wbs_concentration",
                title=f"WBS Level {level} Cost Concentration",
                description=(
                    f"Level {level} contains {len(group)} critical items totaling "
                    f"{share * 100:.1f}% of project cost."
                ),
                recommendation=(
                    f"Prioritize Level {level} for VE workshops, supplier consolidation, "
                    "and method reviews."
                ),
                potential_savings=bounded_saving(cost, p["rate"], p["cap"]),
                confidence_score=p["confidence"],
            ))
        return insights


class InsightService:
    """Regenerates and reads the stored insights of a project."""

    def __init__(
        self,
        projects: ProjectStore,
        line_items: LineItemStore,
        insights: InsightStore,
        engine: Optional[InsightEngine] = None,
    ):
        self.projects = projects
        self.line_items = line_items
        self.insights = insights
        self.engine = engine or InsightEngine()

    async def _require_project(self, project_id: str) -> None:
        if await self.projects.get_project(project_id) is None:
            raise NotFoundError("Project not found")

    @timed_async("insights")
    async def generate(self, project_id: str) -> list[Insight]:
        await self._require_project(project_id)
        items = await self.line_items.list_for_project(project_id)
        if not items:
            raise InvalidArgumentError("No BoQ items found for analysis")

        total_project_cost = await self.line_items.sum_level_one_cost(project_id)
        critical = [it for it in items if it.is_pareto_critical]
        generated = self.engine.generate(critical, total_project_cost)

        await self.insights.delete_all_for_project(project_id)
        for insight in generated:
            await self.insights.insert(project_id, insight)
        return await self.insights.list_for_project(project_id)

    async def list(self, project_id: str) -> list[Insight]:
        await self._require_project(project_id)
        return await self.insights.list_for_project(project_id)


def total_savings(insights: list[Insight]) -> float:
    return sum(i.potential_savings or 0.0 for i in insights)
