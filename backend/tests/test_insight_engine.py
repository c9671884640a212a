"""
test_insight_engine.py — Rule-based insight engine and InsightService.

Savings arithmetic follows the policy table in boq_pareto.config:
    saving = round(clamp(base × rate, 0, base × cap), 2)
"""

import pytest

from boq_pareto.models.boq_models import LineItem
from boq_pareto.services.errors import InvalidArgumentError, NotFoundError
from boq_pareto.services.insight_engine import InsightEngine, InsightService, bounded_saving


def _item(code, cost, desc="Generic works", qty=1.0, unit=None, rate=0.0, level=1, critical=True):
    return LineItem(
        item_code=code, description=desc, quantity=qty, unit=unit, unit_rate=rate,
        total_cost=cost, wbs_level=level, is_pareto_critical=critical,
    )


def _by_type(insights, insight_type):
    return [i for i in insights if i.insight_type == insight_type]


@pytest.fixture(scope="module")
def engine():
    return InsightEngine()


class TestBoundedSaving:

    def test_rate_below_cap(self):
        assert bounded_saving(1000, 0.10, 0.12) == 100.0

    def test_rate_above_cap(self):
        """0.5 share capped at 0.12 × 1000 = 120."""
        assert bounded_saving(1000, 0.5, 0.12) == 120.0

    def test_negative_clamped_to_zero(self):
        assert bounded_saving(1000, -0.1, 0.12) == 0.0


class TestRules:

    def test_no_total_no_insights(self, engine):
        assert engine.generate([_item("1", 100)], 0) == []

    def test_cost_concentration(self, engine):
        """Top item 5000 of 10000 (50 % > 15 %) → 10 % of 5000 = 500."""
        out = _by_type(engine.generate([_item("7", 5000)], 10000), "cost_concentration")
        assert len(out) == 1
        assert out[0].potential_savings == 500.0
        assert out[0].confidence_score == 0.85
        assert "7" in out[0].title

    def test_cost_concentration_boundary(self, engine):
        """Exactly 15 % is not above the threshold."""
        assert _by_type(engine.generate([_item("7", 1500)], 10000), "cost_concentration") == []

    def test_material_substitution(self, engine):
        """(2000 + 1000) × 9 % = 270."""
        items = [_item("1", 2000, "Ready-mix CONCRETE"), _item("2", 1000, "Steel rebar"), _item("3", 500, "Glazing")]
        out = _by_type(engine.generate(items, 100000), "material_substitution")
        assert out[0].potential_savings == 270.0
        assert "1, 2" in out[0].description

    def test_quantity_optimization(self, engine):
        """Only qty 150 (> 100) counts: 1000 × 5 % = 50."""
        items = [_item("1", 1000, qty=150), _item("2", 1000, qty=100)]
        out = _by_type(engine.generate(items, 100000), "quantity_optimization")
        assert out[0].potential_savings == 50.0

    def test_rate_variance_capped(self, engine):
        """Rates 100 vs 150 → variance 0.5; 0.5 × 0.4 = 0.2 > cap 0.12 → 2500 × 0.12 = 300."""
        items = [_item("1", 1000, unit="m3", rate=100), _item("2", 1500, unit="m3", rate=150)]
        out = _by_type(engine.generate(items, 100000), "rate_variance")
        assert len(out) == 1
        assert out[0].potential_savings == 300.0
        assert "m3" in out[0].title

    def test_rate_variance_needs_two_rates(self, engine):
        items = [_item("1", 1000, unit="m3", rate=100), _item("2", 1500, unit="kg", rate=150)]
        assert _by_type(engine.generate(items, 100000), "rate_variance") == []

    def test_rate_variance_boundary(self, engine):
        """(120 − 100) / 100 = 0.2 is not above 0.2."""
        items = [_item("1", 1000, unit="m2", rate=100), _item("2", 1000, unit="m2", rate=120)]
        assert _by_type(engine.generate(items, 100000), "rate_variance") == []

    def test_design_optimization(self, engine):
        """1000 × 10 % = 100."""
        out = _by_type(engine.generate([_item("1", 1000, "Formwork to slabs")], 100000), "design_optimization")
        assert out[0].potential_savings == 100.0

    def test_wbs_concentration(self, engine):
        """Three level-1 items totalling 4000 of 10000 (40 % > 30 %) → 6 % = 240."""
        items = [_item("1", 2000), _item("2", 1000), _item("3", 1000), _item("4.1", 100, level=2)]
        out = _by_type(engine.generate(items, 10000), "wbs_concentration")
        assert len(out) == 1
        assert out[0].potential_savings == 240.0
        assert "Level 1" in out[0].title

    def test_wbs_concentration_needs_three_items(self, engine):
        items = [_item("1", 3000), _item("2", 3000)]
        assert _by_type(engine.generate(items, 10000), "wbs_concentration") == []

    def test_sorted_by_saving(self, engine):
        items = [_item("1", 5000, "Concrete slab", qty=500), _item("2", 1000, "Formwork")]
        out = engine.generate(items, 10000)
        savings = [i.potential_savings for i in out]
        assert savings == sorted(savings, reverse=True)


class TestInsightService:

    @pytest.mark.asyncio
    async def test_generate_persists_and_replaces(self, project, project_store, line_item_store, insight_store):
        await line_item_store.insert(project.id, _item("1", 5000, "Concrete"))
        await line_item_store.insert(project.id, _item("2", 1000, "Paint", critical=False))
        service = InsightService(project_store, line_item_store, insight_store)

        first = await service.generate(project.id)
        second = await service.generate(project.id)

        assert [i.insight_type for i in first] == [i.insight_type for i in second]
        assert len(insight_store.insights[project.id]) == len(second)
        assert all(i.id is not None for i in second)

    @pytest.mark.asyncio
    async def test_only_critical_items_considered(self, project, project_store, line_item_store, insight_store):
        """'Paint' is not critical, so no rule mentions code 2."""
        await line_item_store.insert(project.id, _item("1", 5000, "Concrete"))
        await line_item_store.insert(project.id, _item("2", 4000, "Paint formwork", critical=False))
        out = await InsightService(project_store, line_item_store, insight_store).generate(project.id)
        assert _by_type(out, "design_optimization") == []

    @pytest.mark.asyncio
    async def test_no_items(self, project, project_store, line_item_store, insight_store):
        with pytest.raises(InvalidArgumentError):
            await InsightService(project_store, line_item_store, insight_store).generate(project.id)

    @pytest.mark.asyncio
    async def test_unknown_project(self, project_store, line_item_store, insight_store):
        service = InsightService(project_store, line_item_store, insight_store)
        with pytest.raises(NotFoundError):
            await service.generate("nope")
        with pytest.raises(NotFoundError):
            await service.list("nope")
