"""In-memory BoQ domain objects shared by the parser, ranker, processor and aggregator."""
from dataclasses import dataclass
from typing import Optional


@dataclass
class LineItem:
    """One normalized BoQ row. Ranking fields stay None until ParetoRanker runs."""
    item_code: str
    description: str
    quantity: float = 0.0
    unit: Optional[str] = None
    unit_rate: float = 0.0
    total_cost: float = 0.0
    wbs_level: int = 1
    parent_item_code: Optional[str] = None
    id: Optional[int] = None
    cumulative_cost: Optional[float] = None
    cumulative_percentage: Optional[float] = None
    is_pareto_critical: Optional[bool] = None


@dataclass
class WbsAggregateRow:
    """Transient drill-down row: every line item sharing one code at the requested level."""
    item_code: str
    description: str
    total_cost: float
    quantity: float
    item_count: int
    unit: Optional[str] = None
    unit_rate: Optional[float] = None
    id: Optional[int] = None
    cumulative_cost: Optional[float] = None
    cumulative_percentage: Optional[float] = None
    is_pareto_critical: Optional[bool] = None


@dataclass
class Project:
    id: str
    name: str
    file_name: str
    file_path: str
    status: str
    uploaded_at: Optional[object] = None


@dataclass
class Insight:
    insight_type: str
    title: str
    description: str
    recommendation: str
    potential_savings: Optional[float]
    confidence_score: float
    id: Optional[int] = None
    created_at: Optional[object] = None
