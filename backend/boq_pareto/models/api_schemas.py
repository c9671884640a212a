"""
Pydantic request/response models for the HTTP API.

Fields are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ── Projects ──────────────────────────────────────────────────────────────────
class ProjectOut(CamelModel):
    id: str
    name: str
    file_name: str
    uploaded_at: Optional[datetime] = None
    status: str


class UploadResponse(CamelModel):
    project_id: str
    file_name: str
    uploaded_at: Optional[datetime] = None


class ProjectListResponse(CamelModel):
    projects: list[ProjectOut]


class DeleteProjectResponse(CamelModel):
    success: bool
    message: str


# ── Analysis ──────────────────────────────────────────────────────────────────
class ProjectRef(CamelModel):
    project_id: str


class LineItemOut(CamelModel):
    id: Optional[int] = None
    item_code: str
    description: str
    quantity: float
    unit: Optional[str] = None
    unit_rate: float
    total_cost: float
    cumulative_cost: Optional[float] = None
    cumulative_percentage: Optional[float] = None
    is_pareto_critical: bool = False
    wbs_level: int
    parent_item_code: Optional[str] = None


class AnalysisResponse(CamelModel):
    project: ProjectOut
    total_items: int
    total_project_cost: float
    pareto_critical_items: int
    items: list[LineItemOut]


class ProcessResponse(CamelModel):
    project_id: str
    total_items: int
    total_project_cost: float
    pareto_critical_items: int
    items: list[LineItemOut]


class WbsRowOut(CamelModel):
    id: Optional[int] = None
    item_code: str
    description: str
    quantity: float
    unit: Optional[str] = None
    unit_rate: Optional[float] = None
    total_cost: float
    item_count: int
    cumulative_cost: Optional[float] = None
    cumulative_percentage: Optional[float] = None
    is_pareto_critical: bool = False


class WbsResponse(CamelModel):
    project_id: str
    level: int
    parent_item_code: Optional[str] = None
    total_cost: float
    items: list[WbsRowOut]


# ── Insights ──────────────────────────────────────────────────────────────────
class InsightOut(CamelModel):
    id: Optional[int] = None
    insight_type: str
    title: str
    description: str
    recommendation: str
    potential_savings: Optional[float] = None
    confidence_score: float


class InsightsResponse(CamelModel):
    project_id: str
    insights: list[InsightOut]
    total_potential_savings: float


# ── Value engineering ─────────────────────────────────────────────────────────
class VESuggestionsRequest(CamelModel):
    item_name: str = ""
    item_description: str = ""
    quantity: float = 0.0
    unit_rate: float = 0.0
    total_cost: float = 0.0
    work_category: str = "structure"


class OriginalItemOut(CamelModel):
    item_name: str
    description: str
    quantity: float
    unit_rate: float
    total_cost: float


class VEAlternativeOut(CamelModel):
    description: str
    new_unit_rate: float
    new_total_cost: float
    estimated_saving: float
    saving_percent: float
    trade_offs: str


class VESuggestionsResponse(CamelModel):
    original: OriginalItemOut
    alternatives: list[VEAlternativeOut]
    notes: list[str]
