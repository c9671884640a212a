"""ORM Models for the BoQ Pareto service — SQLAlchemy 2.0"""
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    String, Text, Boolean, Integer, Float, DateTime, ForeignKey, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from boq_pareto.db import Base


# ── PROJECTS ──────────────────────────────────────────────────────────────────
class ProjectRecord(Base):
    __tablename__ = "projects"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="uploaded")
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    items: Mapped[list["BoQItemRecord"]] = relationship(
        "BoQItemRecord", back_populates="project", passive_deletes=True,
    )
    insights: Mapped[list["InsightRecord"]] = relationship(
        "InsightRecord", back_populates="project", passive_deletes=True,
    )


# ── LINE ITEMS ────────────────────────────────────────────────────────────────
class BoQItemRecord(Base):
    __tablename__ = "boq_items"
    __table_args__ = (
        Index("idx_boq_items_project_id", "project_id"),
        Index("idx_boq_items_wbs_level", "project_id", "wbs_level"),
        Index("idx_boq_items_item_code", "project_id", "item_code"),
        Index("idx_boq_items_parent", "project_id", "parent_item_code"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    item_code: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, default=0.0)
    unit: Mapped[Optional[str]] = mapped_column(String(50))
    unit_rate: Mapped[float] = mapped_column(Float, default=0.0)
    total_cost: Mapped[float] = mapped_column(Float, nullable=False)
    cumulative_cost: Mapped[Optional[float]] = mapped_column(Float)
    cumulative_percentage: Mapped[Optional[float]] = mapped_column(Float)
    is_pareto_critical: Mapped[bool] = mapped_column(Boolean, default=False)
    wbs_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    parent_item_code: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    project: Mapped["ProjectRecord"] = relationship("ProjectRecord", back_populates="items")


# ── AI INSIGHTS ───────────────────────────────────────────────────────────────
class InsightRecord(Base):
    __tablename__ = "ai_insights"
    __table_args__ = (
        Index("idx_ai_insights_project_id", "project_id"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    insight_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    recommendation: Mapped[str] = mapped_column(Text, nullable=False)
    potential_savings: Mapped[Optional[float]] = mapped_column(Float)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    project: Mapped["ProjectRecord"] = relationship("ProjectRecord", back_populates="insights")
