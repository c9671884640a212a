"""boq_schema

Revision ID: 001_boq_schema
Revises:
Create Date: 2026-10-18

Creates the BoQ analysis tables:
- projects (uploaded spreadsheets and their processing status)
- boq_items (ranked line items with WBS level / parent code)
- ai_insights (rule-based insights per project)

Tables are only created when missing so the migration is idempotent next
to Base.metadata.create_all().
"""
import logging
from alembic import op
import sqlalchemy as sa

revision = '001_boq_schema'
down_revision = None
branch_labels = None
depends_on = None

logger = logging.getLogger("alembic.001")


def _table_exists(conn, table_name: str) -> bool:
    return sa.inspect(conn).has_table(table_name)


def upgrade() -> None:
    conn = op.get_bind()

    # ── projects ──────────────────────────────────────────────────────────────
    if not _table_exists(conn, 'projects'):
        op.create_table(
            'projects',
            sa.Column('id', sa.String(64), primary_key=True),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('file_name', sa.String(255), nullable=False),
            sa.Column('file_path', sa.Text, nullable=False),
            sa.Column('status', sa.String(50), nullable=False, server_default='uploaded'),
            sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        logger.info("Created table: projects")
    else:
        logger.info("Table projects already exists — skipping create")

    # ── boq_items ─────────────────────────────────────────────────────────────
    if not _table_exists(conn, 'boq_items'):
        op.create_table(
            'boq_items',
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('project_id', sa.String(64), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
            sa.Column('item_code', sa.String(100), nullable=False),
            sa.Column('description', sa.Text, nullable=False),
            sa.Column('quantity', sa.Float, server_default='0'),
            sa.Column('unit', sa.String(50), nullable=True),
            sa.Column('unit_rate', sa.Float, server_default='0'),
            sa.Column('total_cost', sa.Float, nullable=False),
            sa.Column('cumulative_cost', sa.Float, nullable=True),
            sa.Column('cumulative_percentage', sa.Float, nullable=True),
            sa.Column('is_pareto_critical', sa.Boolean, server_default=sa.false()),
            sa.Column('wbs_level', sa.Integer, nullable=False, server_default='1'),
            sa.Column('parent_item_code', sa.String(100), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index('idx_boq_items_project_id', 'boq_items', ['project_id'])
        op.create_index('idx_boq_items_wbs_level', 'boq_items', ['project_id', 'wbs_level'])
        op.create_index('idx_boq_items_item_code', 'boq_items', ['project_id', 'item_code'])
        op.create_index('idx_boq_items_parent', 'boq_items', ['project_id', 'parent_item_code'])
        logger.info("Created table: boq_items")
    else:
        logger.info("Table boq_items already exists — skipping create")

    # ── ai_insights ───────────────────────────────────────────────────────────
    if not _table_exists(conn, 'ai_insights'):
        op.create_table(
            'ai_insights',
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('project_id', sa.String(64), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
            sa.Column('insight_type', sa.String(50), nullable=False),
            sa.Column('title', sa.String(255), nullable=False),
            sa.Column('description', sa.Text, nullable=False),
            sa.Column('recommendation', sa.Text, nullable=False),
            sa.Column('potential_savings', sa.Float, nullable=True),
            sa.Column('confidence_score', sa.Float, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index('idx_ai_insights_project_id', 'ai_insights', ['project_id'])
        logger.info("Created table: ai_insights")
    else:
        logger.info("Table ai_insights already exists — skipping create")


def downgrade() -> None:
    conn = op.get_bind()

    for table in ('ai_insights', 'boq_items', 'projects'):
        if _table_exists(conn, table):
            op.drop_table(table)
