"""initial inventory schema: components, pcbs, BOM, production, consumption, triggers

Revision ID: 5c1e2a7d9b10
Revises:
Create Date: 2026-09-14 10:02:41.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a7d9b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "components",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("part_number", sa.String(100), nullable=False, unique=True),
        sa.Column("current_stock", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("monthly_required_quantity", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("current_stock >= 0", name="CK_Component_CurrentStock_NonNegative"),
        sa.CheckConstraint("monthly_required_quantity >= 0", name="CK_Component_MonthlyReq_NonNegative"),
    )
    op.create_table(
        "pcbs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pcb_name", sa.String(255), nullable=False, unique=True),
        sa.Column("revision", sa.String(50)),
        sa.Column("description", sa.String(1000)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "pcb_components",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pcb_id", sa.Integer(), sa.ForeignKey("pcbs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity_per_pcb", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity_per_pcb > 0", name="CK_BOMLink_Qty_Positive"),
        sa.UniqueConstraint("pcb_id", "component_id", name="UQ_BOMLink_PCB_Component"),
    )
    op.create_index("ix_pcb_components_pcb_id", "pcb_components", ["pcb_id"])
    op.create_index("ix_pcb_components_component_id", "pcb_components", ["component_id"])

    op.create_table(
        "production_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pcb_id", sa.Integer(), sa.ForeignKey("pcbs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity_produced", sa.Integer(), nullable=False),
        sa.Column("produced_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity_produced > 0", name="CK_ProductionLog_Qty_Positive"),
    )
    op.create_index("ix_production_logs_pcb_id", "production_logs", ["pcb_id"])
    op.create_index("ix_production_logs_produced_at", "production_logs", ["produced_at"])

    op.create_table(
        "consumption_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id", ondelete="CASCADE"), nullable=False),
        sa.Column("production_log_id", sa.Integer(), sa.ForeignKey("production_logs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity_deducted", sa.Numeric(14, 3), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("quantity_deducted > 0", name="CK_Consumption_Qty_Positive"),
    )
    op.create_index("ix_consumption_history_component_id", "consumption_history", ["component_id"])
    op.create_index("ix_consumption_history_production_log_id", "consumption_history", ["production_log_id"])
    op.create_index("ix_consumption_history_created_at", "consumption_history", ["created_at"])

    op.create_table(
        "procurement_triggers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("component_id", sa.Integer(), sa.ForeignKey("components.id", ondelete="CASCADE"), nullable=False),
        sa.Column("trigger_date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'open'")),
        sa.CheckConstraint("status in ('open','resolved')", name="CK_ProcurementTrigger_Status"),
    )
    op.create_index("IX_ProcurementTrigger_Status", "procurement_triggers", ["status"])


def downgrade() -> None:
    op.drop_index("IX_ProcurementTrigger_Status", table_name="procurement_triggers")
    op.drop_table("procurement_triggers")
    op.drop_index("ix_consumption_history_created_at", table_name="consumption_history")
    op.drop_index("ix_consumption_history_production_log_id", table_name="consumption_history")
    op.drop_index("ix_consumption_history_component_id", table_name="consumption_history")
    op.drop_table("consumption_history")
    op.drop_index("ix_production_logs_produced_at", table_name="production_logs")
    op.drop_index("ix_production_logs_pcb_id", table_name="production_logs")
    op.drop_table("production_logs")
    op.drop_index("ix_pcb_components_component_id", table_name="pcb_components")
    op.drop_index("ix_pcb_components_pcb_id", table_name="pcb_components")
    op.drop_table("pcb_components")
    op.drop_table("pcbs")
    op.drop_table("components")
