"""production_logs: quantity_ok / quantity_scrap

Revision ID: 8f3b6c41d2e7
Revises: 5c1e2a7d9b10
Create Date: 2026-09-21 15:40:07.530912
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8f3b6c41d2e7"
down_revision: Union[str, Sequence[str], None] = "5c1e2a7d9b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # batch mode so sqlite can rebuild the table for the CHECKs
    with op.batch_alter_table("production_logs") as batch:
        batch.add_column(sa.Column("quantity_ok", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("quantity_scrap", sa.Integer(), nullable=True))
        batch.create_check_constraint("CK_ProductionLog_Ok_NonNegative", "quantity_ok IS NULL OR quantity_ok >= 0")
        batch.create_check_constraint("CK_ProductionLog_Scrap_NonNegative", "quantity_scrap IS NULL OR quantity_scrap >= 0")
        batch.create_check_constraint(
            "CK_ProductionLog_QuantitySum",
            "quantity_ok IS NULL OR quantity_scrap IS NULL OR quantity_produced = quantity_ok + quantity_scrap",
        )


def downgrade() -> None:
    with op.batch_alter_table("production_logs") as batch:
        batch.drop_constraint("CK_ProductionLog_QuantitySum", type_="check")
        batch.drop_constraint("CK_ProductionLog_Scrap_NonNegative", type_="check")
        batch.drop_constraint("CK_ProductionLog_Ok_NonNegative", type_="check")
        batch.drop_column("quantity_scrap")
        batch.drop_column("quantity_ok")
