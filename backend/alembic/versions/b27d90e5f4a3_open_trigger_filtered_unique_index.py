"""procurement_triggers: at most one open trigger per component

Revision ID: b27d90e5f4a3
Revises: 8f3b6c41d2e7
Create Date: 2026-10-02 09:12:55.204416
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "b27d90e5f4a3"
down_revision: Union[str, Sequence[str], None] = "8f3b6c41d2e7"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

INDEX = "UX_ProcurementTrigger_Component_Open"
OPEN_ONLY = sa.text("status = 'open'")


def upgrade() -> None:
    # duplicates from before the index: keep the oldest open trigger
    op.execute(
        """
        UPDATE procurement_triggers SET status = 'resolved'
        WHERE status = 'open'
          AND id NOT IN (
              SELECT keep_id FROM (
                  SELECT MIN(id) AS keep_id FROM procurement_triggers
                  WHERE status = 'open' GROUP BY component_id
              ) t
          )
        """
    )
    op.create_index(
        INDEX,
        "procurement_triggers",
        ["component_id"],
        unique=True,
        sqlite_where=OPEN_ONLY,
        postgresql_where=OPEN_ONLY,
        mssql_where=OPEN_ONLY,
    )


def downgrade() -> None:
    op.drop_index(INDEX, table_name="procurement_triggers")
