"""link templates to the default business calendar

Templates created before calendar_id existed were always calculated against
the calendar named "Comercial Brasil". Pin that choice on the rows so the
resolver no longer depends on the name.

Revision ID: 8e4f0b6c5d21
Revises: 3c1d7e9a2b10
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e4f0b6c5d21'
down_revision: Union[str, None] = '3c1d7e9a2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_CALENDAR_NAME = 'Comercial Brasil'


def upgrade() -> None:
    op.execute(
        sa.text(
            "UPDATE sla_templates SET calendar_id = "
            "(SELECT id FROM business_calendars WHERE name = :name) "
            "WHERE calendar_id IS NULL"
        ).bindparams(name=DEFAULT_CALENDAR_NAME)
    )


def downgrade() -> None:
    # Row links cannot be told apart from ones set by administrators afterwards
    pass
