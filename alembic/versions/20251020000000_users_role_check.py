"""Restrict users.role to admin, member, rules_committee, guest.

Revision ID: 20251020000000
Revises: 20251019000000
Create Date: 2025-10-20

"""
from typing import Sequence, Union

from alembic import op

revision: str = "20251020000000"
down_revision: Union[str, None] = "20251019000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_CHECK_SQL = "role IN ('admin', 'guest', 'member', 'rules_committee')"


def upgrade() -> None:
    # batch mode so SQLite (which cannot ALTER constraints) rebuilds the table.
    with op.batch_alter_table("users") as batch_op:
        batch_op.create_check_constraint("ck_users_role", ROLE_CHECK_SQL)


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("ck_users_role", type_="check")
