"""add AKVORA ID to users

Revision ID: add_akvora_id_to_users
Revises: add_status_to_event_participants
Create Date: 2026-03-02

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "add_akvora_id_to_users"
down_revision = "add_status_to_event_participants"
branch_labels = None
depends_on = None


def upgrade():
    # Existing users are given an id the next time their profile is loaded
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("akvora_id", sa.String(length=32), nullable=True))
        batch_op.add_column(sa.Column("registered_year", sa.Integer(), nullable=True))
        batch_op.create_unique_constraint("uq_users_akvora_id", ["akvora_id"])


def downgrade():
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("uq_users_akvora_id", type_="unique")
        batch_op.drop_column("registered_year")
        batch_op.drop_column("akvora_id")
