"""add approval status to event participants

Revision ID: add_status_to_event_participants
Revises: create_akvora_tables
Create Date: 2026-02-10

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "add_status_to_event_participants"
down_revision = "create_akvora_tables"
branch_labels = None
depends_on = None

# Shared with workshop_registrations.status, which already created the type
registration_status = postgresql.ENUM(
    "PENDING", "APPROVED", "REJECTED", name="registrationstatus", create_type=False
)


def upgrade():
    # Entries that predate approval tracking are treated as approved
    with op.batch_alter_table("event_participants") as batch_op:
        batch_op.add_column(
            sa.Column("status", registration_status, nullable=False, server_default="APPROVED")
        )
        batch_op.add_column(sa.Column("rejection_reason", sa.Text(), nullable=True))
        batch_op.add_column(sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True))


def downgrade():
    with op.batch_alter_table("event_participants") as batch_op:
        batch_op.drop_column("rejected_at")
        batch_op.drop_column("rejection_reason")
        batch_op.drop_column("status")
