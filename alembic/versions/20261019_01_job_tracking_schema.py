"""Job tracking, scheduling state, thresholds, and result log schema

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "pending_job",
        sa.Column("slot_index", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("target_key", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("handle", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("slot_index >= 0", name="ck_pending_job_slot_index"),
    )
    op.create_index("ix_pending_job_target_key", "pending_job", ["target_key"])

    op.create_table(
        "scheduler_state",
        sa.Column("owner_id", sa.Text(), primary_key=True),
        sa.Column("activation_id", sa.Text(), nullable=False),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "metric_threshold",
        sa.Column("position", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("metric_name", sa.Text(), nullable=False),
        sa.Column("threshold_value", sa.Float(), nullable=False),
    )

    op.create_table(
        "metric_result",
        sa.Column("result_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("target_key", sa.Text(), nullable=False),
        sa.Column("completed_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metrics_json", sa.Text(), nullable=False),
        sa.Column("report_link", sa.Text(), nullable=False),
        sa.Column("recorded_at_utc", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_metric_result_target_key", "metric_result", ["target_key"])

    op.create_table(
        "cycle_error",
        sa.Column("error_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("target_key", sa.Text(), nullable=True),
        sa.Column("error_type", sa.Text(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("recorded_at_utc", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("cycle_error")
    op.drop_index("ix_metric_result_target_key", table_name="metric_result")
    op.drop_table("metric_result")
    op.drop_table("metric_threshold")
    op.drop_table("scheduler_state")
    op.drop_index("ix_pending_job_target_key", table_name="pending_job")
    op.drop_table("pending_job")
