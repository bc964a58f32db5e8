"""Initial schema: platform records, reconciliation runs and outcomes, audit log

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    # Platform record tables
    op.create_table(
        "shopify_orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("shopify_order_id", sa.String(100), nullable=False, unique=True),
        sa.Column("order_number", sa.String(50), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("financial_status", sa.String(50), nullable=True),
        sa.Column("fulfillment_status", sa.String(50), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("raw_data", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_shopify_orders_occurred_at", "shopify_orders", ["occurred_at"])

    op.create_table(
        "razorpay_payments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("razorpay_id", sa.String(100), nullable=False, unique=True),
        sa.Column("order_id", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("method", sa.String(50), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("contact", sa.String(50), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("raw_data", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_razorpay_payments_occurred_at", "razorpay_payments", ["occurred_at"])

    op.create_table(
        "easyecom_orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("easyecom_order_id", sa.String(100), nullable=False, unique=True),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("marketplace_order_id", sa.String(100), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("payment_status", sa.String(50), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("raw_data", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_easyecom_orders_occurred_at", "easyecom_orders", ["occurred_at"])

    # Reconciliation runs
    op.create_table(
        "reconciliation_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("run_id", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "status",
            sa.Enum("RUNNING", "COMPLETED", "FAILED", name="run_status"),
            nullable=False,
            server_default="RUNNING",
        ),
        sa.Column("run_by", sa.String(200), nullable=True),
        sa.Column("window_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("window_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("records_processed", sa.Integer, server_default="0"),
        sa.Column("records_matched", sa.Integer, server_default="0"),
        sa.Column("records_partial", sa.Integer, server_default="0"),
        sa.Column("records_discrepancy", sa.Integer, server_default="0"),
        sa.Column("records_unmatched", sa.Integer, server_default="0"),
        sa.Column("processing_time_ms", sa.Integer, nullable=True),
        sa.Column("errors", sa.JSON, nullable=True),
    )
    op.create_index("ix_reconciliation_logs_run_id", "reconciliation_logs", ["run_id"])

    op.create_table(
        "reconciliation_outcomes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "run_id",
            sa.String(64),
            sa.ForeignKey("reconciliation_logs.run_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("shopify_order_id", sa.String(100), nullable=True),
        sa.Column("razorpay_payment_id", sa.String(100), nullable=True),
        sa.Column("easyecom_order_id", sa.String(100), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "MATCHED", "PARTIAL_MATCH", "DISCREPANCY", "UNMATCHED", "UNDER_REVIEW", "RESOLVED",
                name="reconciliation_status",
            ),
            nullable=False,
        ),
        sa.Column("match_confidence", sa.Float, server_default="0"),
        sa.Column("amount_difference", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("reconciled_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_reconciliation_outcomes_run_id", "reconciliation_outcomes", ["run_id"])
    op.create_index("ix_reconciliation_outcomes_shopify_order_id", "reconciliation_outcomes", ["shopify_order_id"])
    op.create_index("ix_reconciliation_outcomes_razorpay_payment_id", "reconciliation_outcomes", ["razorpay_payment_id"])
    op.create_index("ix_reconciliation_outcomes_easyecom_order_id", "reconciliation_outcomes", ["easyecom_order_id"])

    # Audit log (append-only)
    op.create_table(
        "audit_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=True),
        sa.Column("entity_id", sa.String(100), nullable=True),
        sa.Column("actor", sa.String(200), nullable=True),
        sa.Column("actor_type", sa.String(50), nullable=True, server_default="system"),
        sa.Column("event_data", sa.JSON, nullable=True),
        sa.Column("rationale", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_events_event_type", "audit_events", ["event_type"])
    op.create_index("ix_audit_events_entity_id", "audit_events", ["entity_id"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("reconciliation_outcomes")
    op.drop_table("reconciliation_logs")
    op.drop_table("easyecom_orders")
    op.drop_table("razorpay_payments")
    op.drop_table("shopify_orders")
    op.execute("DROP TYPE IF EXISTS reconciliation_status")
    op.execute("DROP TYPE IF EXISTS run_status")
