"""ORM models for reconciliation run logs and outcomes."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commerce_recon.models.base import Base


class ReconciliationStatus(str, enum.Enum):
    MATCHED = "MATCHED"
    PARTIAL_MATCH = "PARTIAL_MATCH"
    DISCREPANCY = "DISCREPANCY"
    UNMATCHED = "UNMATCHED"
    # Set only by an external review workflow, never by matching
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"


class RunStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ReconciliationLog(Base):
    __tablename__ = "reconciliation_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    status: Mapped[RunStatus] = mapped_column(
        SAEnum(RunStatus, name="run_status", values_callable=lambda e: [m.value for m in e]),
        default=RunStatus.RUNNING,
        nullable=False,
    )
    run_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    window_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    window_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    records_processed: Mapped[int] = mapped_column(Integer, default=0)
    records_matched: Mapped[int] = mapped_column(Integer, default=0)
    records_partial: Mapped[int] = mapped_column(Integer, default=0)
    records_discrepancy: Mapped[int] = mapped_column(Integer, default=0)
    records_unmatched: Mapped[int] = mapped_column(Integer, default=0)
    processing_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    errors: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    outcomes: Mapped[list["ReconciliationOutcome"]] = relationship(
        back_populates="run", cascade="all, delete-orphan"
    )


class ReconciliationOutcome(Base):
    __tablename__ = "reconciliation_outcomes"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    run_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("reconciliation_logs.run_id", ondelete="CASCADE"), nullable=False, index=True
    )
    shopify_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    easyecom_order_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    status: Mapped[ReconciliationStatus] = mapped_column(
        SAEnum(ReconciliationStatus, name="reconciliation_status",
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    match_confidence: Mapped[float] = mapped_column(Float, default=0.0)
    amount_difference: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reconciled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    run: Mapped["ReconciliationLog"] = relationship(back_populates="outcomes")
