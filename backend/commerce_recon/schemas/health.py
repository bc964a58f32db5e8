from datetime import datetime

from pydantic import BaseModel


class SchedulerStatus(BaseModel):
    running: bool
    jobs: int
    schedule: str
    lookback_days: int


class HealthResponse(BaseModel):
    status: str
    database: str
    scheduler: SchedulerStatus
    timestamp: datetime
    environment: str
    version: str


class PlatformRecordCounts(BaseModel):
    shopify_orders: int = 0
    razorpay_payments: int = 0
    easyecom_orders: int = 0
    reconciliations: int = 0


class StatusResponse(BaseModel):
    records: PlatformRecordCounts
    scheduler: SchedulerStatus
    latest_run_id: str | None = None
    latest_run_status: str | None = None
    latest_run_at: datetime | None = None
