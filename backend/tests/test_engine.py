"""Tests for ReconciliationEngine run lifecycle and reporting."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from commerce_recon.audit_generator.service import AuditService
from commerce_recon.models.platform import EasyecomOrder, RazorpayPayment, ShopifyOrder
from commerce_recon.models.reconciliation import (
    ReconciliationLog,
    ReconciliationOutcome,
    ReconciliationStatus,
    RunStatus,
)
from commerce_recon.reconciliation_engine.aggregator import RunAggregator
from commerce_recon.reconciliation_engine.errors import (
    InvalidRangeError,
    RunNotFoundError,
    SyncFailure,
)
from commerce_recon.reconciliation_engine.normalizer import SourceKind
from commerce_recon.reconciliation_engine.service import (
    ReconciliationEngine,
    new_run_id,
    profiles_from_settings,
)
from commerce_recon.reconciliation_engine.store import ReconciliationStore
from conftest import T0, FakeAdapter

START = T0 - timedelta(days=3)
END = T0 + timedelta(days=1)


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestEngineHelpers:
    def test_run_id_format(self):
        run_id = new_run_id()
        assert run_id.startswith("RUN_")
        assert len(run_id.split("_")) == 3
        assert new_run_id() != run_id

    def test_profiles_follow_settings(self, test_settings):
        test_settings.amount_tolerance_pct = 0.02
        test_settings.easyecom_window_hours = 72
        razorpay, easyecom = profiles_from_settings(test_settings)
        assert razorpay.amount_tolerance_pct == Decimal("0.02")
        assert razorpay.identity_weight == 40
        assert easyecom.window_hours == 72
        assert easyecom.reference_weight == 60


class TestReconcile:
    @pytest.mark.asyncio
    async def test_completed_run(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        run_id = await engine.reconcile(db_session, START, END, run_by="tester")

        log = (await db_session.execute(
            select(ReconciliationLog).where(ReconciliationLog.run_id == run_id)
        )).scalar_one()
        assert log.status == RunStatus.COMPLETED
        assert log.run_by == "tester"
        assert log.records_processed == 2
        assert log.records_matched == 1
        assert log.records_unmatched == 1
        assert log.end_time is not None
        assert log.processing_time_ms is not None
        assert log.errors is None

        outcomes = (await db_session.execute(
            select(ReconciliationOutcome).where(ReconciliationOutcome.run_id == run_id)
        )).scalars().all()
        by_status = {o.status: o for o in outcomes}
        matched = by_status[ReconciliationStatus.MATCHED]
        assert matched.shopify_order_id == "1001"
        assert matched.razorpay_payment_id == "pay_A"
        assert matched.easyecom_order_id == "E-1"
        assert matched.match_confidence == 100.0
        assert by_status[ReconciliationStatus.UNMATCHED].razorpay_payment_id == "pay_STRAY"

    @pytest.mark.asyncio
    async def test_sync_uses_run_window(self, db_session, test_settings, fake_adapters):
        await ReconciliationEngine(test_settings, fake_adapters).reconcile(db_session, START, END)

        for adapter in fake_adapters:
            assert adapter.calls == [(START, END)]
        assert await count(db_session, ShopifyOrder) == 1
        assert await count(db_session, RazorpayPayment) == 2
        assert await count(db_session, EasyecomOrder) == 1

    @pytest.mark.asyncio
    async def test_records_outside_window_are_ignored(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        await engine.reconcile(db_session, START, END)

        # Second run only covers the day before T0: just the stray payment
        run_id = await engine.reconcile(db_session, START, T0 - timedelta(hours=1))
        log = (await db_session.execute(
            select(ReconciliationLog).where(ReconciliationLog.run_id == run_id)
        )).scalar_one()
        assert log.records_processed == 1
        assert log.records_unmatched == 1

    @pytest.mark.asyncio
    async def test_rerun_does_not_duplicate_records(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        first = await engine.reconcile(db_session, START, END)
        second = await engine.reconcile(db_session, START, END)

        assert first != second
        assert await count(db_session, ShopifyOrder) == 1
        assert await count(db_session, ReconciliationOutcome) == 4

    @pytest.mark.asyncio
    async def test_inverted_window_fails_before_any_io(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        with pytest.raises(InvalidRangeError):
            await engine.reconcile(db_session, END, START)
        with pytest.raises(InvalidRangeError):
            await engine.reconcile(db_session, START, START)

        assert await count(db_session, ReconciliationLog) == 0
        assert all(adapter.calls == [] for adapter in fake_adapters)

    @pytest.mark.asyncio
    async def test_sync_failure_marks_run_failed(self, db_session, test_settings, fake_adapters):
        fake_adapters[1] = FakeAdapter(test_settings, SourceKind.RAZORPAY, configured=False)
        engine = ReconciliationEngine(test_settings, fake_adapters)

        with pytest.raises(SyncFailure, match="razorpay"):
            await engine.reconcile(db_session, START, END)

        log = (await db_session.execute(select(ReconciliationLog))).scalar_one()
        assert log.status == RunStatus.FAILED
        assert log.end_time is not None
        assert log.errors["type"] == "SyncFailure"
        assert "credentials are not configured" in log.errors["message"]
        assert "Traceback" in log.errors["traceback"]
        assert await count(db_session, ReconciliationOutcome) == 0
        # Nothing is saved when any fetch fails
        assert await count(db_session, ShopifyOrder) == 0

        events, total = await AuditService.get_events(db_session, entity_id=log.run_id)
        assert total == 1
        assert events[0].event_type == "RECONCILIATION_FAILED"

    @pytest.mark.asyncio
    async def test_persistence_error_leaves_no_outcomes(self, db_session, test_settings, fake_adapters, monkeypatch):
        append_outcomes = ReconciliationStore.append_outcomes

        async def flush_then_fail(self, run_id, outcomes):
            await append_outcomes(self, run_id, outcomes)
            raise RuntimeError("outcome insert failed")

        monkeypatch.setattr(ReconciliationStore, "append_outcomes", flush_then_fail)
        engine = ReconciliationEngine(test_settings, fake_adapters)

        with pytest.raises(RuntimeError, match="outcome insert failed"):
            await engine.reconcile(db_session, START, END)

        log = (await db_session.execute(select(ReconciliationLog))).scalar_one()
        assert log.status == RunStatus.FAILED
        assert log.errors["type"] == "RuntimeError"
        assert "Traceback" in log.errors["traceback"]
        assert await count(db_session, ReconciliationOutcome) == 0
        # Sync is committed before matching starts
        assert await count(db_session, ShopifyOrder) == 1

    @pytest.mark.asyncio
    async def test_matching_error_marks_run_failed(self, db_session, test_settings, fake_adapters, monkeypatch):
        def explode(self, *args):
            raise ValueError("bad amount")

        monkeypatch.setattr(RunAggregator, "reconcile", explode)

        with pytest.raises(ValueError, match="bad amount"):
            await ReconciliationEngine(test_settings, fake_adapters).reconcile(db_session, START, END)

        log = (await db_session.execute(select(ReconciliationLog))).scalar_one()
        assert log.status == RunStatus.FAILED
        assert log.errors["type"] == "ValueError"
        assert await count(db_session, ReconciliationOutcome) == 0

    @pytest.mark.asyncio
    async def test_failing_audit_write_keeps_original_error(self, db_session, test_settings, fake_adapters, monkeypatch):
        async def audit_down(*args, **kwargs):
            raise RuntimeError("audit table unavailable")

        monkeypatch.setattr(AuditService, "log_event", audit_down)
        fake_adapters[0] = FakeAdapter(test_settings, SourceKind.SHOPIFY, configured=False)

        with pytest.raises(SyncFailure, match="shopify"):
            await ReconciliationEngine(test_settings, fake_adapters).reconcile(db_session, START, END)

        log = (await db_session.execute(select(ReconciliationLog))).scalar_one()
        assert log.status == RunStatus.FAILED
        assert log.errors["type"] == "SyncFailure"

    @pytest.mark.asyncio
    async def test_failing_finalize_keeps_original_error(self, db_session, test_settings, fake_adapters, monkeypatch):
        async def finalize_down(self, *args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(ReconciliationStore, "finalize_run_log", finalize_down)
        fake_adapters[2] = FakeAdapter(test_settings, SourceKind.EASYECOM, configured=False)

        with pytest.raises(SyncFailure, match="easyecom"):
            await ReconciliationEngine(test_settings, fake_adapters).reconcile(db_session, START, END)

    @pytest.mark.asyncio
    async def test_completed_run_is_audited(self, db_session, test_settings, fake_adapters):
        run_id = await ReconciliationEngine(test_settings, fake_adapters).reconcile(db_session, START, END)

        events, total = await AuditService.get_events(db_session, event_type="RECONCILIATION_COMPLETED")
        assert total == 1
        assert events[0].entity_id == run_id
        assert events[0].event_data["matched"] == 1
        assert events[0].event_data["processed"] == 2


class TestReport:
    @pytest.mark.asyncio
    async def test_report_without_runs(self, db_session, test_settings, fake_adapters):
        report = await ReconciliationEngine(test_settings, fake_adapters).get_report(db_session)
        assert report["run"] is None
        assert report["outcomes"] == []
        assert report["summary"]["total"] == 0

    @pytest.mark.asyncio
    async def test_report_for_run(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        run_id = await engine.reconcile(db_session, START, END)

        report = await engine.get_report(db_session, run_id)
        assert report["run"].run_id == run_id
        assert len(report["outcomes"]) == 2
        assert report["summary"] == {
            "total": 2,
            "matched": 1,
            "partial_match": 0,
            "discrepancy": 0,
            "unmatched": 1,
            "under_review": 0,
            "resolved": 0,
        }

    @pytest.mark.asyncio
    async def test_default_report_skips_failed_runs(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        completed = await engine.reconcile(db_session, START, END)

        broken = list(fake_adapters)
        broken[2] = FakeAdapter(test_settings, SourceKind.EASYECOM, configured=False)
        with pytest.raises(SyncFailure):
            await ReconciliationEngine(test_settings, broken).reconcile(db_session, START, END)

        report = await engine.get_report(db_session)
        assert report["run"].run_id == completed
        assert report["summary"]["total"] == 2

    @pytest.mark.asyncio
    async def test_failed_run_report_has_no_outcomes(self, db_session, test_settings):
        adapters = [FakeAdapter(test_settings, source, configured=False) for source in SourceKind]
        engine = ReconciliationEngine(test_settings, adapters)
        with pytest.raises(SyncFailure):
            await engine.reconcile(db_session, START, END)

        run_id = (await engine.get_logs(db_session))[0].run_id
        report = await engine.get_report(db_session, run_id)
        assert report["run"].status == RunStatus.FAILED
        assert report["outcomes"] == []
        assert report["summary"]["total"] == 0

    @pytest.mark.asyncio
    async def test_unknown_run(self, db_session, test_settings, fake_adapters):
        with pytest.raises(RunNotFoundError):
            await ReconciliationEngine(test_settings, fake_adapters).get_report(db_session, "RUN_missing")

    @pytest.mark.asyncio
    async def test_logs_newest_first(self, db_session, test_settings, fake_adapters):
        engine = ReconciliationEngine(test_settings, fake_adapters)
        first = await engine.reconcile(db_session, START, END)
        second = await engine.reconcile(db_session, START, END)

        logs = await engine.get_logs(db_session, limit=10)
        assert [log.run_id for log in logs] == [second, first]
        assert len(await engine.get_logs(db_session, limit=1)) == 1
