"""AuditService — append-only trail of reconciliation run events.

Events are added to the caller's transaction, so a run's audit entry commits
or rolls back together with the run log it describes.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commerce_recon.models.audit import AuditEvent

RUN_COMPLETED = "RECONCILIATION_COMPLETED"
RUN_FAILED = "RECONCILIATION_FAILED"
RUN_ENTITY = "reconciliation_run"

# Actors that trigger runs without a human behind them
SYSTEM_ACTORS = frozenset({"system", "scheduler"})


class AuditService:
    """Static audit event logger and query interface."""

    @staticmethod
    def actor_type_for(actor: str) -> str:
        return "system" if actor in SYSTEM_ACTORS else "user"

    @staticmethod
    async def log_event(
        db: AsyncSession,
        *,
        event_type: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        actor: str = "system",
        actor_type: str | None = None,
        event_data: dict | None = None,
        rationale: str | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            actor_type=actor_type or AuditService.actor_type_for(actor),
            event_data=event_data,
            rationale=rationale,
        )
        db.add(event)
        await db.flush()
        return event

    @staticmethod
    async def get_events(
        db: AsyncSession,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        event_type: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[list[AuditEvent], int]:
        """One page of events, newest first, plus the total matching count."""
        filters = []
        if entity_type:
            filters.append(AuditEvent.entity_type == entity_type)
        if entity_id:
            filters.append(AuditEvent.entity_id == entity_id)
        if event_type:
            filters.append(AuditEvent.event_type == event_type)

        total = (await db.execute(
            select(func.count(AuditEvent.id)).where(*filters)
        )).scalar_one()

        result = await db.execute(
            select(AuditEvent)
            .where(*filters)
            .order_by(AuditEvent.created_at.desc(), AuditEvent.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total
