"""
Dashboard metrics service.

Recomputes every rollup from a fresh snapshot of the record store on each
call. Only active (non-archived) records are considered.
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime, timedelta

from fastapi import Depends

from app.db.json_store import JsonRecordStore, get_record_store
from app.infrastructure.observability.logging import get_logger
from app.models.domain.crm_domain import (
    DEFAULT_TASK_STATUS,
    LOST_STAGE,
    OPPORTUNITY_STAGES,
    Contact,
    ContactsSeries,
    MetricsSnapshot,
    Opportunity,
    Task,
)

logger = get_logger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class MetricsAggregator:
    NEW_CONTACTS_WINDOW_DAYS = 30
    SERIES_BUCKETS = 8
    SERIES_BUCKET_DAYS = 7

    def __init__(self, store: JsonRecordStore):
        self.store = store

    def compute(self, now: datetime | None = None) -> MetricsSnapshot:
        now = _as_utc(now) or datetime.now(UTC)
        document = self.store.snapshot()

        contacts = [Contact.model_validate(r) for r in document.contacts]
        opportunities = [Opportunity.model_validate(r) for r in document.opportunities]
        tasks = [Task.model_validate(r) for r in document.tasks]

        snapshot = self._build_snapshot(
            [c for c in contacts if not c.archived],
            [o for o in opportunities if not o.archived],
            [t for t in tasks if not t.archived],
            now,
        )

        logger.debug(
            "Metrics computed",
            new_contacts=snapshot.new_contacts,
            total_pipeline_value=snapshot.total_pipeline_value,
        )
        return snapshot

    def _build_snapshot(
        self,
        contacts: list[Contact],
        opportunities: list[Opportunity],
        tasks: list[Task],
        now: datetime,
    ) -> MetricsSnapshot:
        # Contacts without createdAt never count as recent
        created = [ts for ts in (_as_utc(c.created_at) for c in contacts) if ts is not None]

        # Closed window: a contact stamped exactly at now counts here, while the
        # half-open series below leaves it for the next bucket
        window_start = now - timedelta(days=self.NEW_CONTACTS_WINDOW_DAYS)
        new_contacts = sum(1 for ts in created if window_start <= ts <= now)

        total_pipeline_value = sum(o.value for o in opportunities if o.stage != LOST_STAGE)

        by_stage = {stage: 0 for stage in OPPORTUNITY_STAGES}
        for opportunity in opportunities:
            if opportunity.stage in by_stage:
                by_stage[opportunity.stage] += 1

        tasks_status = Counter(t.status or DEFAULT_TASK_STATUS for t in tasks)

        return MetricsSnapshot(
            new_contacts=new_contacts,
            total_pipeline_value=total_pipeline_value,
            by_stage=by_stage,
            contacts_series=self._contacts_series(created, now),
            tasks_status=dict(tasks_status),
        )

    def _contacts_series(self, created: list[datetime], now: datetime) -> ContactsSeries:
        """Eight half-open weekly buckets [start, end), oldest first, the last ending at now."""
        bucket = timedelta(days=self.SERIES_BUCKET_DAYS)
        labels: list[str] = []
        data: list[int] = []

        for offset in range(self.SERIES_BUCKETS, 0, -1):
            start = now - offset * bucket
            end = start + bucket
            labels.append(f"{start.month}/{start.day}")
            data.append(sum(1 for ts in created if start <= ts < end))

        return ContactsSeries(labels=labels, data=data)


def get_metrics_aggregator(
    store: JsonRecordStore = Depends(get_record_store),
) -> MetricsAggregator:
    return MetricsAggregator(store)
