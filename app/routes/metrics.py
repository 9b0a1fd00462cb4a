"""
Dashboard metrics route.
Recomputed from the record store on every request.
"""

from fastapi import APIRouter, Depends

from app.models.domain.crm_domain import MetricsSnapshot
from app.services.metrics_service import MetricsAggregator, get_metrics_aggregator

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics", response_model=MetricsSnapshot)
def get_metrics(aggregator: MetricsAggregator = Depends(get_metrics_aggregator)):
    """New contacts, pipeline value, stage counts, weekly series and task statuses."""
    return aggregator.compute()
