"""Health check endpoint for dashboard API."""

import logging

from fastapi import APIRouter

from neolink_insight.dashboard.api.dependencies import AnalyzerDep, RecordStoreDep
from neolink_insight.dashboard.models.health import HealthResponse, RecordSourceHealth
from neolink_insight.dashboard.services.record_store import RecordStore
from neolink_insight.domain.ports import RecordLoadError
from neolink_insight.infrastructure.settings import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def check_record_source(store: RecordStore) -> RecordSourceHealth:
    """Check that the patient export can be loaded.

    Parameters:
        store: Record store instance

    Returns:
        RecordSourceHealth: Record source status and counts

    Security Impact:
        - Only counts are reported, no patient data is exposed
    """
    try:
        records = store.records()
    except RecordLoadError as e:
        logger.warning(f"Record source health check failed: {str(e)}")
        return RecordSourceHealth(status="unavailable", source=store.source)

    return RecordSourceHealth(
        status="loaded",
        source=store.source,
        record_count=len(records),
        rejected_count=store.rejected_count,
        loaded_at=store.loaded_at,
    )


@router.get("/health", response_model=HealthResponse)
def health_check(store: RecordStoreDep, analyzer: AnalyzerDep) -> HealthResponse:
    """Health check endpoint.

    Returns "healthy" when the patient export is loaded and "degraded"
    when questions can be analyzed but there are no records to query.
    """
    records_health = check_record_source(store)
    status = "healthy" if records_health.status == "loaded" else "degraded"
    return HealthResponse(
        status=status,
        version=APP_VERSION,
        analyzer=analyzer.name,
        records=records_health,
    )
