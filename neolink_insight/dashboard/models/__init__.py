"""Pydantic models for dashboard API requests and responses."""

from neolink_insight.dashboard.models.analytics import (
    AnalyticsSummaryResponse,
    OutcomeGroup,
    OutcomeStatsResponse,
    TrendsResponse,
)
from neolink_insight.dashboard.models.health import HealthResponse, RecordSourceHealth
from neolink_insight.dashboard.models.query import QueryRequest, QueryResponse

__all__ = [
    "AnalyticsSummaryResponse",
    "HealthResponse",
    "OutcomeGroup",
    "OutcomeStatsResponse",
    "QueryRequest",
    "QueryResponse",
    "RecordSourceHealth",
    "TrendsResponse",
]
