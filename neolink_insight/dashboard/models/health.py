"""Health check models for dashboard API."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field


class RecordSourceHealth(BaseModel):
    """Record source health status model.

    Attributes:
        status: Whether the patient export could be loaded
        source: Configured export path (None when not configured)
        record_count: Validated records in memory
        rejected_count: Records rejected during validation
        loaded_at: When the snapshot was read
    """
    status: Literal["loaded", "unavailable"]
    source: Optional[str] = None
    record_count: int = 0
    rejected_count: int = 0
    loaded_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Overall system status
        timestamp: Current timestamp
        version: Application version
        analyzer: Name of the active intent analyzer
        records: Record source health information
    """
    status: Literal["healthy", "degraded"]
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Current UTC timestamp"
    )
    version: str = Field(default="1.0.0", description="Application version")
    analyzer: str
    records: RecordSourceHealth
