"""Analytics response models for dashboard API."""

from typing import Optional

from pydantic import BaseModel, Field

from neolink_insight.domain.retrieval_result import CategoryCount


class AnalyticsSummaryResponse(BaseModel):
    """Outcome and unit overview.

    Attributes:
        unit: Unit filter applied, if any
        outcome: Outcome filter applied, if any
        period: Relative date window applied, if any
        summary_text: The overview as plain text
    """
    unit: Optional[str] = None
    outcome: Optional[str] = None
    period: Optional[str] = None
    summary_text: str


class OutcomeGroup(BaseModel):
    """Outcome counts of one group (unit, diagnosis, weight band or gender)."""
    group: str
    total: int
    outcomes: list[CategoryCount] = Field(default_factory=list)


class OutcomeStatsResponse(BaseModel):
    """Outcome statistics grouped by one field."""
    group_by: str
    groups: list[OutcomeGroup] = Field(default_factory=list)
    summary_text: str


class TrendsResponse(BaseModel):
    """Admission, discharge, death and referral totals for a period."""
    period: str
    summary_text: str
