"""Analytics endpoints over the configured patient export."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query

from neolink_insight.dashboard.api.dependencies import RecordsDep
from neolink_insight.dashboard.models.analytics import (
    AnalyticsSummaryResponse,
    OutcomeGroup,
    OutcomeStatsResponse,
    TrendsResponse,
)
from neolink_insight.domain.enums import Outcome, RelativeDateRange, Unit
from neolink_insight.domain.query_spec import DateRange
from neolink_insight.domain.retrieval_result import CategoryCount
from neolink_insight.domain.services.analytics import (
    CUSTOM_PERIOD,
    get_analytics_summary,
    get_outcome_stats,
    get_trends_data,
    outcome_stats_frame,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummaryResponse)
def analytics_summary(
    records: RecordsDep,
    unit: Optional[str] = Query(None, description="Unit code or name, e.g. NICU"),
    outcome: Optional[str] = Query(None, description="Outcome, e.g. Deceased"),
    period: Optional[RelativeDateRange] = Query(None, description="Relative date window")
) -> AnalyticsSummaryResponse:
    """Outcome and unit overview, optionally filtered by unit, outcome and period."""
    unit_filter = Unit.from_value(unit) if unit else None
    if unit and unit_filter is None:
        raise HTTPException(status_code=400, detail=f"Unknown unit: {unit}")
    outcome_filter = Outcome.from_value(outcome) if outcome else None
    if outcome and outcome_filter is None:
        raise HTTPException(status_code=400, detail=f"Unknown outcome: {outcome}")

    date_range = DateRange(relative=period) if period else None
    summary_text = get_analytics_summary(records, unit=unit_filter, outcome=outcome_filter, date_range=date_range)
    return AnalyticsSummaryResponse(
        unit=unit_filter.value if unit_filter else None,
        outcome=outcome_filter.value if outcome_filter else None,
        period=period.value if period else None,
        summary_text=summary_text,
    )


@router.get("/outcomes", response_model=OutcomeStatsResponse)
def outcome_statistics(
    records: RecordsDep,
    group_by: Literal["unit", "diagnosis", "birthWeight", "gender"] = Query("unit", description="Grouping field")
) -> OutcomeStatsResponse:
    """Outcome counts and percentages per group."""
    counts = outcome_stats_frame(records, group_by)

    groups = []
    for group, rows in counts.groupby("group", sort=False):
        groups.append(OutcomeGroup(
            group=str(group),
            total=int(rows["group_total"].iloc[0]),
            outcomes=[
                CategoryCount(category=str(row.outcome), count=int(row.patients), percentage=float(row.percentage))
                for row in rows.itertuples(index=False)
            ],
        ))

    return OutcomeStatsResponse(
        group_by=group_by,
        groups=groups,
        summary_text=get_outcome_stats(records, group_by),
    )


@router.get("/trends", response_model=TrendsResponse)
def trends(
    records: RecordsDep,
    period: str = Query(RelativeDateRange.LAST_30_DAYS.value, description="today, yesterday, last7days, last30days or custom"),
    start: Optional[datetime] = Query(None, description="Start of a custom period"),
    end: Optional[datetime] = Query(None, description="End of a custom period")
) -> TrendsResponse:
    """Admission, discharge, death and referral totals for a period.

    Raises:
        ValueError: Unknown period or custom period without bounds (mapped to 400)
    """
    custom_range = None
    if period == CUSTOM_PERIOD and (start is not None or end is not None):
        custom_range = DateRange(start=start, end=end)
    summary_text = get_trends_data(records, period, custom_range=custom_range)
    return TrendsResponse(period=period, summary_text=summary_text)
