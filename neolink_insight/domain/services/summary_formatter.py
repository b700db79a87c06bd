"""Summary formatter for retrieval results.

Turns the matched records of one query into the plain-text block a
language-model prompt builder embeds as context, together with a
structured AggregationReport carrying the same numbers.

Text shapes (every non-empty summary starts with "Found N matching patients."):
    individual  - one line per returned record, plus "...and M more"
    summary     - outcome breakdown with percentages
    statistics  - mortality rate, average birth weight, unit distribution
    trends      - admissions per local calendar day, newest first, top 10
"""

import logging
from typing import Sequence

import pandas as pd

from neolink_insight.domain.enums import PRIMARY_OUTCOMES, AggregationType, Outcome, Unit
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.retrieval_result import AggregationReport, CategoryCount
from neolink_insight.domain.utils import format_number, format_percentage, percentage, records_to_frame

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No patients found matching the specified criteria."
TREND_DAYS = 10


def _category_count(category: str, count: int, total: int) -> CategoryCount:
    share = percentage(count, total)
    return CategoryCount(
        category=category,
        count=count,
        percentage=round(share, 1) if share is not None else None,
    )


def describe_record(record: PatientRecord) -> str:
    """One-line digest of a patient used in individual listings."""
    name = record.name or "Unknown"
    if record.age is None:
        age = "N/A"
    elif record.age_unit is None:
        age = format_number(record.age)
    else:
        age = f"{format_number(record.age)} {record.age_unit.value}"
    gender = record.gender.value if record.gender else "N/A"
    diagnosis = record.diagnosis or "N/A"
    parsed_weight = record.parsed_birth_weight
    weight = f"{format_number(parsed_weight)} kg" if parsed_weight is not None else "N/A"
    return (
        f"{name} - {age}, {gender}, {diagnosis}, BW: {weight}, "
        f"{record.outcome.value}, {record.unit.value}"
    )


def _individual(matched: Sequence[PatientRecord], returned: Sequence[PatientRecord]):
    lines = [f"Patient Details (showing {len(returned)}):"]
    for index, record in enumerate(returned, start=1):
        lines.append(f"{index}. {describe_record(record)}")
    if len(matched) > len(returned):
        lines.append(f"...and {len(matched) - len(returned)} more")
    report = AggregationReport(aggregation_type=AggregationType.INDIVIDUAL, total=len(matched))
    return "\n".join(lines), report


def _outcome_counts(frame: pd.DataFrame) -> dict[str, int]:
    return {str(key): int(value) for key, value in frame["outcome"].value_counts().items()}


def _summary(frame: pd.DataFrame, total: int):
    counts = _outcome_counts(frame)
    categories = list(PRIMARY_OUTCOMES)
    if counts.get(Outcome.STEP_DOWN.value):
        categories.append(Outcome.STEP_DOWN)

    breakdown = [_category_count(outcome.value, counts.get(outcome.value, 0), total) for outcome in categories]
    lines = ["Summary:", f"- Total: {total} patients"]
    for item in breakdown:
        lines.append(f"- {item.category}: {item.count} ({format_percentage(item.count, total)}%)")

    report = AggregationReport(
        aggregation_type=AggregationType.SUMMARY,
        total=total,
        outcome_breakdown=breakdown,
    )
    return "\n".join(lines), report


def _statistics(frame: pd.DataFrame, total: int):
    deceased = _outcome_counts(frame).get(Outcome.DECEASED.value, 0)
    mortality = percentage(deceased, total)

    weights = frame["birth_weight"].dropna()
    average_weight = float(weights.mean()) if not weights.empty else None

    unit_counts = {str(key): int(value) for key, value in frame["unit"].value_counts().items()}
    distribution = [
        _category_count(unit.value, unit_counts[unit.value], total)
        for unit in Unit
        if unit_counts.get(unit.value, 0) > 0
    ]

    lines = [
        "Statistics:",
        f"- Total Patients: {total}",
        f"- Mortality Rate: {format_percentage(deceased, total)}%",
        f"- Average Birth Weight: {f'{average_weight:.2f} kg' if average_weight is not None else 'N/A'}",
        "",
        "Unit Distribution:",
    ]
    for item in distribution:
        lines.append(f"  - {item.category}: {item.count} ({format_percentage(item.count, total)}%)")

    report = AggregationReport(
        aggregation_type=AggregationType.STATISTICS,
        total=total,
        unit_distribution=distribution,
        mortality_rate=round(mortality, 1) if mortality is not None else None,
        average_birth_weight=round(average_weight, 2) if average_weight is not None else None,
    )
    return "\n".join(lines), report


def _trends(frame: pd.DataFrame, total: int):
    dated = frame.dropna(subset=["admitted_on"])
    # ISO date strings order chronologically
    per_day = dated.groupby("admitted_on").size().sort_index(ascending=False).head(TREND_DAYS)

    admissions = [
        _category_count(str(day), int(count), total) for day, count in per_day.items()
    ]
    lines = ["Admission Trends:"]
    for item in admissions:
        lines.append(f"- {item.category}: {item.count} admissions")

    report = AggregationReport(
        aggregation_type=AggregationType.TRENDS,
        total=total,
        admissions_by_date=admissions,
    )
    return "\n".join(lines), report


def build_summary(
    matched: Sequence[PatientRecord],
    returned: Sequence[PatientRecord],
    aggregation_type: AggregationType,
) -> tuple[str, AggregationReport]:
    """Build the summary text and structured report for a retrieval.

    Parameters:
        matched: Every record that satisfied the filters, in result order
        returned: The limited prefix of ``matched`` handed back to the caller
        aggregation_type: Shape of summary to produce

    Returns:
        (summary_text, report). Aggregates are computed over ``matched``;
        only the individual listing is bounded by ``returned``.
    """
    total = len(matched)
    if total == 0:
        return NO_MATCHES_MESSAGE, AggregationReport(aggregation_type=aggregation_type, total=0)

    header = f"Found {total} matching patients.\n\n"

    if aggregation_type is AggregationType.INDIVIDUAL:
        body, report = _individual(matched, returned)
        return header + body, report

    frame = records_to_frame(matched)
    if aggregation_type is AggregationType.STATISTICS:
        body, report = _statistics(frame, total)
    elif aggregation_type is AggregationType.TRENDS:
        body, report = _trends(frame, total)
    else:
        body, report = _summary(frame, total)

    logger.debug(f"Built {aggregation_type.value} summary over {total} records")
    return header + body, report
