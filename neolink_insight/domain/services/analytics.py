"""Analytics summaries over patient records.

Canned text reports used by the chat assistant and the dashboard API next
to the free-text query path: overall outcome summary, criteria-based
patient listing, period trends and outcome statistics per group.

Every function is pure over the supplied records and guards its
percentages against an empty denominator.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from neolink_insight.domain.enums import PRIMARY_OUTCOMES, Gender, Outcome, RelativeDateRange, Unit
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.query_spec import DateRange
from neolink_insight.domain.services.summary_formatter import NO_MATCHES_MESSAGE, describe_record
from neolink_insight.domain.utils import format_number, format_percentage, records_to_frame, resolve_now

logger = logging.getLogger(__name__)

PATIENT_LISTING_SIZE = 20
GROUP_BY_FIELDS = ("unit", "diagnosis", "birthWeight", "gender")
CUSTOM_PERIOD = "custom"

# Upper bounds (exclusive, kg) of the birth-weight bands used for grouping
_WEIGHT_BANDS = ((1.0, "<1kg"), (1.5, "1-1.5kg"), (2.5, "1.5-2.5kg"))


def birth_weight_category(weight: Optional[float]) -> str:
    """Classify a birth weight in kg.

    Returns:
        "ELBW" (< 1.0), "VLBW" (< 1.5), "LBW" (< 2.5), "Normal", or
        "Unknown" when the weight is missing
    """
    if weight is None or pd.isna(weight):
        return "Unknown"
    if weight < 1.0:
        return "ELBW"
    if weight < 1.5:
        return "VLBW"
    if weight < 2.5:
        return "LBW"
    return "Normal"


def _weight_band(weight: Optional[float]) -> str:
    if weight is None or pd.isna(weight):
        return "Unknown"
    for upper, label in _WEIGHT_BANDS:
        if weight < upper:
            return label
    return ">=2.5kg"


def _within(record: PatientRecord, start: Optional[datetime], end: datetime) -> bool:
    admitted = record.admitted_at
    if admitted is None:
        return False
    return (start is None or admitted >= start) and admitted <= end


def get_analytics_summary(
    records: Iterable[PatientRecord],
    unit: Optional[Unit] = None,
    outcome: Optional[Outcome] = None,
    date_range: Optional[DateRange] = None,
    now: Optional[datetime] = None,
) -> str:
    """Outcome and unit overview of the records, optionally filtered.

    Parameters:
        records: Patient records of one institution
        unit: Keep only this unit
        outcome: Keep only this outcome
        date_range: Keep only admissions inside this window
        now: Evaluation time for the window (defaults to local now)

    Returns:
        Multi-line text; with no matching record the outcome percentages are
        replaced by the "No patients found" line
    """
    filtered = list(records)
    if unit is not None:
        filtered = [r for r in filtered if r.unit == unit]
    if outcome is not None:
        filtered = [r for r in filtered if r.outcome == outcome]
    if date_range is not None:
        start, end = date_range.bounds(resolve_now(now))
        filtered = [r for r in filtered if _within(r, start, end)]

    total = len(filtered)
    lines = [f"Total Patients: {total}"]
    if unit is not None:
        lines.append(f"Unit: {unit.value}")
    if outcome is not None:
        lines.append(f"Outcome Filter: {outcome.value}")
    if date_range is not None:
        if date_range.relative is not None:
            lines.append(f"Date Range: {date_range.relative.value}")
        else:
            start_text = date_range.start.date().isoformat() if date_range.start else "beginning"
            end_text = date_range.end.date().isoformat() if date_range.end else "now"
            lines.append(f"Date Range: {start_text} to {end_text}")

    lines += ["", "Outcomes:"]
    if total == 0:
        lines.append(NO_MATCHES_MESSAGE)
    else:
        for item in PRIMARY_OUTCOMES:
            count = sum(1 for r in filtered if r.outcome == item)
            lines.append(f"- {item.value}: {count} ({format_percentage(count, total)}%)")

    lines += ["", "Units Distribution:"]
    for item in Unit:
        lines.append(f"- {item.value}: {sum(1 for r in filtered if r.unit == item)}")

    return "\n".join(lines)


class PatientCriteria(BaseModel):
    """Criteria for ``get_patient_summaries``; every set field must hold."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    unit: Optional[Unit] = None
    outcome: Optional[Outcome] = None
    diagnosis_contains: Optional[str] = Field(None, alias="diagnosisContains")
    birth_weight_less_than: Optional[float] = Field(None, alias="birthWeightLessThan")
    birth_weight_greater_than: Optional[float] = Field(None, alias="birthWeightGreaterThan")
    age_in_days_less_than: Optional[float] = Field(None, alias="ageInDaysLessThan")
    gender: Optional[Gender] = None

    def matches(self, record: PatientRecord) -> bool:
        if self.unit is not None and record.unit != self.unit:
            return False
        if self.outcome is not None and record.outcome != self.outcome:
            return False
        if self.diagnosis_contains:
            if self.diagnosis_contains.lower() not in (record.diagnosis or "").lower():
                return False
        weight = record.parsed_birth_weight
        if self.birth_weight_less_than is not None:
            if weight is None or not weight < self.birth_weight_less_than:
                return False
        if self.birth_weight_greater_than is not None:
            if weight is None or not weight > self.birth_weight_greater_than:
                return False
        if self.age_in_days_less_than is not None:
            age_days = record.age_in_days
            if age_days is None or not age_days < self.age_in_days_less_than:
                return False
        if self.gender is not None and record.gender != self.gender:
            return False
        return True


def get_patient_summaries(
    records: Iterable[PatientRecord],
    criteria: Optional[PatientCriteria] = None,
) -> str:
    """List the patients matching ``criteria``, at most the first 20."""
    criteria = criteria or PatientCriteria()
    filtered = [record for record in records if criteria.matches(record)]
    if not filtered:
        return "No patients found matching the criteria."

    lines = [f"Found {len(filtered)} patients matching criteria:"]
    if criteria.birth_weight_less_than is not None:
        lines.append(f"Birth Weight < {format_number(criteria.birth_weight_less_than)} kg")
    if criteria.birth_weight_greater_than is not None:
        lines.append(f"Birth Weight > {format_number(criteria.birth_weight_greater_than)} kg")
    if criteria.outcome is not None:
        lines.append(f"Outcome: {criteria.outcome.value}")
    if criteria.unit is not None:
        lines.append(f"Unit: {criteria.unit.value}")

    shown = filtered[:PATIENT_LISTING_SIZE]
    lines += ["", f"Showing first {len(shown)} patients:"]
    lines += [f"{index}. {describe_record(record)}" for index, record in enumerate(shown, start=1)]
    if len(filtered) > PATIENT_LISTING_SIZE:
        lines += ["", f"... and {len(filtered) - PATIENT_LISTING_SIZE} more patients"]
    return "\n".join(lines)


def get_trends_data(
    records: Iterable[PatientRecord],
    period: Union[RelativeDateRange, str],
    custom_range: Optional[DateRange] = None,
    now: Optional[datetime] = None,
) -> str:
    """Admission, discharge, death and referral totals for a period.

    Parameters:
        records: Patient records of one institution
        period: today, yesterday, last7days, last30days or "custom"
        custom_range: Window used when ``period`` is "custom"
        now: Evaluation time (defaults to local now)

    Raises:
        ValueError: If the period is unknown or "custom" without a range
    """
    label = period.value if isinstance(period, RelativeDateRange) else str(period)
    if label == CUSTOM_PERIOD:
        if custom_range is None:
            raise ValueError("A custom trend period requires a date range")
        window = custom_range
    else:
        window = DateRange(relative=label)

    start, end = window.bounds(resolve_now(now))
    filtered = [record for record in records if _within(record, start, end)]

    admissions = len(filtered)
    discharges = sum(1 for r in filtered if r.outcome == Outcome.DISCHARGED)
    deaths = sum(1 for r in filtered if r.outcome == Outcome.DECEASED)
    referrals = sum(1 for r in filtered if r.outcome == Outcome.REFERRED)

    logger.debug(f"Trends for {label}: {admissions} admissions between {start} and {end}")

    return "\n".join([
        f"Trends for {label}:",
        f"- Total Admissions: {admissions}",
        f"- Discharges: {discharges}",
        f"- Deaths: {deaths}",
        f"- Referrals: {referrals}",
        f"- Mortality Rate: {format_percentage(deaths, admissions)}%",
    ])


def outcome_stats_frame(records: Iterable[PatientRecord], group_by: str) -> pd.DataFrame:
    """Outcome counts per group as a DataFrame.

    Columns: group, outcome, patients, group_total, percentage. Groups and
    outcomes keep their order of first appearance in ``records``.

    Raises:
        ValueError: If ``group_by`` is not one of unit, diagnosis, birthWeight, gender
    """
    if group_by not in GROUP_BY_FIELDS:
        raise ValueError(f"Unsupported group_by '{group_by}', expected one of {', '.join(GROUP_BY_FIELDS)}")

    frame = records_to_frame(records)
    if group_by == "birthWeight":
        frame["group"] = frame["birth_weight"].map(_weight_band)
    else:
        frame["group"] = frame[group_by].fillna("Unknown")
    frame["outcome"] = frame["outcome"].fillna("Unknown")

    counts = frame.groupby(["group", "outcome"], sort=False).size().reset_index(name="patients")
    counts["group_total"] = counts.groupby("group", sort=False)["patients"].transform("sum")
    counts["percentage"] = (counts["patients"] / counts["group_total"] * 100).round(1)
    return counts


def get_outcome_stats(records: Iterable[PatientRecord], group_by: str) -> str:
    """Outcome counts and percentages per unit, diagnosis, birth-weight band or gender."""
    counts = outcome_stats_frame(records, group_by)

    lines = [f"Outcome Statistics grouped by {group_by}:"]
    for group, rows in counts.groupby("group", sort=False):
        lines += ["", f"{group}: {int(rows['group_total'].iloc[0])} patients"]
        for row in rows.itertuples(index=False):
            lines.append(f"  - {row.outcome}: {int(row.patients)} ({row.percentage:.1f}%)")
    return "\n".join(lines)
