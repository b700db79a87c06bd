"""Retrieval result models.

The textual summary is what downstream prompt builders consume; the
AggregationReport carries the same numbers in structured form.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from neolink_insight.domain.enums import AggregationType
from neolink_insight.domain.patient_record import PatientRecord


class CategoryCount(BaseModel):
    """Count of records in one category and its share of the matched total."""

    model_config = ConfigDict(frozen=True)

    category: str
    count: int
    percentage: Optional[float] = Field(None, description="count / matched * 100, None when matched is 0")


class AggregationReport(BaseModel):
    """Structured numbers behind ``RetrievalResult.summary_text``.

    Only the sections relevant to the aggregation type are populated.
    """

    model_config = ConfigDict(frozen=True)

    aggregation_type: AggregationType
    total: int
    outcome_breakdown: list[CategoryCount] = Field(default_factory=list)
    unit_distribution: list[CategoryCount] = Field(default_factory=list)
    mortality_rate: Optional[float] = None
    average_birth_weight: Optional[float] = None
    admissions_by_date: list[CategoryCount] = Field(default_factory=list)


class RetrievalResult(BaseModel):
    """Outcome of applying a QuerySpec to a record list.

    Parameters:
        matched_count: Records satisfying all filters, before the limit
        returned_records: At most ``limit`` matched records in result order
        summary_text: Plain-text aggregation for the requested aggregation type
        report: Structured form of the aggregation
    """

    model_config = ConfigDict(frozen=True)

    matched_count: int
    returned_records: list[PatientRecord]
    summary_text: str
    report: AggregationReport

    @property
    def omitted_count(self) -> int:
        """Matched records not included in ``returned_records``."""
        return self.matched_count - len(self.returned_records)
