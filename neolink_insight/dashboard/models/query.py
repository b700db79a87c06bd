"""Request and response models for the query endpoints."""

from typing import Optional

from pydantic import BaseModel, Field

from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.query_spec import QuerySpec
from neolink_insight.domain.retrieval_result import AggregationReport, RetrievalResult


class QueryRequest(BaseModel):
    """Free-text question over the configured patient export.

    Attributes:
        query: The question, e.g. "VLBW babies in NICU last 7 days"
        limit: Overrides the limit derived from the question
    """
    query: str = Field(..., min_length=1, max_length=1000, description="Free-text question")
    limit: Optional[int] = Field(None, ge=1, description="Maximum number of records to return")


class QueryResponse(BaseModel):
    """Answer to a question or to a structured retrieval.

    Attributes:
        query_spec: The structured spec the answer was computed from
        matched_count: Records satisfying all filters
        returned_count: Records included in ``records``
        omitted_count: Matched records left out by the limit
        summary_text: Plain-text aggregation
        report: Structured aggregation numbers
        records: The returned records
    """
    query_spec: QuerySpec
    matched_count: int
    returned_count: int
    omitted_count: int
    summary_text: str
    report: AggregationReport
    records: list[PatientRecord]

    @classmethod
    def from_result(cls, spec: QuerySpec, result: RetrievalResult) -> "QueryResponse":
        return cls(
            query_spec=spec,
            matched_count=result.matched_count,
            returned_count=len(result.returned_records),
            omitted_count=result.omitted_count,
            summary_text=result.summary_text,
            report=result.report,
            records=result.returned_records,
        )
