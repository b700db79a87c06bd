"""Domain layer for NeoLink Insight.

Patient record and query specification schemas plus the pure services
that filter and summarize records. Models depend on Pydantic only.
"""

from .patient_record import PatientRecord
from .query_spec import QueryFilters, QuerySpec
from .retrieval_result import AggregationReport, RetrievalResult

__all__ = [
    "PatientRecord",
    "QueryFilters",
    "QuerySpec",
    "AggregationReport",
    "RetrievalResult",
]
