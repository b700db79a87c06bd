"""Data Retrieval & Filter Engine.

Applies a QuerySpec to an already-loaded list of patient records and
produces a bounded, ordered subset plus its textual aggregation.

Architecture:
    - Pure function of (records, spec, now); no I/O and no shared state, so
      it is safe to call concurrently without locks
    - Filter categories are AND-combined; an absent category imposes no
      constraint
    - Fail-closed coercion: a record whose field cannot be parsed for an
      active filter is excluded from that filter's matches, never raised
"""

import logging
import math
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from neolink_insight.domain.enums import SortField
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.query_spec import (
    AgeRange,
    BirthWeightRange,
    DateRange,
    QueryFilters,
    QuerySpec,
)
from neolink_insight.domain.retrieval_result import RetrievalResult
from neolink_insight.domain.services.summary_formatter import build_summary
from neolink_insight.domain.utils import resolve_now

logger = logging.getLogger(__name__)

Predicate = Callable[[PatientRecord], bool]


def _birth_weight_predicate(weight_range: BirthWeightRange) -> Predicate:
    low = weight_range.min if weight_range.min is not None else 0.0
    high = weight_range.max if weight_range.max is not None else math.inf

    def matches(record: PatientRecord) -> bool:
        weight = record.parsed_birth_weight
        if weight is None:
            if record.birth_weight is not None:
                logger.debug(f"Record {record.id}: unparsable birth weight excluded")
            return False
        return low <= weight <= high

    return matches


def _age_predicate(age_range: AgeRange) -> Predicate:
    low, high = age_range.bounds_in_days()

    def matches(record: PatientRecord) -> bool:
        age_days = record.age_in_days
        if age_days is None:
            return False
        return low <= age_days <= high

    return matches


def _diagnosis_predicate(keywords: Sequence[str]) -> Predicate:
    lowered = [keyword.lower() for keyword in keywords]

    def matches(record: PatientRecord) -> bool:
        diagnosis = (record.diagnosis or "").lower()
        return any(keyword in diagnosis for keyword in lowered)

    return matches


def _date_predicate(date_range: DateRange, now: datetime) -> Predicate:
    start, end = date_range.bounds(now)

    def matches(record: PatientRecord) -> bool:
        admitted = record.admitted_at
        if admitted is None:
            if record.admission_date is not None:
                logger.debug(f"Record {record.id}: unparsable admission date excluded")
            return False
        if start is not None and admitted < start:
            return False
        return admitted <= end

    return matches


def build_predicates(filters: QueryFilters, now: datetime) -> list[tuple[str, Predicate]]:
    """Translate every active filter category into a named record predicate.

    Parameters:
        filters: Filter categories of a QuerySpec
        now: Evaluation time for relative date windows (naive local)

    Returns:
        List of (filter name, predicate) pairs; empty when no filter is set
    """
    predicates: list[tuple[str, Predicate]] = []

    if filters.units:
        units = set(filters.units)
        predicates.append(("units", lambda record: record.unit in units))

    if filters.outcomes:
        outcomes = set(filters.outcomes)
        predicates.append(("outcomes", lambda record: record.outcome in outcomes))

    if filters.birth_weight_range is not None:
        predicates.append(("birth_weight_range", _birth_weight_predicate(filters.birth_weight_range)))

    if filters.age_range is not None:
        predicates.append(("age_range", _age_predicate(filters.age_range)))

    if filters.diagnosis_keywords:
        predicates.append(("diagnosis_keywords", _diagnosis_predicate(filters.diagnosis_keywords)))

    if filters.genders:
        genders = set(filters.genders)
        predicates.append(("genders", lambda record: record.gender in genders))

    if filters.date_range is not None:
        predicates.append(("date_range", _date_predicate(filters.date_range, now)))

    return predicates


def apply_filters(
    records: Iterable[PatientRecord],
    filters: QueryFilters,
    now: Optional[datetime] = None,
) -> list[PatientRecord]:
    """Return the records satisfying every active filter, in input order."""
    predicates = build_predicates(filters, resolve_now(now))
    matched = list(records)
    for name, predicate in predicates:
        before = len(matched)
        matched = [record for record in matched if predicate(record)]
        logger.debug(f"Filter {name}: {before} -> {len(matched)} records")
    return matched


def _split_by_key(records: Sequence[PatientRecord], key: Callable[[PatientRecord], object]):
    keyed = [(key(record), record) for record in records]
    present = [(value, record) for value, record in keyed if value is not None]
    missing = [record for value, record in keyed if value is None]
    return present, missing


def sort_records(records: Sequence[PatientRecord], sort_by: Optional[SortField] = None) -> list[PatientRecord]:
    """Order records for presentation.

    Admission date descending by default; ``birthWeight`` and ``age`` sort
    ascending. Records whose sort value cannot be parsed keep their relative
    order and go last.
    """
    if sort_by is SortField.BIRTH_WEIGHT:
        present, missing = _split_by_key(records, lambda r: r.parsed_birth_weight)
        present.sort(key=lambda pair: pair[0])
    elif sort_by is SortField.AGE:
        present, missing = _split_by_key(records, lambda r: r.age_in_days)
        present.sort(key=lambda pair: pair[0])
    else:
        present, missing = _split_by_key(records, lambda r: r.admitted_at)
        present.sort(key=lambda pair: pair[0], reverse=True)
    return [record for _, record in present] + missing


def retrieve_relevant_data(
    records: Iterable[PatientRecord],
    spec: QuerySpec,
    now: Optional[datetime] = None,
) -> RetrievalResult:
    """Apply a QuerySpec to the full record list of one institution.

    Parameters:
        records: Every patient record of the institution, already loaded
        spec: Structured filter/aggregation request
        now: Evaluation time for relative date filters (defaults to local now)

    Returns:
        RetrievalResult with the pre-limit match count, at most ``spec.limit``
        records and the summary for ``spec.aggregation_type``
    """
    now = resolve_now(now)
    matched = sort_records(apply_filters(records, spec.filters, now), spec.sort_by)
    returned = matched[: spec.limit]

    summary_text, report = build_summary(matched, returned, spec.aggregation_type)

    logger.info(f"Retrieved {len(returned)} of {len(matched)} matching patients")

    return RetrievalResult(
        matched_count=len(matched),
        returned_records=returned,
        summary_text=summary_text,
        report=report,
    )
