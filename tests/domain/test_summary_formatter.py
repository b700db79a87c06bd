"""Tests for the aggregation summary formatter."""

import pytest

from neolink_insight.domain.enums import AggregationType
from neolink_insight.domain.services.summary_formatter import (
    NO_MATCHES_MESSAGE,
    TREND_DAYS,
    build_summary,
    describe_record,
)


class TestDescribeRecord:
    """Test the one-line patient digest."""

    def test_full_record(self, make_record):
        record = make_record("p1")

        assert describe_record(record) == "Baby A - 3 Days, Male, Sepsis, BW: 2 kg, Discharged, NICU"

    def test_missing_values_are_marked(self, make_record):
        record = make_record("p1", name=None, age=None, gender=None, diagnosis=None, birthWeight=None)

        assert describe_record(record) == "Unknown - N/A, N/A, N/A, BW: N/A, Discharged, NICU"

    def test_weight_with_unit_suffix_is_shown_once(self, make_record):
        record = make_record("p1", birthWeight="1.25 kg")

        assert "BW: 1.25 kg," in describe_record(record)


class TestSummaryAggregation:
    """Test the outcome breakdown."""

    def test_outcome_breakdown_with_percentages(self, make_record):
        records = [
            make_record("a", outcome="Discharged"),
            make_record("b", outcome="Discharged"),
            make_record("c", outcome="Deceased"),
            make_record("d", outcome="In Progress"),
        ]

        text, report = build_summary(records, records, AggregationType.SUMMARY)

        assert text.startswith("Found 4 matching patients.\n\nSummary:")
        assert "- Total: 4 patients" in text
        assert "- Discharged: 2 (50.0%)" in text
        assert "- Deceased: 1 (25.0%)" in text
        assert "- In Progress: 1 (25.0%)" in text
        assert "- Referred: 0 (0.0%)" in text
        assert "Step Down" not in text
        assert [item.category for item in report.outcome_breakdown] == [
            "In Progress", "Discharged", "Deceased", "Referred"
        ]

    def test_step_down_is_listed_when_present(self, make_record):
        records = [make_record("a", outcome="Step Down"), make_record("b")]

        text, report = build_summary(records, records, AggregationType.SUMMARY)

        assert "- Step Down: 1 (50.0%)" in text
        assert report.outcome_breakdown[-1].category == "Step Down"


class TestPercentagesSumToHundred:
    """Outcome and unit shares of a non-empty match cover the whole cohort."""

    @pytest.fixture
    def uneven_cohort(self, make_record):
        specs = [
            ("a", "Discharged", "NICU"),
            ("b", "Discharged", "PICU"),
            ("c", "Deceased", "NICU"),
            ("d", "Step Down", "SNCU"),
            ("e", "In Progress", "HDU"),
            ("f", "Referred", "NICU"),
            ("g", "Step Down", "WARD"),
        ]
        return [make_record(record_id, outcome=outcome, unit=unit) for record_id, outcome, unit in specs]

    @pytest.mark.parametrize("size", [1, 3, 7])
    def test_outcome_breakdown(self, uneven_cohort, size):
        records = uneven_cohort[:size]

        _, report = build_summary(records, records, AggregationType.SUMMARY)

        shares = [item.percentage for item in report.outcome_breakdown]
        assert sum(item.count for item in report.outcome_breakdown) == size
        assert abs(sum(shares) - 100.0) <= 0.1 * len(shares)

    @pytest.mark.parametrize("size", [1, 3, 7])
    def test_unit_distribution(self, uneven_cohort, size):
        records = uneven_cohort[:size]

        _, report = build_summary(records, records, AggregationType.STATISTICS)

        shares = [item.percentage for item in report.unit_distribution]
        assert sum(item.count for item in report.unit_distribution) == size
        assert abs(sum(shares) - 100.0) <= 0.1 * len(shares)


class TestStatisticsAggregation:
    """Test mortality, average weight and unit distribution."""

    def test_statistics_over_matched_records(self, make_record):
        records = [
            make_record("a", outcome="Deceased", birthWeight=1.0, unit="NICU"),
            make_record("b", birthWeight="2.0", unit="NICU"),
            make_record("c", birthWeight=None, unit="PICU"),
        ]

        text, report = build_summary(records, records[:1], AggregationType.STATISTICS)

        assert "- Total Patients: 3" in text
        assert "- Mortality Rate: 33.3%" in text
        assert "- Average Birth Weight: 1.50 kg" in text
        assert "  - NICU: 2 (66.7%)" in text
        assert "  - PICU: 1 (33.3%)" in text
        assert report.mortality_rate == 33.3
        assert report.average_birth_weight == 1.5
        assert [item.category for item in report.unit_distribution] == ["NICU", "PICU"]

    def test_average_weight_not_available_without_weights(self, make_record):
        records = [make_record("a", birthWeight=None)]

        text, report = build_summary(records, records, AggregationType.STATISTICS)

        assert "- Average Birth Weight: N/A" in text
        assert report.average_birth_weight is None


class TestTrendsAggregation:
    """Test admissions per day."""

    def test_most_recent_days_first_limited_to_ten(self, make_record):
        records = [make_record(f"p{day}", admissionDate=f"2024-03-{day:02d}T12:00:00") for day in range(1, 16)]

        text, report = build_summary(records, records, AggregationType.TRENDS)

        days = [item.category for item in report.admissions_by_date]
        assert len(days) == TREND_DAYS
        assert days[0] == "2024-03-15"
        assert days[-1] == "2024-03-06"
        assert days == sorted(days, reverse=True)
        assert "- 2024-03-15: 1 admissions" in text
        assert "2024-03-05" not in text

    def test_admissions_on_the_same_day_are_counted_together(self, make_record):
        records = [
            make_record("a", admissionDate="2024-03-14T01:00:00"),
            make_record("b", admissionDate="2024-03-14T22:00:00"),
            make_record("c", admissionDate=None),
        ]

        _, report = build_summary(records, records, AggregationType.TRENDS)

        assert [(item.category, item.count) for item in report.admissions_by_date] == [("2024-03-14", 2)]


class TestIndividualAggregation:
    """Test the numbered patient listing."""

    def test_listing_is_bounded_by_returned_records(self, make_record):
        records = [make_record(f"p{i}", name=f"Baby {i}") for i in range(5)]

        text, report = build_summary(records, records[:2], AggregationType.INDIVIDUAL)

        assert "Patient Details (showing 2):" in text
        assert "1. Baby 0 - " in text
        assert "2. Baby 1 - " in text
        assert "Baby 2" not in text
        assert text.endswith("...and 3 more")
        assert report.total == 5

    def test_no_more_line_when_everything_is_returned(self, make_record):
        records = [make_record("a")]

        text, _ = build_summary(records, records, AggregationType.INDIVIDUAL)

        assert "more" not in text


class TestEmptyMatches:
    def test_no_matches_message_for_every_aggregation(self):
        for aggregation in AggregationType:
            text, report = build_summary([], [], aggregation)

            assert text == NO_MATCHES_MESSAGE
            assert report.total == 0
