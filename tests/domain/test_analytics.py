"""Tests for the canned analytics reports."""

import pytest

from neolink_insight.domain.enums import Outcome, RelativeDateRange, Unit
from neolink_insight.domain.query_spec import DateRange
from neolink_insight.domain.services.analytics import (
    PatientCriteria,
    birth_weight_category,
    get_analytics_summary,
    get_outcome_stats,
    get_patient_summaries,
    get_trends_data,
    outcome_stats_frame,
)
from neolink_insight.domain.services.summary_formatter import NO_MATCHES_MESSAGE


class TestBirthWeightCategory:
    @pytest.mark.parametrize("weight,expected", [
        (0.8, "ELBW"),
        (1.0, "VLBW"),
        (1.49, "VLBW"),
        (2.0, "LBW"),
        (2.5, "Normal"),
        (None, "Unknown"),
    ])
    def test_categories(self, weight, expected):
        assert birth_weight_category(weight) == expected


class TestAnalyticsSummary:
    """Test the outcome and unit overview."""

    def test_overview_of_all_records(self, ward_records):
        text = get_analytics_summary(ward_records)

        assert text.startswith("Total Patients: 4")
        assert "- Deceased: 1 (25.0%)" in text
        assert "Units Distribution:" in text
        assert "- NICU: 2" in text
        assert "- HDU: 0" in text

    def test_unit_and_outcome_filters_are_reported(self, ward_records):
        text = get_analytics_summary(ward_records, unit=Unit.NICU, outcome=Outcome.DECEASED)

        assert text.startswith("Total Patients: 1")
        assert "Unit: NICU" in text
        assert "Outcome Filter: Deceased" in text

    def test_relative_period(self, ward_records, now):
        text = get_analytics_summary(ward_records, date_range=DateRange(relative="last7days"), now=now)

        assert text.startswith("Total Patients: 3")
        assert "Date Range: last7days" in text

    def test_empty_selection_has_no_percentages(self, ward_records):
        text = get_analytics_summary(ward_records, unit=Unit.HDU)

        assert "Total Patients: 0" in text
        assert NO_MATCHES_MESSAGE in text
        assert "%" not in text


class TestPatientSummaries:
    """Test the criteria-based patient listing."""

    def test_no_match(self, ward_records):
        criteria = PatientCriteria(unit=Unit.HDU)

        assert get_patient_summaries(ward_records, criteria) == "No patients found matching the criteria."

    def test_criteria_from_camel_case(self, ward_records):
        criteria = PatientCriteria.model_validate({"birthWeightLessThan": 1.5, "outcome": "Discharged"})

        text = get_patient_summaries(ward_records, criteria)

        assert text.startswith("Found 1 patients matching criteria:")
        assert "Birth Weight < 1.5 kg" in text
        assert "Outcome: Discharged" in text
        assert "1. Baby A - " in text

    def test_listing_is_capped_at_twenty(self, make_record):
        records = [make_record(f"p{i}") for i in range(25)]

        text = get_patient_summaries(records)

        assert "Showing first 20 patients:" in text
        assert "20. " in text
        assert "21. " not in text
        assert text.endswith("... and 5 more patients")

    def test_age_criterion_uses_days(self, make_record):
        records = [make_record("week", age=1, ageUnit="Weeks"), make_record("month", age=1, ageUnit="Months")]

        text = get_patient_summaries(records, PatientCriteria(age_in_days_less_than=10))

        assert text.startswith("Found 1 patients")


class TestTrendsData:
    """Test period trends."""

    def test_last_seven_days(self, ward_records, now):
        text = get_trends_data(ward_records, RelativeDateRange.LAST_7_DAYS, now=now)

        assert text.splitlines() == [
            "Trends for last7days:",
            "- Total Admissions: 3",
            "- Discharges: 1",
            "- Deaths: 1",
            "- Referrals: 0",
            "- Mortality Rate: 33.3%",
        ]

    def test_empty_period_has_no_mortality_rate(self, ward_records, now):
        text = get_trends_data(ward_records, "yesterday", now=now.replace(year=2020))

        assert "- Total Admissions: 0" in text
        assert "- Mortality Rate: N/A%" in text

    def test_custom_period_uses_the_given_range(self, ward_records, now):
        window = DateRange(start="2024-02-01", end="2024-02-29T23:59:59")

        text = get_trends_data(ward_records, "custom", custom_range=window, now=now)

        assert "Trends for custom:" in text
        assert "- Referrals: 1" in text

    def test_aware_evaluation_time(self, ward_records, now):
        aware = get_trends_data(ward_records, RelativeDateRange.LAST_7_DAYS, now=now.astimezone())

        assert aware == get_trends_data(ward_records, RelativeDateRange.LAST_7_DAYS, now=now)

    def test_custom_period_requires_a_range(self, ward_records):
        with pytest.raises(ValueError, match="custom"):
            get_trends_data(ward_records, "custom")

    def test_unknown_period_is_rejected(self, ward_records):
        with pytest.raises(ValueError):
            get_trends_data(ward_records, "fortnight")


class TestOutcomeStats:
    """Test outcome statistics per group."""

    def test_grouped_by_unit(self, ward_records):
        frame = outcome_stats_frame(ward_records, "unit")

        nicu = frame[frame["group"] == "NICU"]
        assert list(frame.columns) == ["group", "outcome", "patients", "group_total", "percentage"]
        assert set(nicu["outcome"]) == {"Deceased", "Discharged"}
        assert set(nicu["percentage"]) == {50.0}
        assert list(frame["group"].unique()) == ["NICU", "PICU", "SNCU"]

    def test_birth_weight_bands_include_unknown(self, make_record):
        records = [make_record("a", birthWeight=0.9), make_record("b", birthWeight=None)]

        frame = outcome_stats_frame(records, "birthWeight")

        assert list(frame["group"]) == ["<1kg", "Unknown"]

    def test_text_report(self, ward_records):
        text = get_outcome_stats(ward_records, "gender")

        assert text.startswith("Outcome Statistics grouped by gender:")
        assert "Male: 2 patients" in text
        assert "  - Deceased: 1 (50.0%)" in text

    def test_unsupported_group_by(self, ward_records):
        with pytest.raises(ValueError, match="Unsupported group_by"):
            outcome_stats_frame(ward_records, "institution")
