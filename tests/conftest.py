"""Shared fixtures for the NeoLink Insight test suite."""

from datetime import datetime

import pytest

from neolink_insight.domain.patient_record import PatientRecord

# Evaluation time used by every date-sensitive test (naive local time)
NOW = datetime(2024, 3, 15, 10, 0, 0)


def build_record(record_id: str = "p1", **overrides) -> PatientRecord:
    """Build a valid PatientRecord; overrides use the camelCase export keys."""
    data = {
        "id": record_id,
        "name": "Baby A",
        "age": 3,
        "ageUnit": "Days",
        "gender": "Male",
        "diagnosis": "Sepsis",
        "birthWeight": 2.0,
        "unit": "NICU",
        "outcome": "Discharged",
        "admissionDate": "2024-03-10T08:00:00",
    }
    data.update(overrides)
    return PatientRecord.model_validate(data)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_record():
    """Factory fixture for patient records."""
    return build_record


@pytest.fixture
def ward_records():
    """A small mixed cohort across units, outcomes and birth weights."""
    return [
        build_record("p1", birthWeight=0.9, outcome="Deceased", unit="NICU",
                     diagnosis="Extreme prematurity", admissionDate="2024-03-14T09:00:00"),
        build_record("p2", birthWeight=1.2, outcome="Discharged", unit="NICU",
                     diagnosis="Respiratory distress syndrome", admissionDate="2024-03-12T11:30:00"),
        build_record("p3", birthWeight="2.8", outcome="In Progress", unit="PICU", gender="Female",
                     diagnosis="Pneumonia", admissionDate="2024-03-15T07:45:00"),
        build_record("p4", birthWeight=3.1, outcome="Referred", unit="SNCU", gender="Female",
                     diagnosis="Neonatal jaundice", admissionDate="2024-02-20T14:00:00"),
    ]
