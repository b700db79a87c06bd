"""Patient Record Schema.

This module defines the canonical, read-only view of a patient record as the
query engine consumes it. Records arrive from two shapes of the same data:
the camelCase documents of the clinical app (``birthWeight``, ``ageUnit``,
``admissionDate``) and the snake_case analytics rows (``birth_weight``,
``age_unit``, ``admission_date``). Both validate into the same model.

Security Impact:
    - Patient names are carried for display in individual listings only and
      are never written to logs above DEBUG level
    - Unknown categorical values (unit, outcome, gender, age unit) fail
      validation so loaders can reject the record instead of guessing

Architecture:
    - Pure domain model with no infrastructure dependencies beyond Pydantic
    - Numeric and temporal fields keep their supplied representation; the
      ``parsed_*`` / ``*_at`` properties normalize on read and return None
      when a value cannot be coerced
"""

from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from neolink_insight.domain.enums import AgeUnit, Gender, Outcome, Unit
from neolink_insight.domain.utils import parse_iso_datetime, parse_number


class PatientRecord(BaseModel):
    """Patient record of one institution (NICU/PICU/SNCU/HDU/WARD admission).

    Parameters:
        id: Record identifier, unique within the institution
        name: Patient display name (PII)
        age: Age value in ``age_unit`` units
        age_unit: Unit of ``age`` (Days, Weeks, Months, Years)
        gender: Male, Female, Other or Ambiguous
        diagnosis: Free-text admission diagnosis
        birth_weight: Birth weight in kg as supplied (number or numeric string)
        unit: Ward category of the admission
        outcome: Disposition (In Progress, Discharged, Deceased, Referred, Step Down)
        admission_date: ISO-8601 admission timestamp
        release_date: ISO-8601 discharge/referral timestamp
        death_date: ISO-8601 date of death, if recorded
        institution_id: Owning institution identifier
        institution_name: Owning institution display name
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., validation_alias=AliasChoices("id", "firebase_id", "firebaseId"))
    name: Optional[str] = Field(None, description="Patient name (PII)")
    age: Optional[float] = Field(None, description="Age in age_unit units")
    age_unit: Optional[AgeUnit] = Field(None, validation_alias=AliasChoices("age_unit", "ageUnit"))
    gender: Optional[Gender] = None
    diagnosis: Optional[str] = None
    birth_weight: Optional[Union[float, str]] = Field(
        None,
        validation_alias=AliasChoices("birth_weight", "birthWeight"),
        description="Birth weight in kg, number or numeric string",
    )
    unit: Unit
    outcome: Outcome
    admission_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("admission_date", "admissionDate")
    )
    release_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("release_date", "releaseDate", "discharge_date", "dischargeDate")
    )
    death_date: Optional[str] = Field(
        None, validation_alias=AliasChoices("death_date", "deathDate", "dateOfDeath")
    )
    institution_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("institution_id", "institutionId")
    )
    institution_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("institution_name", "institutionName")
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            raise ValueError("Patient record id must be a non-empty string")
        return str(v).strip()

    @field_validator("name", "diagnosis", "institution_id", "institution_name", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v: Any) -> Optional[float]:
        return parse_number(v)

    @field_validator("birth_weight", mode="before")
    @classmethod
    def keep_birth_weight_representation(cls, v: Any) -> Optional[Union[float, str]]:
        """Keep numbers as float and everything else as text; parsing happens on read."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return float(v)
        text = str(v).strip()
        return text or None

    @field_validator("age_unit", mode="before")
    @classmethod
    def validate_age_unit(cls, v: Any) -> Optional[AgeUnit]:
        if v is None or str(v).strip() == "":
            return None
        age_unit = AgeUnit.from_value(v)
        if age_unit is None:
            raise ValueError(f"Unknown age unit: {v}")
        return age_unit

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v: Any) -> Optional[Gender]:
        if v is None or str(v).strip() == "":
            return None
        gender = Gender.from_value(v)
        if gender is None:
            raise ValueError(f"Unknown gender: {v}")
        return gender

    @field_validator("unit", mode="before")
    @classmethod
    def validate_unit(cls, v: Any) -> Unit:
        unit = Unit.from_value(v)
        if unit is None:
            raise ValueError(f"Unknown unit: {v}")
        return unit

    @field_validator("outcome", mode="before")
    @classmethod
    def validate_outcome(cls, v: Any) -> Outcome:
        outcome = Outcome.from_value(v)
        if outcome is None:
            raise ValueError(f"Unknown outcome: {v}")
        return outcome

    @field_validator("admission_date", "release_date", "death_date", mode="before")
    @classmethod
    def normalize_timestamp(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, (datetime, date)):
            return v.isoformat()
        text = str(v).strip()
        return text or None

    @model_validator(mode="after")
    def validate_admission_before_release(self) -> "PatientRecord":
        """Reject records released before they were admitted."""
        admitted = self.admitted_at
        released = self.released_at
        if admitted is not None and released is not None and released < admitted:
            raise ValueError(
                f"release_date {self.release_date} is earlier than admission_date {self.admission_date}"
            )
        return self

    @property
    def parsed_birth_weight(self) -> Optional[float]:
        """Birth weight in kg, or None if missing or unparsable."""
        return parse_number(self.birth_weight)

    @property
    def admitted_at(self) -> Optional[datetime]:
        """Admission timestamp as naive local datetime, or None if unparsable."""
        return parse_iso_datetime(self.admission_date)

    @property
    def released_at(self) -> Optional[datetime]:
        return parse_iso_datetime(self.release_date)

    @property
    def age_in_days(self) -> Optional[float]:
        """Age converted to days (weeks = 7, months = 30, years = 365 days).

        The month and year factors are an accepted approximation, not a
        calendar-exact conversion. A missing age or age unit yields None.
        """
        if self.age is None or self.age_unit is None:
            return None
        return self.age * self.age_unit.days
