"""Domain Enumerations.

Closed vocabularies shared by patient records, query specifications and
the aggregation formatter. Input normalization lives on each enum so that
the camelCase Firestore export, the snake_case Supabase rows and free-form
language model output all resolve to the same members.
"""

from enum import Enum
from typing import Optional


class Unit(str, Enum):
    """Hospital ward category a patient is admitted under."""
    NICU = "NICU"
    PICU = "PICU"
    SNCU = "SNCU"
    HDU = "HDU"
    WARD = "WARD"

    @classmethod
    def from_value(cls, value: object) -> Optional["Unit"]:
        """Resolve a short code or a long display name to a Unit.

        Parameters:
            value: "NICU", "nicu", "Neonatal Intensive Care Unit", ...

        Returns:
            Matching Unit, or None if the value is not recognized
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        upper = text.upper()
        if upper in cls.__members__:
            return cls[upper]
        return _UNIT_DISPLAY_NAMES.get(text.lower())


_UNIT_DISPLAY_NAMES = {
    "neonatal intensive care unit": Unit.NICU,
    "pediatric intensive care unit": Unit.PICU,
    "paediatric intensive care unit": Unit.PICU,
    "special new born care unit": Unit.SNCU,
    "special newborn care unit": Unit.SNCU,
    "high dependency unit": Unit.HDU,
    "general ward": Unit.WARD,
    "ward": Unit.WARD,
}


class Outcome(str, Enum):
    """Terminal or in-progress disposition of a patient record."""
    IN_PROGRESS = "In Progress"
    DISCHARGED = "Discharged"
    DECEASED = "Deceased"
    REFERRED = "Referred"
    STEP_DOWN = "Step Down"

    @classmethod
    def from_value(cls, value: object) -> Optional["Outcome"]:
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = " ".join(str(value).replace("_", " ").split()).lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


# Categories always reported by the outcome breakdown, in display order
PRIMARY_OUTCOMES = (
    Outcome.IN_PROGRESS,
    Outcome.DISCHARGED,
    Outcome.DECEASED,
    Outcome.REFERRED,
)


class AgeUnit(str, Enum):
    """Unit in which a patient's age is recorded."""
    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"
    YEARS = "Years"

    @classmethod
    def from_value(cls, value: object) -> Optional["AgeUnit"]:
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = str(value).strip().lower()
        if not key:
            return None
        if not key.endswith("s"):
            key += "s"
        for member in cls:
            if member.value.lower() == key:
                return member
        return None

    @property
    def days(self) -> int:
        """Approximate length of one unit in days (months = 30, years = 365)."""
        return _AGE_UNIT_DAYS[self]


_AGE_UNIT_DAYS = {
    AgeUnit.DAYS: 1,
    AgeUnit.WEEKS: 7,
    AgeUnit.MONTHS: 30,
    AgeUnit.YEARS: 365,
}


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    AMBIGUOUS = "Ambiguous"

    @classmethod
    def from_value(cls, value: object) -> Optional["Gender"]:
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = str(value).strip().lower()
        aliases = {"m": "male", "f": "female", "boy": "male", "girl": "female"}
        key = aliases.get(key, key)
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class AggregationType(str, Enum):
    """Shape of the summary produced for a query."""
    INDIVIDUAL = "individual"
    SUMMARY = "summary"
    STATISTICS = "statistics"
    TRENDS = "trends"


class RelativeDateRange(str, Enum):
    """Named date windows relative to the evaluation time."""
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"


class SortField(str, Enum):
    ADMISSION_DATE = "admissionDate"
    BIRTH_WEIGHT = "birthWeight"
    AGE = "age"
