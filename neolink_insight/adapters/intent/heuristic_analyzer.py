"""Heuristic Intent Analyzer - offline keyword and pattern matching.

Maps clinical shorthand and common phrasings onto a QuerySpec without any
network call. Used when no language model is configured and as the
fallback of the Gemini analyzer.

Recognized vocabulary:
    - Birth weight: ELBW (< 1 kg), VLBW (< 1.5 kg), LBW (< 2.5 kg), their
      spelled-out forms, and explicit "birth weight < 1.2 kg" comparisons
    - Outcomes, units and genders by whole-word match
    - Dates: today, yesterday, last/past week, last 30 days, this/last
      month and named calendar months
    - Ages: "under 7 days", "older than 2 months", ...
    - Diagnoses: a neonatal and paediatric vocabulary plus "diagnosed with X"
"""

import calendar
import logging
import re
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from neolink_insight.domain.enums import (
    AgeUnit,
    AggregationType,
    Gender,
    Outcome,
    RelativeDateRange,
    SortField,
    Unit,
)
from neolink_insight.domain.ports import IntentAnalyzerPort
from neolink_insight.domain.query_spec import (
    DEFAULT_LIMIT,
    AgeRange,
    BirthWeightRange,
    DateRange,
    QueryFilters,
    QuerySpec,
)

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:\.\d+)?)"

# Most specific first; the first match sets the upper bound
_WEIGHT_CATEGORIES = (
    (re.compile(r"\belbw\b|extremely\s+low\s+birth\s*weight"), 1.0),
    (re.compile(r"\bvlbw\b|very\s+low\s+birth\s*weight"), 1.5),
    (re.compile(r"\blbw\b|low\s+birth\s*weight"), 2.5),
)

_WEIGHT_SUBJECT = r"(?:birth\s*weight|\bbw|\bweigh(?:ing|s|t)?)\s*(?:of\s+)?"
_WEIGHT_UNIT = r"\s*(kg|kgs|g|gm|gms|grams?)?\b"
_WEIGHT_BELOW = re.compile(
    _WEIGHT_SUBJECT + r"(?:<=?|less\s+than|below|under|lower\s+than)\s*" + _NUMBER + _WEIGHT_UNIT
)
_WEIGHT_ABOVE = re.compile(
    _WEIGHT_SUBJECT + r"(?:>=?|more\s+than|above|over|greater\s+than|higher\s+than)\s*" + _NUMBER + _WEIGHT_UNIT
)

_OUTCOME_PATTERNS = (
    (re.compile(r"\b(?:mortality|deceased|deaths?|died|dead|expired)\b"), Outcome.DECEASED),
    (re.compile(r"\bdischarg(?:e|ed|es)\b"), Outcome.DISCHARGED),
    (re.compile(r"\b(?:referred|referrals?)\b"), Outcome.REFERRED),
    (re.compile(r"\b(?:in\s+progress|currently\s+admitted|admitted\s+currently|active\s+patients)\b"),
     Outcome.IN_PROGRESS),
    (re.compile(r"\bstep[\s-]?down\b"), Outcome.STEP_DOWN),
)

_UNIT_PATTERN = re.compile(r"\b(nicu|picu|sncu|hdu|wards?)\b")

_GENDER_PATTERNS = (
    (re.compile(r"\b(?:male|males|boys?)\b"), Gender.MALE),
    (re.compile(r"\b(?:female|females|girls?)\b"), Gender.FEMALE),
)

_RELATIVE_DATES = (
    (re.compile(r"\btoday\b|\btoday's\b"), RelativeDateRange.TODAY),
    (re.compile(r"\byesterday\b"), RelativeDateRange.YESTERDAY),
    (re.compile(r"\b(?:last|past)\s+(?:7|seven)\s+days\b|\b(?:last|past|this)\s+week\b"),
     RelativeDateRange.LAST_7_DAYS),
    (re.compile(r"\b(?:last|past)\s+(?:30|thirty)\s+days\b|\bpast\s+month\b"), RelativeDateRange.LAST_30_DAYS),
)

_THIS_MONTH = re.compile(r"\bthis\s+month\b")
_LAST_MONTH = re.compile(r"\blast\s+month\b")
_MONTH_NAMES = [name.lower() for name in calendar.month_name[1:]]
# "may" is only a month when it carries a year or follows "in"
_MONTH_PATTERN = re.compile(
    r"\b(?:(" + "|".join(name for name in _MONTH_NAMES if name != "may") + r")|(?<=in\s)(may)|(may)(?=,?\s*20\d{2}))"
    r"\b(?:,?\s*(20\d{2}))?"
)
_YEAR = re.compile(r"\b(20\d{2})\b")

_AGE_UNIT = r"\s*(days?|weeks?|months?|years?)\b"
_AGE_BELOW = re.compile(r"\b(?:under|less\s+than|below|younger\s+than)\s+" + _NUMBER + _AGE_UNIT)
_AGE_ABOVE = re.compile(r"\b(?:over|more\s+than|above|older\s+than)\s+" + _NUMBER + _AGE_UNIT)

_DIAGNOSIS_VOCABULARY = (
    (re.compile(r"\bseps(?:is)?\b|\bseptic"), ("sepsis",)),
    (re.compile(r"\brds\b|respiratory\s+distress"), ("respiratory distress", "rds")),
    (re.compile(r"\bjaundice\b|hyperbilirubin"), ("jaundice", "hyperbilirubinemia")),
    (re.compile(r"\basphyxia\b|\bhie\b"), ("asphyxia", "hie")),
    (re.compile(r"\bpneumonia\b"), ("pneumonia",)),
    (re.compile(r"\bmeningitis\b"), ("meningitis",)),
    (re.compile(r"\bpreterm\b|\bprematur"), ("preterm", "prematurity")),
    (re.compile(r"\bnec\b|necrotizing\s+enterocolitis"), ("necrotizing enterocolitis", "nec")),
    (re.compile(r"\bhypoglyc[a]?emia\b"), ("hypoglycemia", "hypoglycaemia")),
    (re.compile(r"\bseizures?\b|\bconvulsions?\b"), ("seizure", "convulsion")),
    (re.compile(r"\bmeconium\b"), ("meconium",)),
    (re.compile(r"\bcongenital\s+heart|\bchd\b"), ("congenital heart",)),
    (re.compile(r"\bdiarrh(?:o)?ea\b"), ("diarrhea", "diarrhoea")),
    (re.compile(r"\bdehydration\b"), ("dehydration",)),
    (re.compile(r"\bmalaria\b"), ("malaria",)),
    (re.compile(r"\bdengue\b"), ("dengue",)),
    (re.compile(r"\ban(?:a)?emia\b"), ("anemia", "anaemia")),
    (re.compile(r"\bhypothermia\b"), ("hypothermia",)),
    (re.compile(r"\bbronchiolitis\b"), ("bronchiolitis",)),
    (re.compile(r"\basthma\b"), ("asthma",)),
    (re.compile(r"\btuberculosis\b|\btb\b"), ("tuberculosis",)),
)
_DIAGNOSED_WITH = re.compile(
    r"\bdiagnos(?:ed\s+with|is\s+of)\s+([a-z][a-z\s\-]*?)"
    r"(?=\s+(?:in|from|during|who|and|last|this|since|over|under|admitted|born|patients?)\b|[?.,;!]|$)"
)

_TRENDS = re.compile(r"\btrends?\b|over\s+time|\bdaily\b|per\s+day|by\s+date|day\s+by\s+day|\btimeline\b")
_STATISTICS = re.compile(
    r"\brates?\b|percentage|\bpercent\b|\baverage\b|\bmean\b|statistic|\bstats\b|analys[ie]s|mortality|distribution"
)
_INDIVIDUAL = re.compile(r"\bshow\b|\blist\b|details|which\s+patients|\bwho\b|\bfind\b|\bnames?\b")

_LIMIT = re.compile(r"\b(?:top|first)\s+(\d+)\b")
_SORT = re.compile(r"\bsort(?:ed)?\s+by\s+(birth\s*weight|weight|age|admission(?:\s+date)?|date)\b")


def _to_kg(value: str, unit: Optional[str]) -> float:
    number = float(value)
    if unit and unit.startswith("g"):
        return number / 1000.0
    return number


def _month_bounds(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(
        start=datetime(year, month, 1),
        end=datetime(year, month, last_day, 23, 59, 59, 999000),
    )


class HeuristicIntentAnalyzer(IntentAnalyzerPort):
    """Deterministic keyword/regex intent analyzer.

    Parameters:
        default_limit: Limit used when the query names none
        clock: Returns the current local time; injectable for tests
    """

    def __init__(self, default_limit: int = DEFAULT_LIMIT, clock: Callable[[], datetime] = datetime.now):
        self.default_limit = default_limit
        self.clock = clock

    def analyze(self, query: str) -> QuerySpec:
        text = " ".join((query or "").lower().split())
        try:
            spec = QuerySpec(
                filters=self._extract_filters(text),
                aggregation_type=self._aggregation_type(text),
                limit=self._limit(text),
                sort_by=self._sort_by(text),
            )
        except (PydanticValidationError, ValueError) as e:
            logger.warning(f"Heuristic analysis produced an invalid spec, using default: {e}")
            return QuerySpec(limit=self.default_limit)

        logger.debug(f"Heuristic intent: {spec.model_dump(mode='json', by_alias=True, exclude_none=True)}")
        return spec

    def _extract_filters(self, text: str) -> QueryFilters:
        return QueryFilters(
            units=self._units(text),
            outcomes=[outcome for pattern, outcome in _OUTCOME_PATTERNS if pattern.search(text)] or None,
            birth_weight_range=self._birth_weight(text),
            age_range=self._age(text),
            diagnosis_keywords=self._diagnoses(text),
            genders=[gender for pattern, gender in _GENDER_PATTERNS if pattern.search(text)] or None,
            date_range=self._date_range(text),
        )

    @staticmethod
    def _units(text: str) -> Optional[list[Unit]]:
        units = []
        for token in _UNIT_PATTERN.findall(text):
            unit = Unit.from_value(token.rstrip("s") if token.startswith("ward") else token)
            if unit is not None and unit not in units:
                units.append(unit)
        return units or None

    @staticmethod
    def _birth_weight(text: str) -> Optional[BirthWeightRange]:
        upper = next((limit for pattern, limit in _WEIGHT_CATEGORIES if pattern.search(text)), None)
        lower = None

        below = _WEIGHT_BELOW.search(text)
        if below:
            upper = _to_kg(below.group(1), below.group(2))
        above = _WEIGHT_ABOVE.search(text)
        if above:
            lower = _to_kg(above.group(1), above.group(2))

        if upper is None and lower is None:
            return None
        return BirthWeightRange(min=lower, max=upper)

    @staticmethod
    def _age(text: str) -> Optional[AgeRange]:
        below = _AGE_BELOW.search(text)
        above = _AGE_ABOVE.search(text)
        if not below and not above:
            return None

        bounds = {}
        for key, match in (("max", below), ("min", above)):
            if match:
                bounds[key] = (float(match.group(1)), AgeUnit.from_value(match.group(2)))

        units = {unit for _, unit in bounds.values()}
        if len(units) == 1:
            unit = units.pop()
            return AgeRange(unit=unit, **{key: value for key, (value, _) in bounds.items()})
        # Mixed units are compared in days
        return AgeRange(unit=AgeUnit.DAYS, **{key: value * unit.days for key, (value, unit) in bounds.items()})

    @staticmethod
    def _diagnoses(text: str) -> Optional[list[str]]:
        keywords: list[str] = []
        for pattern, terms in _DIAGNOSIS_VOCABULARY:
            if pattern.search(text):
                keywords.extend(term for term in terms if term not in keywords)
        for match in _DIAGNOSED_WITH.finditer(text):
            phrase = match.group(1).strip(" -")
            if phrase and phrase not in keywords:
                keywords.append(phrase)
        return keywords or None

    def _date_range(self, text: str) -> Optional[DateRange]:
        for pattern, relative in _RELATIVE_DATES:
            if pattern.search(text):
                return DateRange(relative=relative)

        now = self.clock()
        if _THIS_MONTH.search(text):
            return _month_bounds(now.year, now.month)
        if _LAST_MONTH.search(text):
            year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
            return _month_bounds(year, month)

        match = _MONTH_PATTERN.search(text)
        if match:
            name = match.group(1) or match.group(2) or match.group(3)
            year_text = match.group(4)
            if not year_text:
                any_year = _YEAR.search(text)
                year_text = any_year.group(1) if any_year else None
            year = int(year_text) if year_text else now.year
            return _month_bounds(year, _MONTH_NAMES.index(name) + 1)
        return None

    @staticmethod
    def _aggregation_type(text: str) -> AggregationType:
        if _TRENDS.search(text):
            return AggregationType.TRENDS
        if _STATISTICS.search(text):
            return AggregationType.STATISTICS
        if _INDIVIDUAL.search(text):
            return AggregationType.INDIVIDUAL
        return AggregationType.SUMMARY

    def _limit(self, text: str) -> int:
        match = _LIMIT.search(text)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
        return self.default_limit

    @staticmethod
    def _sort_by(text: str) -> Optional[SortField]:
        match = _SORT.search(text)
        if not match:
            return None
        field = match.group(1)
        if "weight" in field:
            return SortField.BIRTH_WEIGHT
        if field == "age":
            return SortField.AGE
        return SortField.ADMISSION_DATE
