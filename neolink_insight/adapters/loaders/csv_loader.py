"""CSV Patient Record Loader.

Reads the patient CSV export with pandas (every column as text) and maps
its human-readable headers ("Birth Weight (kg)", "Admission Date",
"Age Unit", ...) onto PatientRecord fields before validating each row.

Architecture:
    - Implements RecordSourcePort
    - Header mapping is automatic; an explicit column_mapping overrides it
    - Bad rows become failure results and never abort the load
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, Optional

import pandas as pd

from neolink_insight.adapters.loaders.base import BaseRecordLoader
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import Result, SourceNotFoundError, UnsupportedSourceError

logger = logging.getLogger(__name__)

# Normalized header -> PatientRecord field
HEADER_ALIASES: Dict[str, str] = {
    "id": "id",
    "patientid": "id",
    "recordid": "id",
    "firebaseid": "id",
    "name": "name",
    "patientname": "name",
    "age": "age",
    "ageunit": "age_unit",
    "gender": "gender",
    "sex": "gender",
    "diagnosis": "diagnosis",
    "admissiondiagnosis": "diagnosis",
    "diagnosisatadmission": "diagnosis",
    "birthweight": "birth_weight",
    "bw": "birth_weight",
    "unit": "unit",
    "ward": "unit",
    "outcome": "outcome",
    "status": "outcome",
    "admissiondate": "admission_date",
    "dateofadmission": "admission_date",
    "admittedon": "admission_date",
    "releasedate": "release_date",
    "dischargedate": "release_date",
    "dateofdischarge": "release_date",
    "deathdate": "death_date",
    "dateofdeath": "death_date",
    "institutionid": "institution_id",
    "institutionname": "institution_name",
    "institution": "institution_name",
    "hospital": "institution_name",
}

_PARENTHESIZED = re.compile(r"\(.*?\)")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(header: str) -> str:
    """"Birth Weight (kg)" -> "birthweight", "admission_date" -> "admissiondate"."""
    return _NON_ALNUM.sub("", _PARENTHESIZED.sub("", str(header).lower()))


class CSVRecordLoader(BaseRecordLoader):
    """Loader for CSV/TSV patient exports.

    Parameters:
        column_mapping: Optional PatientRecord field -> CSV header mapping;
            headers not covered fall back to automatic detection
        delimiter: Field delimiter (TSV files always use tabs)
    """

    adapter_name = "csv_loader"

    def __init__(self, column_mapping: Optional[Dict[str, str]] = None, delimiter: str = ','):
        self.column_mapping = column_mapping or {}
        self.delimiter = delimiter

    def can_load(self, source: str) -> bool:
        if not source:
            return False
        return Path(source).suffix.lower() in ('.csv', '.tsv')

    def get_source_info(self, source: str) -> Optional[dict]:
        source_path = Path(source)
        if not source_path.exists():
            return None
        return {
            'format': 'csv',
            'size': source_path.stat().st_size,
            'encoding': 'utf-8',
            'delimiter': '\t' if source_path.suffix.lower() == '.tsv' else self.delimiter,
        }

    def resolve_columns(self, headers: list) -> Dict[str, str]:
        """Map CSV headers to PatientRecord fields (header -> field)."""
        resolved: Dict[str, str] = {}
        explicit = {csv_col.strip().lower(): field for field, csv_col in self.column_mapping.items()}
        for header in headers:
            field = explicit.get(str(header).strip().lower()) or HEADER_ALIASES.get(normalize_header(header))
            if field and field not in resolved.values():
                resolved[header] = field
        return resolved

    def load(self, source: str) -> Iterator[Result[PatientRecord]]:
        """Load and validate every row of a CSV export.

        Raises:
            SourceNotFoundError: If the file does not exist
            UnsupportedSourceError: If the file cannot be parsed as CSV
        """
        source_path = Path(source)
        if not source_path.exists():
            raise SourceNotFoundError(f"CSV source not found: {source}", source=source)

        delimiter = '\t' if source_path.suffix.lower() == '.tsv' else self.delimiter
        try:
            df = pd.read_csv(
                source_path,
                delimiter=delimiter,
                dtype=str,
                keep_default_na=False,
                encoding='utf-8',
            )
        except pd.errors.EmptyDataError:
            logger.warning(f"No records found in {source}")
            return
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise UnsupportedSourceError(
                f"Invalid CSV format in {source}: {str(e)}",
                source=source,
                adapter=self.adapter_name
            )

        columns = self.resolve_columns(df.columns.tolist())
        missing = {"id", "unit", "outcome"} - set(columns.values())
        if missing:
            logger.warning(f"CSV {source} has no column for {sorted(missing)}; rows will be rejected")
        logger.info(f"Loading {len(df)} rows from {source} ({len(columns)} mapped columns)")

        mapped = df[list(columns)].rename(columns=columns)
        for index, row in enumerate(mapped.to_dict(orient="records")):
            raw = {field: (value if value != "" else None) for field, value in row.items()}
            yield self._to_result(raw, source, index)
