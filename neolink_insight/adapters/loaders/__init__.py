"""Patient record loaders.

Loaders implement RecordSourcePort for the app's JSON and CSV exports.
"""

import logging
from pathlib import Path

from neolink_insight.adapters.loaders.csv_loader import CSVRecordLoader
from neolink_insight.adapters.loaders.json_loader import JSONRecordLoader
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import RecordSourcePort, UnsupportedSourceError

__all__ = ["CSVRecordLoader", "JSONRecordLoader", "get_loader", "load_patient_records"]

logger = logging.getLogger(__name__)

_LOADERS = (
    (('.csv', '.tsv'), CSVRecordLoader),
    (('.json', '.jsonl', '.ndjson'), JSONRecordLoader),
)


def get_loader(source: str, **kwargs) -> RecordSourcePort:
    """Pick the loader for a source, by extension first and then by ``can_load``.

    Parameters:
        source: Path of the export
        **kwargs: Passed to the loader constructor (CSV: column_mapping, delimiter)

    Raises:
        UnsupportedSourceError: If no loader handles the source
    """
    extension = Path(source).suffix.lower()
    for extensions, loader_class in _LOADERS:
        if extension in extensions:
            return loader_class(**kwargs) if loader_class is CSVRecordLoader else loader_class()

    for _, loader_class in _LOADERS:
        loader = loader_class()
        if loader.can_load(source):
            return loader

    raise UnsupportedSourceError(
        f"No loader found for source: {source}. Supported formats: CSV, JSON",
        source=source
    )


def load_patient_records(source: str, **kwargs) -> tuple[list[PatientRecord], int]:
    """Load every valid record of an export.

    Returns:
        (records, rejected_count)

    Raises:
        SourceNotFoundError: If the source does not exist
        UnsupportedSourceError: If the format is not supported
    """
    loader = get_loader(source, **kwargs)
    records: list[PatientRecord] = []
    rejected = 0
    for result in loader.load(source):
        if result.is_success():
            records.append(result.value)
        else:
            rejected += 1
    logger.info(f"Loaded {len(records)} patient records from {source} ({rejected} rejected)")
    return records, rejected
