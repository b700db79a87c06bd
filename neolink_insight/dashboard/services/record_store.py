"""Record store service.

Holds the validated patient records of the configured export in memory so
requests query a snapshot instead of re-reading the file.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from neolink_insight.adapters.loaders import load_patient_records
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import SourceNotFoundError

logger = logging.getLogger(__name__)


class RecordStore:
    """Lazily loaded, reloadable snapshot of one patient export."""

    def __init__(self, source: Optional[str]):
        """Initialize the store.

        Parameters:
            source: Path of the export; None when no export is configured
        """
        self.source = source
        self._records: Optional[list[PatientRecord]] = None
        self._rejected = 0
        self._loaded_at: Optional[datetime] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._records is not None

    @property
    def rejected_count(self) -> int:
        return self._rejected

    @property
    def loaded_at(self) -> Optional[datetime]:
        return self._loaded_at

    def records(self) -> list[PatientRecord]:
        """Return the snapshot, loading it on first use.

        Raises:
            SourceNotFoundError: If no export is configured or it does not exist
            UnsupportedSourceError: If the export format is not supported
        """
        if self._records is not None:
            return self._records
        with self._lock:
            if self._records is None:
                self._load()
        return self._records

    def reload(self) -> list[PatientRecord]:
        """Discard the snapshot and read the export again."""
        with self._lock:
            self._load()
        return self._records

    def _load(self) -> None:
        if not self.source:
            raise SourceNotFoundError("No patient export configured (set NL_RECORDS_PATH)")
        records, rejected = load_patient_records(self.source)
        self._records = records
        self._rejected = rejected
        self._loaded_at = datetime.now(timezone.utc)
        logger.info(f"Record store loaded {len(records)} records ({rejected} rejected)")
