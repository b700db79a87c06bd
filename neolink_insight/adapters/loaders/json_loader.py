"""JSON Patient Record Loader.

Reads patient exports in any of the shapes the clinical app produces:

- a JSON array of patient objects
- a wrapper object: {"patients": [...]}, {"records": [...]} or {"data": [...]}
- a single patient object
- JSON lines (.jsonl / .ndjson), one patient object per line

Each object is validated into a PatientRecord; invalid objects are
returned as failure results and logged as rejections.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from neolink_insight.adapters.loaders.base import BaseRecordLoader
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import Result, SourceNotFoundError, UnsupportedSourceError

logger = logging.getLogger(__name__)

JSON_LINES_SUFFIXES = ('.jsonl', '.ndjson')
_WRAPPER_KEYS = ('patients', 'records', 'data')


class JSONRecordLoader(BaseRecordLoader):
    """Loader for JSON and JSON-lines patient exports."""

    adapter_name = "json_loader"

    def can_load(self, source: str) -> bool:
        if not source:
            return False
        return Path(source).suffix.lower() in ('.json',) + JSON_LINES_SUFFIXES

    def get_source_info(self, source: str) -> Optional[dict]:
        source_path = Path(source)
        if not source_path.exists():
            return None
        return {
            'format': 'jsonl' if source_path.suffix.lower() in JSON_LINES_SUFFIXES else 'json',
            'size': source_path.stat().st_size,
            'encoding': 'utf-8',
        }

    def load(self, source: str) -> Iterator[Result[PatientRecord]]:
        """Load and validate every patient object of a JSON export.

        Raises:
            SourceNotFoundError: If the file does not exist or cannot be read
            UnsupportedSourceError: If the file is not valid JSON
        """
        source_path = Path(source)
        if not source_path.exists():
            raise SourceNotFoundError(f"JSON source not found: {source}", source=source)

        if source_path.suffix.lower() in JSON_LINES_SUFFIXES:
            yield from self._load_lines(source_path, source)
            return

        try:
            with open(source_path, 'r', encoding='utf-8') as f:
                raw_data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UnsupportedSourceError(
                f"Invalid JSON format in {source}: {str(e)}",
                source=source,
                adapter=self.adapter_name
            )
        except OSError as e:
            raise SourceNotFoundError(f"Cannot read JSON source {source}: {str(e)}", source=source)

        records = self._extract_records(raw_data, source)
        if not records:
            logger.warning(f"No records found in {source}")
            return

        for index, raw in enumerate(records):
            yield self._to_result(raw, source, index)

    def _load_lines(self, source_path: Path, source: str) -> Iterator[Result[PatientRecord]]:
        try:
            with open(source_path, 'r', encoding='utf-8') as f:
                for index, line in enumerate(f):
                    if not line.strip():
                        continue
                    try:
                        raw = json.loads(line)
                    except json.JSONDecodeError as e:
                        self._log_rejection(source, index, e, None)
                        yield Result.failure_result(
                            e,
                            error_type="ValidationError",
                            error_details={"source": source, "record_index": index},
                        )
                        continue
                    yield self._to_result(raw, source, index)
        except UnicodeDecodeError as e:
            raise UnsupportedSourceError(
                f"Invalid JSON lines encoding in {source}: {str(e)}",
                source=source,
                adapter=self.adapter_name
            )
        except OSError as e:
            raise SourceNotFoundError(f"Cannot read JSON source {source}: {str(e)}", source=source)

    def _extract_records(self, raw_data: Any, source: str) -> list:
        if isinstance(raw_data, list):
            return raw_data
        if isinstance(raw_data, dict):
            for key in _WRAPPER_KEYS:
                if isinstance(raw_data.get(key), list):
                    return raw_data[key]
            return [raw_data]
        raise UnsupportedSourceError(
            f"Unsupported JSON structure: expected array or object, got {type(raw_data).__name__}",
            source=source,
            adapter=self.adapter_name
        )
