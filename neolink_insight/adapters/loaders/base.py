"""Shared validation and rejection logging for record loaders."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import RecordSourcePort, Result

logger = logging.getLogger(__name__)

# Fields never copied into rejection logs
_PII_FIELDS = {"name", "patientName", "patient_name"}


class BaseRecordLoader(RecordSourcePort):
    """Common triage for loaders: validate one raw mapping into a PatientRecord.

    A record that fails validation becomes a failure Result and a logged
    rejection; it never stops the load.
    """

    adapter_name = "record_loader"

    def _to_result(self, raw: Any, source: str, record_index: int) -> Result[PatientRecord]:
        if not isinstance(raw, dict):
            error = TypeError(f"expected an object, got {type(raw).__name__}")
            self._log_rejection(source, record_index, error, None)
            return Result.failure_result(
                error,
                error_type="ValidationError",
                error_details={"source": source, "record_index": record_index},
            )
        try:
            return Result.success_result(PatientRecord.model_validate(raw))
        except PydanticValidationError as e:
            self._log_rejection(source, record_index, e, raw)
            return Result.failure_result(
                e,
                error_type="ValidationError",
                error_details={
                    "source": source,
                    "record_index": record_index,
                    "fields": [".".join(str(p) for p in err["loc"]) for err in e.errors()],
                },
            )

    def _log_rejection(self, source: str, record_index: int, error: Exception, raw: Optional[dict]) -> None:
        preview = {k: v for k, v in (raw or {}).items() if k not in _PII_FIELDS}
        logger.warning(
            f"Record {record_index} from {source} rejected",
            extra={
                'rejection_type': 'validation_failure',
                'source': source,
                'record_index': record_index,
                'error_type': type(error).__name__,
                'raw_record_preview': str(preview)[:500],
            }
        )
