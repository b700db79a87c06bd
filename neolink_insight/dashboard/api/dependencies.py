"""Dependency injection for the dashboard API.

The record store and the intent analyzer are built once per process and
shared by all requests.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException

from neolink_insight.dashboard.services.record_store import RecordStore
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import IntentAnalyzerPort, RecordLoadError
from neolink_insight.infrastructure.settings import Settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


@lru_cache()
def get_record_store() -> RecordStore:
    """Get the record store for the configured export (cached)."""
    records_path = get_settings().records_path
    logger.debug(f"Creating record store for: {records_path or 'no export'}")
    return RecordStore(records_path)


@lru_cache()
def get_intent_analyzer() -> IntentAnalyzerPort:
    """Get the intent analyzer (cached, so its query cache is shared).

    Security Impact:
        - The API key is read through the configuration manager only
    """
    from neolink_insight.main import create_intent_analyzer
    return create_intent_analyzer(get_settings())


def get_patient_records(store: Annotated[RecordStore, Depends(get_record_store)]) -> list[PatientRecord]:
    """Records of the configured export; 503 when they cannot be loaded."""
    try:
        return store.records()
    except RecordLoadError as e:
        logger.warning(f"Patient records unavailable: {str(e)}")
        raise HTTPException(status_code=503, detail="Patient records are not available")


# Type aliases for dependency injection
RecordStoreDep = Annotated[RecordStore, Depends(get_record_store)]
RecordsDep = Annotated[list[PatientRecord], Depends(get_patient_records)]
AnalyzerDep = Annotated[IntentAnalyzerPort, Depends(get_intent_analyzer)]
