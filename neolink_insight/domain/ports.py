"""Domain Ports - Contracts for record sources and intent analysis.

The query engine defines what it needs from the outside world: a way to
obtain validated patient records and a way to turn a free-text question
into a QuerySpec. Adapters (JSON/CSV loaders, the Gemini and heuristic
analyzers) implement these ports.

Security Impact:
    - Record sources yield only validated PatientRecord objects; invalid rows
      are reported as failure results instead of entering the engine
    - Intent analyzers never surface provider errors (API keys, raw model
      output) to callers

Architecture:
    - Pure abstract interfaces with no infrastructure dependencies
    - Result objects carry per-record failures without exceptions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar, Union

from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.query_spec import QuerySpec

T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of loading one record: either a value or error information.

    Attributes:
        success: True if the operation succeeded
        value: The loaded value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Error class name, e.g. "ValidationError"
        error_details: Context such as source and record_index

    Example:
        ```python
        for result in loader.load("patients.json"):
            if result.is_success():
                records.append(result.value)
            else:
                logger.warning(result.error, extra=result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Error category; defaults to the exception class name
            error_details: Additional context (source, record_index, ...)
        """
        message = str(error) if isinstance(error, Exception) else error
        type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")
        return cls(
            success=False,
            error=message,
            error_type=type_name,
            error_details=error_details or {},
        )

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class RecordLoadError(Exception):
    """Base exception for errors raised while loading patient records."""


class ValidationError(RecordLoadError):
    """Raised when a record or request cannot be validated.

    Attributes:
        source: Source identifier that failed validation
        details: Validation messages or other context
    """

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.source = source
        self.details = details or {}


class SourceNotFoundError(RecordLoadError):
    """Raised when a record source (file path) does not exist or cannot be read."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UnsupportedSourceError(RecordLoadError):
    """Raised when no loader understands the source format.

    Attributes:
        source: The unsupported source identifier
        adapter: Name of the loader that rejected it, if any
    """

    def __init__(self, message: str, source: Optional[str] = None, adapter: Optional[str] = None):
        super().__init__(message)
        self.source = source
        self.adapter = adapter


# ============================================================================
# Ports
# ============================================================================

class RecordSourcePort(ABC):
    """Abstract contract for patient record loaders.

    Key Principles:
        - Streaming: yields one Result per raw record
        - Validated: successful results always hold a PatientRecord
        - Per-record failures are results, not exceptions; only source-level
          problems (missing file, unreadable format) raise
    """

    @abstractmethod
    def load(self, source: str) -> Iterator[Result[PatientRecord]]:
        """Load records from a source.

        Parameters:
            source: File path of the export

        Yields:
            Result[PatientRecord]: validated record or rejection details

        Raises:
            SourceNotFoundError: If the source does not exist
            UnsupportedSourceError: If the source cannot be parsed at all
        """

    @abstractmethod
    def can_load(self, source: str) -> bool:
        """Check whether this loader handles the given source."""

    def get_source_info(self, source: str) -> Optional[dict]:
        """Metadata about the source (format, size); None when unknown."""
        return None


class IntentAnalyzerPort(ABC):
    """Abstract contract for turning free-text questions into a QuerySpec.

    Implementations must never raise and never return None: a question that
    cannot be understood yields ``QuerySpec.default()``.
    """

    @abstractmethod
    def analyze(self, query: str) -> QuerySpec:
        """Derive a QuerySpec from a natural-language query."""

    async def analyze_async(self, query: str) -> QuerySpec:
        """Asynchronous variant; analyzers without I/O answer synchronously."""
        return self.analyze(query)

    @property
    def name(self) -> str:
        return type(self).__name__
