"""Main entry point for the NeoLink Insight query pipeline.

Wires the pieces a chat assistant needs to answer a question from patient
data: build an intent analyzer from configuration, turn the question into
a QuerySpec, and retrieve the matching records and summary.

Architecture:
    - Analyzer selection is driven by Settings / LanguageModelConfig
    - The Gemini analyzer gets its own QueryCache and, optionally, the
      heuristic analyzer as fallback
    - Retrieval is the pure filter engine; this module adds no state
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import Iterable, Optional

from neolink_insight.adapters.intent.gemini_analyzer import GeminiIntentAnalyzer
from neolink_insight.adapters.intent.heuristic_analyzer import HeuristicIntentAnalyzer
from neolink_insight.adapters.loaders import load_patient_records
from neolink_insight.domain.patient_record import PatientRecord
from neolink_insight.domain.ports import IntentAnalyzerPort, RecordLoadError
from neolink_insight.domain.query_spec import QuerySpec
from neolink_insight.domain.retrieval_result import RetrievalResult
from neolink_insight.domain.services.filter_engine import retrieve_relevant_data
from neolink_insight.infrastructure.query_cache import QueryCache
from neolink_insight.infrastructure.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def create_intent_analyzer(app_settings: Optional[Settings] = None, force_heuristic: bool = False) -> IntentAnalyzerPort:
    """Create the intent analyzer described by the configuration.

    Parameters:
        app_settings: Settings to use (defaults to the global settings)
        force_heuristic: Skip the language model even when one is configured

    Returns:
        GeminiIntentAnalyzer when a Gemini key is configured, otherwise the
        offline HeuristicIntentAnalyzer
    """
    app_settings = app_settings or default_settings
    heuristic = HeuristicIntentAnalyzer(default_limit=app_settings.default_limit)
    if force_heuristic:
        return heuristic

    llm_config = app_settings.llm_config
    if not llm_config.uses_gemini:
        logger.info("No language model configured; using heuristic intent analysis")
        return heuristic

    logger.info(f"Initializing Gemini intent analyzer with model: {llm_config.model}")
    return GeminiIntentAnalyzer.from_config(
        llm_config,
        cache=QueryCache(ttl_seconds=app_settings.query_cache_ttl),
        fallback=heuristic if app_settings.intent_fallback == "heuristic" else None,
        default_limit=app_settings.default_limit,
    )


def analyze_query_intent(query: str, analyzer: Optional[IntentAnalyzerPort] = None) -> QuerySpec:
    """Turn a free-text question into a QuerySpec.

    Never raises: an analyzer failure yields the default spec. Pass a
    long-lived ``analyzer`` to benefit from its query cache.
    """
    analyzer = analyzer or create_intent_analyzer()
    return analyzer.analyze(query)


async def analyze_query_intent_async(query: str, analyzer: Optional[IntentAnalyzerPort] = None) -> QuerySpec:
    """Async variant of ``analyze_query_intent``; cancellable by the caller."""
    analyzer = analyzer or create_intent_analyzer()
    return await analyzer.analyze_async(query)


def process_query(
    query: str,
    records: Iterable[PatientRecord],
    analyzer: Optional[IntentAnalyzerPort] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> tuple[QuerySpec, RetrievalResult]:
    """Answer a question over the given records.

    Parameters:
        query: Free-text question
        records: Patient records of one institution
        analyzer: Intent analyzer (built from settings when None)
        limit: Overrides the limit derived from the question
        now: Evaluation time for relative date filters

    Returns:
        (QuerySpec, RetrievalResult)
    """
    spec = analyze_query_intent(query, analyzer)
    if limit is not None:
        spec = spec.model_copy(update={"limit": max(1, limit)})
    result = retrieve_relevant_data(records, spec, now=now)
    return spec, result


def main() -> int:
    """Answer one question over a patient export from the command line."""
    parser = argparse.ArgumentParser(
        description="NeoLink Insight: answer a question over a patient export",
    )
    parser.add_argument("records", help="Patient export (JSON, JSON lines or CSV)")
    parser.add_argument("query", help="Question, e.g. \"ELBW mortality rate last month\"")
    parser.add_argument("--heuristic", action="store_true", help="Use offline keyword matching only")
    parser.add_argument("--limit", type=int, default=None, help="Override the number of returned records")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        records, _ = load_patient_records(args.records)
    except RecordLoadError as e:
        logger.error(f"Failed to load records: {e}")
        return 1

    analyzer = create_intent_analyzer(force_heuristic=args.heuristic)
    _, result = process_query(args.query, records, analyzer=analyzer, limit=args.limit)
    print(result.summary_text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
