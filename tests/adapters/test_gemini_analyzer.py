"""Tests for the Gemini intent analyzer.

The google-genai client is replaced by mocks; no network access happens.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from neolink_insight.adapters.intent.gemini_analyzer import (
    GeminiIntentAnalyzer,
    build_intent_prompt,
    extract_json_object,
)
from neolink_insight.adapters.intent.heuristic_analyzer import HeuristicIntentAnalyzer
from neolink_insight.domain.enums import AggregationType, Outcome, Unit
from neolink_insight.domain.query_spec import QuerySpec
from neolink_insight.domain.services.filter_engine import retrieve_relevant_data
from neolink_insight.infrastructure.config_manager import LanguageModelConfig
from neolink_insight.infrastructure.query_cache import QueryCache

VALID_RESPONSE = """{
  "filters": {
    "units": ["NICU"],
    "outcomes": ["Deceased"],
    "birthWeightRange": {"min": null, "max": 1.0},
    "ageRange": null,
    "diagnosisKeywords": null,
    "genders": null,
    "dateRange": {"relative": "last30days"}
  },
  "aggregationType": "statistics",
  "limit": 50,
  "sortBy": null
}"""


def mock_client(text=None, side_effect=None) -> Mock:
    """Create a mock google-genai client returning ``text``."""
    client = Mock()
    if side_effect is not None:
        client.models.generate_content.side_effect = side_effect
    else:
        client.models.generate_content.return_value = Mock(text=text)
    client.aio.models.generate_content = AsyncMock(return_value=Mock(text=text))
    return client


class TestExtractJsonObject:
    """Test tolerant JSON extraction from model output."""

    def test_plain_object(self):
        assert extract_json_object('{"limit": 5}') == {"limit": 5}

    def test_markdown_fence_and_trailing_comma(self):
        text = 'Here you go:\n```json\n{"limit": 5, "filters": {"units": ["NICU"],},}\n```'

        assert extract_json_object(text) == {"limit": 5, "filters": {"units": ["NICU"]}}

    def test_trailing_text_is_ignored(self):
        assert extract_json_object('{"limit": 5} hope this helps') == {"limit": 5}

    @pytest.mark.parametrize("text", [None, "", "no json here", "[1, 2]", '{"limit": '])
    def test_invalid_text_raises_value_error(self, text):
        with pytest.raises(ValueError):
            extract_json_object(text)


class TestPrompt:
    def test_prompt_embeds_query_and_default_limit(self):
        prompt = build_intent_prompt('VLBW "babies" in NICU', default_limit=20)

        assert "User Query: \"VLBW 'babies' in NICU\"" in prompt
        assert "default 20" in prompt
        assert "ELBW (<1kg)" in prompt


class TestGeminiIntentAnalyzer:
    """Test the synchronous analysis path."""

    def test_valid_response_is_parsed(self):
        client = mock_client(VALID_RESPONSE)
        analyzer = GeminiIntentAnalyzer(client, model="gemini-test")

        spec = analyzer.analyze("ELBW mortality rate in NICU last 30 days")

        assert spec.filters.units == [Unit.NICU]
        assert spec.filters.outcomes == [Outcome.DECEASED]
        assert spec.filters.birth_weight_range.max == 1.0
        assert spec.aggregation_type is AggregationType.STATISTICS
        call = client.models.generate_content.call_args
        assert call.kwargs["model"] == "gemini-test"
        assert call.kwargs["config"].response_mime_type == "application/json"

    def test_month_range_includes_its_last_day(self, make_record, now):
        response = '{"filters": {"dateRange": {"start": "2024-02-01", "end": "2024-02-29"}}}'
        analyzer = GeminiIntentAnalyzer(mock_client(response))
        records = [
            make_record("p1", admissionDate="2024-02-29T09:00:00"),
            make_record("p2", admissionDate="2024-03-01T00:30:00"),
        ]

        spec = analyzer.analyze("admissions in February 2024")
        result = retrieve_relevant_data(records, spec, now=now)

        assert spec.filters.date_range.end == datetime(2024, 2, 29, 23, 59, 59, 999000)
        assert [record.id for record in result.returned_records] == ["p1"]

    def test_missing_limit_uses_default(self):
        analyzer = GeminiIntentAnalyzer(mock_client('{"aggregationType": "individual"}'), default_limit=7)

        spec = analyzer.analyze("show babies")

        assert spec.limit == 7
        assert spec.aggregation_type is AggregationType.INDIVIDUAL

    def test_invalid_json_yields_default_spec(self):
        analyzer = GeminiIntentAnalyzer(mock_client("I cannot help with that"))

        assert analyzer.analyze("anything") == QuerySpec.default()

    def test_unknown_enum_value_yields_default_spec(self):
        analyzer = GeminiIntentAnalyzer(mock_client('{"filters": {"units": ["ICU-9"]}}'))

        assert analyzer.analyze("babies in ICU-9") == QuerySpec.default()

    def test_provider_error_uses_fallback_analyzer(self):
        client = mock_client(side_effect=RuntimeError("503 UNAVAILABLE"))
        analyzer = GeminiIntentAnalyzer(client, fallback=HeuristicIntentAnalyzer())

        spec = analyzer.analyze("ELBW mortality rate")

        assert spec.filters.birth_weight_range.max == 1.0
        assert spec.aggregation_type is AggregationType.STATISTICS

    def test_cache_hit_skips_the_model(self):
        client = mock_client(VALID_RESPONSE)
        analyzer = GeminiIntentAnalyzer(client, cache=QueryCache())

        first = analyzer.analyze("NICU deaths")
        second = analyzer.analyze("  nicu   DEATHS ")

        assert first == second
        assert client.models.generate_content.call_count == 1

    def test_failures_are_not_cached(self):
        client = mock_client("not json")
        cache = QueryCache()
        analyzer = GeminiIntentAnalyzer(client, cache=cache)

        analyzer.analyze("NICU deaths")

        assert len(cache) == 0


class TestGeminiIntentAnalyzerAsync:
    """Test the asynchronous analysis path."""

    @pytest.mark.asyncio
    async def test_valid_response_is_parsed(self):
        analyzer = GeminiIntentAnalyzer(mock_client(VALID_RESPONSE))

        spec = await analyzer.analyze_async("NICU deaths")

        assert spec.filters.units == [Unit.NICU]

    @pytest.mark.asyncio
    async def test_timeout_uses_fallback(self):
        async def slow_response(**kwargs):
            await asyncio.sleep(5)

        client = mock_client(VALID_RESPONSE)
        client.aio.models.generate_content = AsyncMock(side_effect=slow_response)
        analyzer = GeminiIntentAnalyzer(client, timeout_seconds=0.01, fallback=HeuristicIntentAnalyzer())

        spec = await analyzer.analyze_async("VLBW babies")

        assert spec.filters.birth_weight_range.max == 1.5

    @pytest.mark.asyncio
    async def test_error_without_fallback_yields_default_spec(self):
        client = mock_client(VALID_RESPONSE)
        client.aio.models.generate_content = AsyncMock(side_effect=ConnectionError("reset"))
        analyzer = GeminiIntentAnalyzer(client, default_limit=30)

        spec = await analyzer.analyze_async("anything")

        assert spec == QuerySpec(limit=30)


class TestFromConfig:
    def test_missing_key_is_rejected(self):
        with pytest.raises(ValueError, match="API key"):
            GeminiIntentAnalyzer.from_config(LanguageModelConfig())

    def test_builds_client_from_config(self, monkeypatch):
        created = {}

        def fake_client(**kwargs):
            created.update(kwargs)
            return Mock()

        monkeypatch.setattr("neolink_insight.adapters.intent.gemini_analyzer.genai.Client", fake_client)
        config = LanguageModelConfig(api_key="test-key", model="gemini-test", timeout_seconds=2)

        analyzer = GeminiIntentAnalyzer.from_config(config, default_limit=10)

        assert created["api_key"] == "test-key"
        assert created["http_options"].timeout == 2000
        assert analyzer.model == "gemini-test"
        assert analyzer.timeout_seconds == 2
        assert analyzer.default_limit == 10
