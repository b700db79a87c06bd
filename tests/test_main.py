"""Tests for the query pipeline entry points."""

import sys
from datetime import datetime

import pytest

from neolink_insight import analyze_query_intent, analyze_query_intent_async, retrieve_relevant_data
from neolink_insight.adapters.intent.gemini_analyzer import GeminiIntentAnalyzer
from neolink_insight.adapters.intent.heuristic_analyzer import HeuristicIntentAnalyzer
from neolink_insight.domain.enums import AggregationType
from neolink_insight.infrastructure.settings import Settings
from neolink_insight.main import create_intent_analyzer, main, process_query


@pytest.fixture
def analyzer():
    return HeuristicIntentAnalyzer(clock=lambda: datetime(2024, 3, 15, 10, 0, 0))


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in ("NL_GEMINI_API_KEY", "GEMINI_API_KEY", "NL_LLM_PROVIDER", "NL_INTENT_FALLBACK"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestCreateIntentAnalyzer:
    """Test analyzer selection from settings."""

    def test_heuristic_without_key(self, env):
        assert isinstance(create_intent_analyzer(Settings()), HeuristicIntentAnalyzer)

    def test_gemini_with_key_and_heuristic_fallback(self, env):
        env.setenv("NL_GEMINI_API_KEY", "test-key")

        analyzer = create_intent_analyzer(Settings())

        assert isinstance(analyzer, GeminiIntentAnalyzer)
        assert isinstance(analyzer.fallback, HeuristicIntentAnalyzer)
        assert analyzer.cache is not None

    def test_gemini_without_fallback(self, env):
        env.setenv("NL_GEMINI_API_KEY", "test-key")
        env.setenv("NL_INTENT_FALLBACK", "none")

        assert create_intent_analyzer(Settings()).fallback is None

    def test_force_heuristic(self, env):
        env.setenv("NL_GEMINI_API_KEY", "test-key")

        assert isinstance(create_intent_analyzer(Settings(), force_heuristic=True), HeuristicIntentAnalyzer)


class TestProcessQuery:
    def test_question_to_result(self, ward_records, analyzer, now):
        spec, result = process_query("ELBW mortality rate", ward_records, analyzer=analyzer, now=now)

        assert spec.aggregation_type is AggregationType.STATISTICS
        assert result.matched_count == 1
        assert result.report.mortality_rate == 100.0

    def test_limit_override(self, ward_records, analyzer, now):
        spec, result = process_query("show babies", ward_records, analyzer=analyzer, limit=2, now=now)

        assert spec.limit == 2
        assert len(result.returned_records) == 2

    def test_package_exports(self, ward_records, analyzer, now):
        spec = analyze_query_intent("NICU deaths yesterday", analyzer)

        result = retrieve_relevant_data(ward_records, spec, now=now)

        assert [r.id for r in result.returned_records] == ["p1"]

    @pytest.mark.asyncio
    async def test_async_analysis(self, analyzer):
        spec = await analyze_query_intent_async("VLBW babies", analyzer)

        assert spec.filters.birth_weight_range.max == 1.5


class TestMain:
    def test_answers_from_export(self, env, tmp_path, capsys):
        path = tmp_path / "patients.json"
        path.write_text('[{"id": "p1", "unit": "NICU", "outcome": "Deceased"}]', encoding="utf-8")
        env.setattr(sys, "argv", ["neolink-query", str(path), "mortality rate", "--heuristic"])

        assert main() == 0
        assert "Mortality Rate: 100.0%" in capsys.readouterr().out

    def test_missing_export(self, env, tmp_path):
        env.setattr(sys, "argv", ["neolink-query", str(tmp_path / "missing.json"), "deaths"])

        assert main() == 1
