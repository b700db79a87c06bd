"""Intent analyzers implementing IntentAnalyzerPort."""

from neolink_insight.adapters.intent.gemini_analyzer import GeminiIntentAnalyzer
from neolink_insight.adapters.intent.heuristic_analyzer import HeuristicIntentAnalyzer

__all__ = ["GeminiIntentAnalyzer", "HeuristicIntentAnalyzer"]
