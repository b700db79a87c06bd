"""NeoLink Insight: natural-language queries over neonatal and paediatric patient records.

The two core operations are re-exported here:

- ``analyze_query_intent(query, analyzer=None)`` turns a free-text question
  into a QuerySpec (never raises)
- ``retrieve_relevant_data(records, spec)`` applies a QuerySpec to a list of
  patient records (pure, never raises)
"""

from neolink_insight.domain.services.filter_engine import retrieve_relevant_data
from neolink_insight.main import analyze_query_intent, analyze_query_intent_async

__version__ = "1.0.0"

__all__ = ["analyze_query_intent", "analyze_query_intent_async", "retrieve_relevant_data"]
