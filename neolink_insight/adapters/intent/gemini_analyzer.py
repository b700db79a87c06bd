"""Gemini Intent Analyzer - semantic query parsing via google-genai.

Asks a Gemini model to translate a free-text question into the QuerySpec
JSON contract. The call is bounded by a timeout; every failure mode
(transport error, timeout, malformed JSON, unknown enum value) degrades to
a fallback spec instead of raising.

Security Impact:
    - The API key lives in the injected client and is never logged
    - Query text and raw model output are logged at DEBUG only
"""

import asyncio
import json
import logging
import re
from typing import Any, Optional

from google import genai
from google.genai import types

from neolink_insight.domain.ports import IntentAnalyzerPort
from neolink_insight.domain.query_spec import DEFAULT_LIMIT, QuerySpec
from neolink_insight.infrastructure.config_manager import LanguageModelConfig
from neolink_insight.infrastructure.query_cache import QueryCache

logger = logging.getLogger(__name__)

INTENT_PROMPT = """You are a data retrieval assistant. Analyze this user query and extract the data requirements in JSON format.

User Query: "{query}"

Extract the following information and return ONLY valid JSON (no explanation):
{{
  "filters": {{
    "units": ["NICU", "PICU", "SNCU", "HDU", "WARD"] or null if not specified,
    "outcomes": ["In Progress", "Discharged", "Deceased", "Referred", "Step Down"] or null,
    "birthWeightRange": {{ "min": number, "max": number }} or null,
    "ageRange": {{ "min": number, "max": number, "unit": "Days/Weeks/Months/Years" }} or null,
    "diagnosisKeywords": ["keyword1", "keyword2"] or null,
    "genders": ["Male", "Female"] or null,
    "dateRange": {{ "relative": "today/yesterday/last7days/last30days" }} or {{ "start": "YYYY-MM-DD", "end": "YYYY-MM-DD" }} or null
  }},
  "aggregationType": "individual" | "summary" | "statistics" | "trends",
  "limit": number (default {default_limit}),
  "sortBy": "admissionDate" | "birthWeight" | "age" | null
}}

Guidelines:
- "individual": User wants specific patient details (e.g., "show me patients with...")
- "summary": User wants overview/counts (e.g., "how many patients...")
- "statistics": User wants analysis/percentages (e.g., "mortality rate...")
- "trends": User wants time-based patterns (e.g., "admissions today...")
- Extract medical abbreviations: ELBW (<1kg), VLBW (<1.5kg), LBW (<2.5kg)
- Birth weights are in kg
- For relative dates like "today", "yesterday", "last week", use dateRange.relative
- For named months or "last month", use dateRange.start and dateRange.end
- Only include filters that are explicitly mentioned or strongly implied

Return ONLY the JSON object, no other text."""

_FENCE = re.compile(r"```(?:json)?\s*|```", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def build_intent_prompt(query: str, default_limit: int = DEFAULT_LIMIT) -> str:
    return INTENT_PROMPT.format(query=query.replace('"', "'"), default_limit=default_limit)


def extract_json_object(text: Optional[str]) -> dict[str, Any]:
    """Pull the first JSON object out of a model response.

    Markdown code fences and trailing commas are tolerated.

    Raises:
        ValueError: If the text holds no decodable JSON object
    """
    if not isinstance(text, str):
        raise ValueError("Model response has no text")
    cleaned = _FENCE.sub("", text).strip()
    start = cleaned.find("{")
    if start == -1:
        raise ValueError("Model response does not contain a JSON object")
    candidate = _TRAILING_COMMA.sub(r"\1", cleaned[start:])
    try:
        obj, _ = json.JSONDecoder().raw_decode(candidate)
    except json.JSONDecodeError as e:
        raise ValueError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise ValueError("Model response JSON is not an object")
    return obj


class GeminiIntentAnalyzer(IntentAnalyzerPort):
    """Intent analyzer backed by a Gemini model.

    Parameters:
        client: google-genai client (its HTTP timeout bounds the sync call)
        model: Model name, e.g. "gemini-2.5-flash"
        timeout_seconds: Upper bound for the async call
        temperature: Sampling temperature for the parse
        cache: Optional QueryCache memoizing successful parses
        fallback: Analyzer consulted when the model call or parse fails;
            the default QuerySpec is used when None
        default_limit: Limit applied when the model omits one

    Example:
        ```python
        analyzer = GeminiIntentAnalyzer.from_config(config, cache=QueryCache())
        spec = analyzer.analyze("ELBW mortality rate last month")
        ```
    """

    def __init__(
        self,
        client: Any,
        model: str = "gemini-2.5-flash",
        timeout_seconds: float = 15.0,
        temperature: float = 0.1,
        cache: Optional[QueryCache] = None,
        fallback: Optional[IntentAnalyzerPort] = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.cache = cache
        self.fallback = fallback
        self.default_limit = default_limit

    @classmethod
    def from_config(
        cls,
        config: LanguageModelConfig,
        cache: Optional[QueryCache] = None,
        fallback: Optional[IntentAnalyzerPort] = None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> "GeminiIntentAnalyzer":
        """Build the analyzer and its client from a LanguageModelConfig.

        Raises:
            ValueError: If the config carries no API key
        """
        if config.api_key is None:
            raise ValueError("Gemini API key is not configured")
        client = genai.Client(
            api_key=config.api_key.get_secret_value(),
            http_options=types.HttpOptions(timeout=int(config.timeout_seconds * 1000)),
        )
        return cls(
            client=client,
            model=config.model,
            timeout_seconds=config.timeout_seconds,
            temperature=config.temperature,
            cache=cache,
            fallback=fallback,
            default_limit=default_limit,
        )

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.temperature,
            response_mime_type="application/json",
        )

    def _parse(self, text: Optional[str]) -> QuerySpec:
        logger.debug(f"Gemini intent response: {text}")
        data = extract_json_object(text)
        if not data.get("limit"):
            data["limit"] = self.default_limit
        return QuerySpec.model_validate(data)

    def _fallback_spec(self, query: str) -> QuerySpec:
        if self.fallback is not None:
            return self.fallback.analyze(query)
        return QuerySpec(limit=self.default_limit)

    def _cached(self, query: str) -> Optional[QuerySpec]:
        if self.cache is None:
            return None
        spec = self.cache.get(query)
        if spec is not None:
            logger.debug("Query intent served from cache")
        return spec

    def _remember(self, query: str, spec: QuerySpec) -> QuerySpec:
        if self.cache is not None:
            self.cache.set(query, spec)
        return spec

    def analyze(self, query: str) -> QuerySpec:
        cached = self._cached(query)
        if cached is not None:
            return cached

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_intent_prompt(query, self.default_limit),
                config=self._generation_config(),
            )
            spec = self._parse(response.text)
        except Exception as e:
            # Provider, network and parse failures all degrade to the fallback spec
            logger.warning(f"Semantic query analysis failed ({type(e).__name__}: {e}); using fallback")
            return self._fallback_spec(query)

        logger.info(f"Query analyzed by {self.model}: aggregation={spec.aggregation_type.value}")
        return self._remember(query, spec)

    async def analyze_async(self, query: str) -> QuerySpec:
        """Async variant bounded by ``timeout_seconds``.

        Cancellation by the caller propagates; a timeout degrades to the
        fallback spec like any other failure.
        """
        cached = self._cached(query)
        if cached is not None:
            return cached

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=build_intent_prompt(query, self.default_limit),
                    config=self._generation_config(),
                ),
                timeout=self.timeout_seconds,
            )
            spec = self._parse(response.text)
        except asyncio.TimeoutError:
            logger.warning(f"Semantic query analysis timed out after {self.timeout_seconds}s; using fallback")
            return self._fallback_spec(query)
        except Exception as e:
            logger.warning(f"Semantic query analysis failed ({type(e).__name__}: {e}); using fallback")
            return self._fallback_spec(query)

        logger.info(f"Query analyzed by {self.model}: aggregation={spec.aggregation_type.value}")
        return self._remember(query, spec)
