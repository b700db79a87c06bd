"""Application Settings and Configuration.

Application-wide settings combining environment variables with defaults.
The language model configuration is loaded lazily through the
ConfigManager so that importing settings never touches secrets.
"""

import os
from typing import Optional

from neolink_insight.domain.query_spec import DEFAULT_LIMIT
from neolink_insight.infrastructure.config_manager import ConfigManager, LanguageModelConfig
from neolink_insight.infrastructure.query_cache import DEFAULT_TTL_SECONDS

# Application metadata
APP_NAME = "NeoLink Insight"
APP_VERSION = "1.0.0"

INTENT_FALLBACKS = ("none", "heuristic")


class Settings:
    """Application settings loaded from the environment.

    Environment Variables:
        - NL_APP_NAME: Display name
        - NL_LOG_LEVEL: Root log level (default INFO)
        - NL_DEFAULT_LIMIT: Records returned when a query names no limit
        - NL_QUERY_CACHE_TTL: Lifetime of cached query analyses in seconds
        - NL_RECORDS_PATH: Patient export served by the API
        - NL_INTENT_FALLBACK: Analyzer used when the semantic parse fails
          ("none" for the default spec, "heuristic" for keyword matching)
    """

    def __init__(self):
        self._llm_config: Optional[LanguageModelConfig] = None
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("NL_APP_NAME", APP_NAME)
        self.app_version = APP_VERSION
        self.log_level = os.getenv("NL_LOG_LEVEL", "INFO")
        self.default_limit = max(1, int(os.getenv("NL_DEFAULT_LIMIT", str(DEFAULT_LIMIT))))
        self.query_cache_ttl = float(os.getenv("NL_QUERY_CACHE_TTL", str(DEFAULT_TTL_SECONDS)))
        self.records_path = os.getenv("NL_RECORDS_PATH")

        fallback = os.getenv("NL_INTENT_FALLBACK", "heuristic").strip().lower()
        if fallback not in INTENT_FALLBACKS:
            raise ValueError(f"NL_INTENT_FALLBACK must be one of {INTENT_FALLBACKS}, got '{fallback}'")
        self.intent_fallback = fallback

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def llm_config(self) -> LanguageModelConfig:
        """Language model configuration, loaded on first access.

        Security Impact:
            - The API key stays inside SecretStr
        """
        if self._llm_config is None:
            self._llm_config = self.config_manager.get_language_model_config()
        return self._llm_config


# Global settings instance
settings = Settings()
