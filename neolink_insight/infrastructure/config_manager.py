"""Configuration Manager for the language model connection.

Loads the provider, model and API key used by the semantic intent analyzer
from environment variables (optionally a ``.env`` file) or a JSON file.

Security Impact:
    - The API key is held as SecretStr and never logged or echoed in errors
    - Configuration files with group/world permissions are reported

Architecture:
    - Infrastructure layer; the domain never imports it
    - Type-safe configuration using Pydantic, validated on first access
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_TEMPERATURE = 0.1


class LanguageModelProvider(str, Enum):
    """Supported intent analysis back ends."""
    GEMINI = "gemini"
    HEURISTIC = "heuristic"


class LanguageModelConfig(BaseModel):
    """Language model settings with secure key handling.

    Parameters:
        provider: "gemini" for the semantic parse, "heuristic" for offline matching
        model: Gemini model name
        api_key: Gemini API key (SecretStr - never logged)
        timeout_seconds: Upper bound for one intent analysis call
        temperature: Sampling temperature of the parse
    """

    provider: LanguageModelProvider = Field(default=LanguageModelProvider.GEMINI)
    model: str = Field(default=DEFAULT_MODEL, description="Gemini model name")
    api_key: Optional[SecretStr] = Field(None, description="Gemini API key (secret)")
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return LanguageModelProvider.GEMINI
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_key_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def uses_gemini(self) -> bool:
        """True when the semantic parse is enabled and a key is available."""
        return self.provider is LanguageModelProvider.GEMINI and self.api_key is not None


class ConfigManager:
    """Configuration manager for language model settings.

    Example Usage:
        ```python
        config = ConfigManager.from_environment()
        llm_config = config.get_language_model_config()

        config = ConfigManager.from_file("neolink.json")
        timeout = config.get("llm.timeout_seconds", 15)
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config_data = config_data
        self._llm_config: Optional[LanguageModelConfig] = None

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - NL_LLM_PROVIDER: gemini or heuristic
            - NL_LLM_MODEL: Gemini model name
            - NL_GEMINI_API_KEY / GEMINI_API_KEY: API key (secret)
            - NL_LLM_TIMEOUT: Timeout in seconds
            - NL_LLM_TEMPERATURE: Sampling temperature

        Parameters:
            env_file: Optional .env path; defaults to ``.env`` in the working directory
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        config_data = {
            "llm": {
                "provider": os.getenv("NL_LLM_PROVIDER"),
                "model": os.getenv("NL_LLM_MODEL", DEFAULT_MODEL),
                "api_key": os.getenv("NL_GEMINI_API_KEY") or os.getenv("GEMINI_API_KEY"),
                "timeout_seconds": os.getenv("NL_LLM_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)),
                "temperature": os.getenv("NL_LLM_TEMPERATURE", str(DEFAULT_TEMPERATURE)),
            }
        }
        return cls(config_data)

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid JSON
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_file.stat().st_mode & 0o077 != 0:
            logger.warning(
                f"Configuration file has overly permissive permissions: {config_path}. "
                "Consider setting to 600 when it holds an API key."
            )

        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        return cls(config_data)

    def get_language_model_config(self) -> LanguageModelConfig:
        """Validated language model configuration (cached after first call)."""
        if self._llm_config is None:
            llm_data = {k: v for k, v in self._config_data.get("llm", {}).items() if v is not None}
            self._llm_config = LanguageModelConfig(**llm_data)
        return self._llm_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key, e.g. "llm.model"."""
        value = self._config_data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default


def get_language_model_config() -> LanguageModelConfig:
    """Language model configuration from the environment."""
    return ConfigManager.from_environment().get_language_model_config()
