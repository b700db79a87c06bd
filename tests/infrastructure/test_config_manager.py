"""Tests for the configuration manager and application settings."""

import json

import pytest
from pydantic import ValidationError

from neolink_insight.infrastructure.config_manager import (
    ConfigManager,
    LanguageModelConfig,
    LanguageModelProvider,
)
from neolink_insight.infrastructure.settings import Settings

ENV_VARS = [
    "NL_LLM_PROVIDER", "NL_LLM_MODEL", "NL_GEMINI_API_KEY", "GEMINI_API_KEY",
    "NL_LLM_TIMEOUT", "NL_LLM_TEMPERATURE", "NL_INTENT_FALLBACK", "NL_DEFAULT_LIMIT",
    "NL_RECORDS_PATH",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and .env file."""
    for name in ENV_VARS:
        # setenv first so variables loaded by load_dotenv are undone on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestLanguageModelConfig:
    def test_defaults(self):
        config = LanguageModelConfig()

        assert config.provider is LanguageModelProvider.GEMINI
        assert config.api_key is None
        assert config.uses_gemini is False

    def test_blank_key_is_no_key(self):
        assert LanguageModelConfig(api_key="  ").api_key is None

    def test_key_is_not_echoed(self):
        config = LanguageModelConfig(api_key="secret-value")

        assert "secret-value" not in repr(config)
        assert config.uses_gemini is True

    def test_heuristic_provider_disables_gemini(self):
        assert LanguageModelConfig(provider="Heuristic", api_key="k").uses_gemini is False

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            LanguageModelConfig(timeout_seconds=0)


class TestConfigManager:
    """Test configuration loading."""

    def test_from_environment(self, clean_env):
        clean_env.setenv("NL_GEMINI_API_KEY", "env-key")
        clean_env.setenv("NL_LLM_MODEL", "gemini-test")
        clean_env.setenv("NL_LLM_TIMEOUT", "4.5")

        config = ConfigManager.from_environment().get_language_model_config()

        assert config.api_key.get_secret_value() == "env-key"
        assert config.model == "gemini-test"
        assert config.timeout_seconds == 4.5

    def test_generic_key_variable(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "generic-key")

        config = ConfigManager.from_environment().get_language_model_config()

        assert config.api_key.get_secret_value() == "generic-key"

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("NL_LLM_PROVIDER=heuristic\n", encoding="utf-8")

        config = ConfigManager.from_environment(str(env_file)).get_language_model_config()

        assert config.provider is LanguageModelProvider.HEURISTIC

    def test_from_file(self, tmp_path):
        path = tmp_path / "neolink.json"
        path.write_text(json.dumps({"llm": {"model": "gemini-file", "temperature": 0.0}}), encoding="utf-8")

        manager = ConfigManager.from_file(str(path))

        assert manager.get_language_model_config().model == "gemini-file"
        assert manager.get("llm.temperature") == 0.0
        assert manager.get("llm.missing", "fallback") == "fallback"

    def test_from_file_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager.from_file(str(tmp_path / "missing.json"))

        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            ConfigManager.from_file(str(broken))


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings()

        assert settings.default_limit == 50
        assert settings.query_cache_ttl == 300.0
        assert settings.intent_fallback == "heuristic"
        assert settings.records_path is None
        assert settings.llm_config.uses_gemini is False

    def test_overrides(self, clean_env):
        clean_env.setenv("NL_DEFAULT_LIMIT", "20")
        clean_env.setenv("NL_INTENT_FALLBACK", "none")
        clean_env.setenv("NL_RECORDS_PATH", "/data/patients.json")

        settings = Settings()

        assert settings.default_limit == 20
        assert settings.intent_fallback == "none"
        assert settings.records_path == "/data/patients.json"

    def test_invalid_fallback(self, clean_env):
        clean_env.setenv("NL_INTENT_FALLBACK", "oracle")

        with pytest.raises(ValueError, match="NL_INTENT_FALLBACK"):
            Settings()
