"""
Tests for settings loading and provider resolution.
"""

import pytest

from alt_text.core.config import (
    AnthropicProviderConfig,
    GoogleProviderConfig,
    OpenAIProviderConfig,
    Settings,
    infer_provider_from_model,
    load_settings,
    resolve_provider_config,
)
from alt_text.utils.exceptions import ConfigurationError


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self):
        app_settings = Settings()

        assert app_settings.collections == ["media"]
        assert app_settings.max_length == 80
        assert app_settings.batch_size == 5
        assert app_settings.save_mode == "explicit"
        assert app_settings.alt_field_name == "alt"
        assert app_settings.language == "English"
        assert app_settings.generation_timeout == 120
        assert app_settings.missing_alt_limit == 500

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ALT_TEXT_BATCH_SIZE", "12")
        monkeypatch.setenv("ALT_TEXT_SAVE_MODE", "autosave")

        app_settings = Settings()

        assert app_settings.batch_size == 12
        assert app_settings.save_mode == "autosave"

    def test_yaml_file(self, monkeypatch, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "alt_text:\n"
            "  collections: [media, banners]\n"
            "  language: Dutch\n"
            "provider:\n"
            "  provider: anthropic\n"
            "  model: claude-3-5-haiku-latest\n"
        )
        monkeypatch.setenv("ALT_TEXT_CONFIG_FILE", str(config_file))

        app_settings = Settings()

        assert app_settings.collections == ["media", "banners"]
        assert app_settings.language == "Dutch"
        assert isinstance(app_settings.provider, AnthropicProviderConfig)
        assert app_settings.provider.model == "claude-3-5-haiku-latest"

    def test_unknown_provider_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_settings(provider={"provider": "mistral", "model": "pixtral"})

    def test_invalid_save_mode_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_settings(save_mode="sometimes")

    def test_max_length_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            load_settings(max_length=0)


class TestProviderResolution:
    """Tests for resolve_provider_config and the legacy model migration."""

    @pytest.mark.parametrize(
        "model,expected",
        [
            ("claude-3-5-sonnet-latest", AnthropicProviderConfig),
            ("gpt-4o-mini", OpenAIProviderConfig),
            ("o3-mini", OpenAIProviderConfig),
            ("gemini-1.5-pro", GoogleProviderConfig),
        ],
    )
    def test_infer_from_legacy_model(self, model, expected):
        config = infer_provider_from_model(model)

        assert isinstance(config, expected)
        assert config.model == model

    def test_unknown_legacy_model(self):
        with pytest.raises(ConfigurationError, match="llava-13b"):
            infer_provider_from_model("llava-13b")

    def test_explicit_provider_wins(self):
        app_settings = Settings(provider={"provider": "google"}, model="claude-3-opus")

        assert isinstance(resolve_provider_config(app_settings), GoogleProviderConfig)

    def test_legacy_model_is_migrated(self):
        config = resolve_provider_config(Settings(model="claude-3-opus"))

        assert isinstance(config, AnthropicProviderConfig)
        assert config.model == "claude-3-opus"

    def test_default_is_openai(self):
        config = resolve_provider_config(Settings())

        assert isinstance(config, OpenAIProviderConfig)
        assert config.model is None
