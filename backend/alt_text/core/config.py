"""
Application configuration.

This module loads and validates settings from config.yaml and environment
variables, and resolves the vision provider configuration (including the
deprecated flat ``model`` setting) into a typed provider variant.
"""
import os
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings

from alt_text.utils.exceptions import ConfigurationError
from alt_text.utils.logging import get_logger

logger = get_logger(__name__)

# Get the backend directory (parent of the alt_text package)
BACKEND_DIR = Path(__file__).parent.parent.parent
CONFIG_FILE = BACKEND_DIR / "config.yaml"
ENV_FILE = BACKEND_DIR / ".env"

DEFAULT_PROMPT = """Generate a short alt text for this image IN {language}. The filename is "{filename}".

Rules:
- Write in {language}
- Keep it short: aim for 5-10 words, max {maxLength} characters
- For logos: just use the company/brand name followed by "logo" (e.g. "Rivas Zorggroep logo")
- For icons or decorative images: say "decorative"
- For photos: briefly describe the key subject
- Don't start with "Image of", "Photo of", "Picture of" or translations thereof
- The filename often contains the subject, use it as a strong hint

Respond with ONLY the alt text, nothing else."""


# ============================================================================
# Provider configuration variants
# ============================================================================

class OpenAIProviderConfig(BaseModel):
    """Use the OpenAI chat completions API."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    provider: Literal["openai"] = "openai"
    model: Optional[str] = None
    api_key: Optional[str] = None


class AnthropicProviderConfig(BaseModel):
    """Use the Anthropic messages API."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    provider: Literal["anthropic"] = "anthropic"
    model: Optional[str] = None
    api_key: Optional[str] = None


class GoogleProviderConfig(BaseModel):
    """Use the Google Gemini API."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    provider: Literal["google"] = "google"
    model: Optional[str] = None
    api_key: Optional[str] = None


ProviderConfig = Annotated[
    Union[OpenAIProviderConfig, AnthropicProviderConfig, GoogleProviderConfig],
    Field(discriminator="provider"),
]

# Prefix of a legacy model name -> provider variant it implies
LEGACY_MODEL_PREFIXES = (
    ("claude", AnthropicProviderConfig),
    ("gpt", OpenAIProviderConfig),
    ("chatgpt", OpenAIProviderConfig),
    ("o1", OpenAIProviderConfig),
    ("o3", OpenAIProviderConfig),
    ("o4", OpenAIProviderConfig),
    ("gemini", GoogleProviderConfig),
)


def config_file_path() -> Path:
    """Return the YAML config path, honouring ALT_TEXT_CONFIG_FILE."""
    override = os.environ.get("ALT_TEXT_CONFIG_FILE")
    return Path(override) if override else CONFIG_FILE


def load_config_yaml() -> dict:
    """Load configuration from the config.yaml file."""
    path = config_file_path()
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    return {}


class Settings(BaseSettings):
    """Application settings loaded from config.yaml and environment variables."""

    def __init__(self, **kwargs):
        config_data = load_config_yaml()

        # Only values present in config.yaml become defaults, so environment
        # variables still apply to everything the file leaves out.
        sections = {
            'api': {
                'title': 'api_title',
                'version': 'api_version',
                'host': 'host',
                'port': 'port',
                'cors_origins': 'cors_origins',
                'tokens': 'api_tokens',
            },
            'app': {
                'environment': 'environment',
                'debug': 'debug',
            },
            'logging': {
                'level': 'log_level',
                'json': 'log_json',
            },
            'alt_text': {
                'collections': 'collections',
                'prompt': 'prompt',
                'prompt_extension': 'prompt_extension',
                'max_length': 'max_length',
                'batch_size': 'batch_size',
                'save_mode': 'save_mode',
                'alt_field_name': 'alt_field_name',
                'language': 'language',
                'generation_timeout': 'generation_timeout',
                'missing_alt_limit': 'missing_alt_limit',
                'model': 'model',
            },
            'storage': {
                'document_store': 'document_store',
                'roots': 'storage_roots',
            },
        }
        for section, keys in sections.items():
            section_data = config_data.get(section) or {}
            for yaml_key, field_name in keys.items():
                if yaml_key in section_data:
                    kwargs.setdefault(field_name, section_data[yaml_key])

        if config_data.get('provider'):
            kwargs.setdefault('provider', config_data['provider'])

        super().__init__(**kwargs)

    # API Settings
    api_title: str = "Alt Text Generator API"
    api_version: str = "1.0.0"
    api_description: str = "Batch alt-text generation for image collections"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]
    environment: str = "development"

    # Bearer tokens accepted by the API (supplied by the host)
    api_tokens: list[str] = []

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Alt-text generation
    collections: list[str] = ["media"]
    prompt: str = DEFAULT_PROMPT
    prompt_extension: Optional[str] = None
    max_length: int = Field(default=80, gt=0)
    batch_size: int = Field(default=5, gt=0)
    save_mode: Literal["explicit", "autosave"] = "explicit"
    alt_field_name: str = "alt"
    language: str = "English"
    generation_timeout: float = Field(default=120.0, gt=0)
    missing_alt_limit: int = Field(default=500, gt=0)

    # Vision provider
    provider: Optional[ProviderConfig] = None
    # Deprecated: flat model name, the provider is inferred from it
    model: Optional[str] = None

    # Vision provider API keys - from env
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY"),
    )
    anthropic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("anthropic_api_key", "ANTHROPIC_API_KEY"),
    )
    google_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "google_api_key", "GOOGLE_GENERATIVE_AI_API_KEY", "GOOGLE_API_KEY"
        ),
    )

    # Document store
    document_store: Literal["memory", "supabase"] = "memory"
    storage_roots: dict[str, str] = {}
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("supabase_url", "SUPABASE_URL"),
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("supabase_service_role_key", "SUPABASE_SERVICE_ROLE_KEY"),
    )

    model_config = {
        "env_prefix": "ALT_TEXT_",
        "env_file": str(ENV_FILE),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
        "protected_namespaces": (),
        "extra": "ignore",
    }

    def default_api_key(self, provider: str) -> Optional[str]:
        """Environment-supplied API key for a provider identifier."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "google": self.google_api_key,
        }.get(provider)


def load_settings(**overrides) -> Settings:
    """
    Build Settings, turning validation failures into ConfigurationError.

    An unknown provider identifier or an out-of-range numeric option fails
    here, at startup, rather than on the first request.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            {"errors": [err["msg"] for err in e.errors()]},
        ) from e


def infer_provider_from_model(model: str):
    """
    Map a legacy flat model name to a provider config.

    Raises:
        ConfigurationError: If the model name matches no known provider
    """
    normalized = model.strip().lower()
    for prefix, config_cls in LEGACY_MODEL_PREFIXES:
        if normalized.startswith(prefix):
            return config_cls(model=model.strip())
    raise ConfigurationError(
        f"Cannot infer vision provider from legacy model name: {model}",
        {"model": model},
    )


def resolve_provider_config(app_settings: Settings):
    """
    Resolve the typed provider configuration used by the rest of the app.

    The explicit ``provider`` block wins. Without it, the deprecated
    ``model`` string is migrated once here. With neither, OpenAI is used.
    """
    if app_settings.provider is not None:
        return app_settings.provider

    if app_settings.model:
        config = infer_provider_from_model(app_settings.model)
        logger.warning(
            "deprecated_model_setting",
            model=app_settings.model,
            inferred_provider=config.provider,
            message="Use the provider block instead of the flat model setting",
        )
        return config

    return OpenAIProviderConfig()


settings = load_settings()
