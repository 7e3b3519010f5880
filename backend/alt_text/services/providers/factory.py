"""
Factory for creating vision providers.

Implements the Factory pattern: the typed provider configuration variant
decides which backend adapter is built. Adding a backend means adding a
config variant and a branch here.
"""

import logging
from typing import Optional

from alt_text.core.config import (
    AnthropicProviderConfig,
    GoogleProviderConfig,
    OpenAIProviderConfig,
    Settings,
)
from alt_text.services.providers.base import VisionProvider
from alt_text.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class VisionProviderFactory:
    """Factory for creating vision providers from a provider config."""

    @staticmethod
    def create_provider(config, app_settings: Optional[Settings] = None, **kwargs) -> VisionProvider:
        """
        Create the vision provider for a configuration variant.

        Args:
            config: OpenAI/Anthropic/Google provider config
            app_settings: Settings supplying environment API keys when the
                config carries none
            **kwargs: Passed to the provider (e.g. ``sleep`` or ``client``)

        Returns:
            VisionProvider instance

        Raises:
            ConfigurationError: If the config variant is unknown
        """
        provider_name = getattr(config, "provider", None)
        api_key = getattr(config, "api_key", None)
        if not api_key and app_settings is not None and provider_name:
            api_key = app_settings.default_api_key(provider_name)

        logger.info(f"Creating vision provider: {provider_name}")

        if isinstance(config, OpenAIProviderConfig):
            from alt_text.services.providers.openai_provider import OpenAIProvider
            return OpenAIProvider(model=config.model, api_key=api_key, **kwargs)

        elif isinstance(config, AnthropicProviderConfig):
            from alt_text.services.providers.anthropic_provider import AnthropicProvider
            return AnthropicProvider(model=config.model, api_key=api_key, **kwargs)

        elif isinstance(config, GoogleProviderConfig):
            # Imported lazily so the Gemini SDK is only loaded when selected
            from alt_text.services.providers.google_provider import GoogleProvider
            return GoogleProvider(model=config.model, api_key=api_key, **kwargs)

        else:
            raise ConfigurationError(
                f"Unknown vision provider: {provider_name or config!r}. "
                f"Supported providers: 'openai', 'anthropic', 'google'",
                {"provider": provider_name},
            )
