"""
Anthropic vision provider (Claude).
"""

import logging

import anthropic

from alt_text.services.providers.base import MAX_OUTPUT_TOKENS, ImageInput, VisionProvider
from alt_text.utils.exceptions import VisionProviderError

logger = logging.getLogger(__name__)


class AnthropicProvider(VisionProvider):
    """Generate alt text with the Anthropic messages API."""

    name = "anthropic"
    default_model = "claude-sonnet-4-20250514"

    def __init__(self, model=None, api_key=None, client=None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)
        self._client = client

    def _get_client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not self.api_key:
                raise VisionProviderError(
                    "Anthropic API key not configured. "
                    "Set ANTHROPIC_API_KEY in your .env file.",
                    {"provider": self.name},
                )
            self._client = anthropic.Anthropic(api_key=self.api_key, max_retries=0)
            logger.info(f"Initialized Anthropic client (model: {self.model})")
        return self._client

    def _complete(self, image: ImageInput, prompt: str) -> str:
        message = self._get_client().messages.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": image.media_type,
                                "data": image.base64_data,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )

    def is_rate_limit_error(self, error: Exception) -> bool:
        return isinstance(error, anthropic.RateLimitError) or super().is_rate_limit_error(error)
