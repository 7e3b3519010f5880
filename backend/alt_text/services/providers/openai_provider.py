"""
OpenAI vision provider (GPT-4o family).
"""

import logging

from openai import OpenAI, RateLimitError as OpenAIRateLimitError

from alt_text.services.providers.base import MAX_OUTPUT_TOKENS, ImageInput, VisionProvider
from alt_text.utils.exceptions import VisionProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(VisionProvider):
    """Generate alt text with the OpenAI chat completions API."""

    name = "openai"
    default_model = "gpt-4o"

    def __init__(self, model=None, api_key=None, client=None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)
        self._client = client

    def _get_client(self) -> OpenAI:
        """Lazy load API client."""
        if self._client is None:
            if not self.api_key:
                raise VisionProviderError(
                    "OpenAI API key not configured. "
                    "Set OPENAI_API_KEY in your .env file.",
                    {"provider": self.name},
                )
            # SDK retries are disabled; the shared backoff policy applies instead
            self._client = OpenAI(api_key=self.api_key, max_retries=0)
            logger.info(f"Initialized OpenAI client (model: {self.model})")
        return self._client

    def _complete(self, image: ImageInput, prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{image.media_type};base64,{image.base64_data}"
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return response.choices[0].message.content or ""

    def is_rate_limit_error(self, error: Exception) -> bool:
        return isinstance(error, OpenAIRateLimitError) or super().is_rate_limit_error(error)
