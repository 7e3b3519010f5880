"""
Google Gemini vision provider.
"""

import base64
import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from alt_text.services.providers.base import MAX_OUTPUT_TOKENS, ImageInput, VisionProvider
from alt_text.utils.exceptions import VisionProviderError

logger = logging.getLogger(__name__)


class GoogleProvider(VisionProvider):
    """Generate alt text with Google Gemini."""

    name = "google"
    default_model = "gemini-1.5-flash"

    def __init__(self, model=None, api_key=None, client=None, **kwargs):
        super().__init__(model=model, api_key=api_key, **kwargs)
        self._client = client

    def _get_client(self) -> genai.GenerativeModel:
        if self._client is None:
            if not self.api_key:
                raise VisionProviderError(
                    "Google API key not configured. "
                    "Set GOOGLE_GENERATIVE_AI_API_KEY in your .env file.",
                    {"provider": self.name},
                )
            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(self.model)
            logger.info(f"Initialized Google Gemini client (model: {self.model})")
        return self._client

    def _complete(self, image: ImageInput, prompt: str) -> str:
        response = self._get_client().generate_content(
            [
                {"mime_type": image.media_type, "data": base64.b64decode(image.base64_data)},
                prompt,
            ],
            generation_config={"max_output_tokens": MAX_OUTPUT_TOKENS},
        )
        return response.text

    def is_rate_limit_error(self, error: Exception) -> bool:
        if isinstance(error, google_exceptions.ResourceExhausted):
            return True
        return "RESOURCE_EXHAUSTED" in str(error) or super().is_rate_limit_error(error)
