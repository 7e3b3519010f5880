"""
Base interface for vision providers.

Every backend implements a single completion call; the shared retry policy
for rate limiting and the final trim/truncate step live here so they are
identical across backends.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from alt_text.utils.exceptions import RateLimitError, VisionProviderError
from alt_text.utils.logging import get_logger
from alt_text.utils.metrics import provider_rate_limit_retries_total

logger = get_logger(__name__)

MAX_RETRIES = 3
BASE_BACKOFF_SECONDS = 15.0
MAX_OUTPUT_TOKENS = 100


@dataclass(frozen=True)
class ImageInput:
    """
    Image payload sent to a vision backend.

    Attributes:
        base64_data: Base64-encoded image bytes
        media_type: One of image/jpeg, image/png, image/gif, image/webp
    """
    base64_data: str
    media_type: str


class VisionProvider(ABC):
    """
    Base class for AI vision backends.

    Subclasses set ``name`` and ``default_model`` and implement
    ``_complete``; callers only use ``generate_alt_text``.
    """

    name: str = ""
    default_model: str = ""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model = model or self.default_model
        self.api_key = api_key
        self._sleep = sleep

    def generate_alt_text(self, image: ImageInput, prompt: str, max_length: int) -> str:
        """
        Generate alt text for an image.

        Rate-limited calls are retried up to MAX_RETRIES times, waiting
        15s, 30s then 60s. Any other error is raised immediately.

        Args:
            image: Base64 image and its media type
            prompt: Final prompt text
            max_length: Maximum number of characters to return

        Returns:
            Trimmed text, truncated to max_length

        Raises:
            RateLimitError: If the backend is still rate limiting after all retries
            VisionProviderError: For any other backend failure
        """
        retries = 0
        while True:
            try:
                text = self._complete(image, prompt)
                break
            except VisionProviderError:
                raise
            except Exception as e:
                if not self.is_rate_limit_error(e):
                    raise VisionProviderError(
                        f"{self.name} API error: {str(e)}",
                        {"provider": self.name, "model": self.model, "error": str(e)},
                    ) from e
                if retries >= MAX_RETRIES:
                    raise RateLimitError(
                        f"{self.name} API rate limit exceeded after {MAX_RETRIES} retries: {str(e)}",
                        {"provider": self.name, "model": self.model, "retries": retries},
                    ) from e

                delay = BASE_BACKOFF_SECONDS * (2 ** retries)
                retries += 1
                provider_rate_limit_retries_total.labels(provider=self.name).inc()
                logger.warning(
                    "provider_rate_limited",
                    provider=self.name,
                    model=self.model,
                    retry=retries,
                    delay_seconds=delay,
                )
                self._sleep(delay)

        return (text or "").strip()[:max_length]

    def is_rate_limit_error(self, error: Exception) -> bool:
        """True if the error signals rate limiting (HTTP 429 or similar)."""
        if getattr(error, "status_code", None) == 429:
            return True
        message = str(error).lower()
        return "429" in message or "rate limit" in message

    @abstractmethod
    def _complete(self, image: ImageInput, prompt: str) -> str:
        """
        Send one request to the backend and return its raw text.

        Raises:
            Exception: Whatever the backend SDK raises
        """
        pass

    def describe(self) -> dict:
        """Provider identity for health checks and logs."""
        return {"provider": self.name, "model": self.model}
