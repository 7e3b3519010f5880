"""
Alt-text generation for a single image.

One call is one unit of work: classify the file, short-circuit vector
images to a filename-derived description, otherwise fetch, normalize and
ask the configured vision provider.
"""

import asyncio
import base64
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from alt_text.services.classifier import (
    IMAGE_EXTENSIONS,
    VECTOR_EXTENSIONS,
    derive_description_from_filename,
    resolve_extension,
)
from alt_text.services.fetcher import ImageFetcher
from alt_text.services.normalizer import normalize
from alt_text.services.providers.base import ImageInput, VisionProvider
from alt_text.utils.exceptions import UnsupportedImageTypeError
from alt_text.utils.logging import get_logger
from alt_text.utils.metrics import (
    alt_text_generation_duration_seconds,
    alt_text_generations_total,
    svg_descriptions_total,
)

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    """Generated alt text bound to the image it describes."""
    id: Optional[str]
    filename: Optional[str]
    suggested_alt: str
    image_url: str


def build_prompt(
    template: str,
    filename: Optional[str],
    max_length: int,
    language: str,
    extension: Optional[str] = None,
) -> str:
    """
    Fill the prompt template and append the optional extension.

    Placeholders: ``{filename}``, ``{maxLength}``, ``{language}``. Other
    braces in the template are left untouched.
    """
    prompt = (
        template.replace("{filename}", filename or "unknown")
        .replace("{maxLength}", str(max_length))
        .replace("{language}", language)
    )
    if extension and extension.strip():
        prompt = f"{prompt}\n\n{extension.strip()}"
    return prompt


class AltTextGenerator:
    """
    Generate alt text for images.

    Args:
        provider: Vision provider used for raster images
        fetcher: Image fetcher
        prompt_template: Prompt with {filename}/{maxLength}/{language} placeholders
        max_length: Maximum alt-text length, enforced by the provider
        language: Output language
        prompt_extension: Optional operator text appended to the prompt
    """

    def __init__(
        self,
        provider: VisionProvider,
        fetcher: ImageFetcher,
        prompt_template: str,
        max_length: int = 80,
        language: str = "English",
        prompt_extension: Optional[str] = None,
    ):
        self.provider = provider
        self.fetcher = fetcher
        self.prompt_template = prompt_template
        self.max_length = max_length
        self.language = language
        self.prompt_extension = prompt_extension

    def build_prompt(self, filename: Optional[str]) -> str:
        return build_prompt(
            self.prompt_template,
            filename,
            self.max_length,
            self.language,
            self.prompt_extension,
        )

    async def generate(
        self,
        image_id: Optional[str],
        image_url: str,
        filename: Optional[str],
        collection: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> GenerationResult:
        """
        Generate alt text for one image.

        Raises:
            UnsupportedImageTypeError: If the file is not a supported image
            FetchError: If the image bytes cannot be retrieved
            NormalizationError: If the image cannot be inspected or resized
            VisionProviderError: If the backend fails
        """
        extension = resolve_extension(filename, image_url)
        if extension not in IMAGE_EXTENSIONS:
            raise UnsupportedImageTypeError(extension)

        if extension in VECTOR_EXTENSIONS:
            suggested_alt = derive_description_from_filename(filename or image_url)
            svg_descriptions_total.inc()
            logger.info("alt_text_from_filename", image_id=image_id, filename=filename)
            return GenerationResult(image_id, filename, suggested_alt, image_url)

        fetched = await self.fetcher.fetch(image_url, filename, collection, headers)
        normalized = await asyncio.to_thread(normalize, fetched.data, fetched.content_type)

        image = ImageInput(
            base64_data=base64.b64encode(normalized.data).decode("ascii"),
            media_type=normalized.media_type,
        )
        prompt = self.build_prompt(filename)

        start_time = time.time()
        try:
            # Provider SDKs are blocking and may sleep for backoff
            suggested_alt = await asyncio.to_thread(
                self.provider.generate_alt_text, image, prompt, self.max_length
            )
        except Exception:
            alt_text_generations_total.labels(provider=self.provider.name, status="error").inc()
            raise
        finally:
            alt_text_generation_duration_seconds.labels(provider=self.provider.name).observe(
                time.time() - start_time
            )

        alt_text_generations_total.labels(provider=self.provider.name, status="success").inc()
        logger.info(
            "alt_text_generated",
            image_id=image_id,
            filename=filename,
            provider=self.provider.name,
            model=self.provider.model,
            was_resized=normalized.was_resized,
            length=len(suggested_alt),
        )
        return GenerationResult(image_id, filename, suggested_alt, image_url)
