"""
Image normalization.

Vision backends reject large payloads, so images over the size or
dimension thresholds are down-scaled into a bounded box and re-encoded as
JPEG before being sent.
"""

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from alt_text.utils.exceptions import NormalizationError
from alt_text.utils.logging import get_logger
from alt_text.utils.metrics import images_resized_total

logger = get_logger(__name__)

MAX_PAYLOAD_BYTES = 4 * 1024 * 1024
MAX_DIMENSION = 7500
TARGET_BOX = (1600, 1600)
JPEG_QUALITY = 80
RESIZED_MEDIA_TYPE = "image/jpeg"
# Largest input accepted, 16383 x 16383
MAX_INPUT_PIXELS = 0x3FFF * 0x3FFF

Image.MAX_IMAGE_PIXELS = MAX_INPUT_PIXELS


@dataclass
class NormalizedImage:
    """Image bytes ready to send to a vision backend."""
    data: bytes
    media_type: str
    was_resized: bool
    width: int
    height: int


def media_type_from_content_type(content_type: str) -> str:
    """Narrow a served content type to one the vision backends accept."""
    content_type = (content_type or "").lower()
    if "png" in content_type:
        return "image/png"
    if "webp" in content_type:
        return "image/webp"
    if "gif" in content_type:
        return "image/gif"
    return "image/jpeg"


def needs_resize(size: int, width: int, height: int) -> bool:
    return size > MAX_PAYLOAD_BYTES or width > MAX_DIMENSION or height > MAX_DIMENSION


def open_image(data: bytes) -> Image.Image:
    """
    Open image bytes without decoding them.

    Raises:
        NormalizationError: If the image has more than ``MAX_INPUT_PIXELS`` pixels
    """
    image = Image.open(io.BytesIO(data))
    width, height = image.size
    if width * height > MAX_INPUT_PIXELS:
        image.close()
        raise NormalizationError(
            f"Image of {width}x{height} pixels exceeds the {MAX_INPUT_PIXELS} pixel limit",
            {"width": width, "height": height},
        )
    return image


def normalize(data: bytes, content_type: str = "") -> NormalizedImage:
    """
    Inspect an image and re-encode it when it exceeds backend limits.

    Args:
        data: Raw image bytes
        content_type: Content type the image was served with

    Returns:
        NormalizedImage with the bytes to send and their media type

    Raises:
        NormalizationError: If the image cannot be read or re-encoded
    """
    try:
        with open_image(data) as image:
            width, height = image.size

            if not needs_resize(len(data), width, height):
                return NormalizedImage(
                    data=data,
                    media_type=media_type_from_content_type(content_type),
                    was_resized=False,
                    width=width,
                    height=height,
                )

            image.draft("RGB", TARGET_BOX)
            resized = image.convert("RGB")
            # thumbnail() keeps aspect ratio and never enlarges
            resized.thumbnail(TARGET_BOX, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            resized.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise NormalizationError(
            f"Failed to read image metadata: {str(e)}",
            {"size": len(data), "content_type": content_type, "error": str(e)},
        ) from e

    resized_data = buffer.getvalue()
    images_resized_total.inc()
    logger.info(
        "image_resized",
        original_size=len(data),
        original_width=width,
        original_height=height,
        resized_size=len(resized_data),
        resized_width=resized.width,
        resized_height=resized.height,
    )
    return NormalizedImage(
        data=resized_data,
        media_type=RESIZED_MEDIA_TYPE,
        was_resized=True,
        width=resized.width,
        height=resized.height,
    )
