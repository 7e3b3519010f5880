"""
Filename classification.

Decides whether a filename denotes a supported image type and derives a
heuristic description from the filename alone (used for vector graphics,
which vision backends do not accept).
"""

import re
from typing import Optional
from urllib.parse import urlsplit

IMAGE_EXTENSIONS = frozenset(
    ["jpg", "jpeg", "png", "gif", "webp", "avif", "bmp", "tiff", "tif", "svg"]
)
VECTOR_EXTENSIONS = frozenset(["svg"])

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_SEPARATORS = re.compile(r"[-_]")
_WHITESPACE = re.compile(r"\s+")
_ICON_LIKE = re.compile(r"icon|ico$", re.IGNORECASE)
_LOGO_LIKE = re.compile(r"logo", re.IGNORECASE)


def get_extension(filename: str) -> str:
    """Lowercased text after the last dot, or an empty string."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def is_supported_image(filename: str) -> bool:
    """True if the filename carries a supported image extension."""
    return get_extension(filename) in IMAGE_EXTENSIONS


def resolve_extension(filename: Optional[str], image_url: str) -> str:
    """
    Extension of an image, from its filename or else from its URL path.

    The query string is ignored and the result is lowercased.
    """
    ext = get_extension(filename or "")
    if ext:
        return ext
    return get_extension(urlsplit(image_url).path.rsplit("/", 1)[-1])


def derive_description_from_filename(filename: str) -> str:
    """
    Turn a filename into a short description.

    ``"beachSunset.jpg"`` becomes ``"beach sunset"``; icon- and logo-like
    names get the word appended when the cleaned text lacks it.
    """
    basename = filename.rsplit("/", 1)[-1] or filename
    name = re.sub(r"\.[^.]+$", "", basename)

    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", _SEPARATORS.sub(" ", name)).lower()
    cleaned = _WHITESPACE.sub(" ", spaced).strip()

    if _ICON_LIKE.search(name) and "icon" not in cleaned:
        return f"{cleaned} icon"
    if _LOGO_LIKE.search(name) and "logo" not in cleaned:
        return f"{cleaned} logo"
    return cleaned
