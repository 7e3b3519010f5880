"""Utility functions and helpers."""

from alt_text.utils.exceptions import (
    BaseAppException,
    ConfigurationError,
    UnsupportedImageTypeError,
    FetchError,
    NormalizationError,
    VisionProviderError,
    RateLimitError,
    DocumentStoreError,
    ApiRequestError,
)

__all__ = [
    "BaseAppException",
    "ConfigurationError",
    "UnsupportedImageTypeError",
    "FetchError",
    "NormalizationError",
    "VisionProviderError",
    "RateLimitError",
    "DocumentStoreError",
    "ApiRequestError",
]
