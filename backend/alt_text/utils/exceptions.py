"""
Custom exceptions.

Application-specific exception classes.
"""


class BaseAppException(Exception):
    """Base exception for all application-specific exceptions."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(BaseAppException):
    """Raised when settings cannot be resolved into a usable configuration."""
    pass


class UnsupportedImageTypeError(BaseAppException):
    """Raised when a file extension is not a supported image type."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f'File type ".{extension}" is not supported. '
            "Only images can have alt text generated.",
            {"extension": extension},
        )


class FetchError(BaseAppException):
    """Raised when image bytes cannot be retrieved."""
    pass


class NormalizationError(BaseAppException):
    """Raised when an image cannot be inspected or re-encoded."""
    pass


class VisionProviderError(BaseAppException):
    """Raised when a vision backend fails to produce alt text."""
    pass


class RateLimitError(VisionProviderError):
    """Raised when a vision backend keeps rejecting requests for rate limits."""
    pass


class DocumentStoreError(BaseAppException):
    """Raised when document store operations fail."""
    pass


class ApiRequestError(BaseAppException):
    """Raised by the HTTP client when the alt-text API rejects a request."""

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        self.status_code = status_code
        super().__init__(message, details)
