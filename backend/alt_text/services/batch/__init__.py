"""Batch generation client: suggestion state, HTTP client and orchestrator."""

from alt_text.services.batch.client import AltTextClient, BulkSaveResult, GeneratedAlt
from alt_text.services.batch.orchestrator import BatchOrchestrator, Progress, SaveMode
from alt_text.services.batch.suggestions import (
    ALLOWED_TRANSITIONS,
    ImageRecord,
    InvalidTransitionError,
    Suggestion,
    SuggestionStatus,
    SuggestionStore,
)

__all__ = [
    "AltTextClient",
    "BulkSaveResult",
    "GeneratedAlt",
    "BatchOrchestrator",
    "Progress",
    "SaveMode",
    "ALLOWED_TRANSITIONS",
    "ImageRecord",
    "InvalidTransitionError",
    "Suggestion",
    "SuggestionStatus",
    "SuggestionStore",
]
