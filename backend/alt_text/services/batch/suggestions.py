"""
Client-side suggestion state.

Holds one Suggestion per image for the duration of an orchestration
session. The map is never mutated in place: every change builds a new map
and swaps it in, so concurrent completions landing in the same event-loop
tick cannot overwrite each other.
"""

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional

from alt_text.utils.logging import get_logger

logger = get_logger(__name__)


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    SAVED = "saved"
    ERROR = "error"


ALLOWED_TRANSITIONS = {
    SuggestionStatus.PENDING: {SuggestionStatus.GENERATING},
    SuggestionStatus.GENERATING: {SuggestionStatus.READY, SuggestionStatus.ERROR},
    SuggestionStatus.READY: {SuggestionStatus.SAVED, SuggestionStatus.GENERATING},
    SuggestionStatus.ERROR: {SuggestionStatus.GENERATING},
    SuggestionStatus.SAVED: set(),
}


class InvalidTransitionError(ValueError):
    """Raised when a status change is not part of the suggestion lifecycle."""


@dataclass(frozen=True)
class ImageRecord:
    """Image missing alt text, as returned by the missing-alt listing."""
    id: str
    filename: str
    url: str
    alt: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ImageRecord":
        return cls(
            id=str(data["id"]),
            filename=data.get("filename") or "",
            url=data.get("url") or "",
            alt=data.get("alt"),
        )


@dataclass(frozen=True)
class Suggestion:
    """Proposed alt text for one image and where it is in its lifecycle."""
    id: str
    filename: str
    image_url: str
    suggested_alt: str = ""
    status: SuggestionStatus = SuggestionStatus.PENDING
    error: Optional[str] = None

    @classmethod
    def pending(cls, image: ImageRecord) -> "Suggestion":
        return cls(id=image.id, filename=image.filename, image_url=image.url)

    def to_image(self) -> ImageRecord:
        return ImageRecord(id=self.id, filename=self.filename, url=self.image_url)


Listener = Callable[[Mapping[str, Suggestion]], None]


class SuggestionStore:
    """
    Copy-on-write map of image id -> Suggestion.

    Listeners are called with the new read-only snapshot after every change.
    """

    def __init__(self):
        self._suggestions: Mapping[str, Suggestion] = MappingProxyType({})
        self._listeners: List[Listener] = []

    @property
    def suggestions(self) -> Mapping[str, Suggestion]:
        """Current read-only snapshot."""
        return self._suggestions

    def __len__(self) -> int:
        return len(self._suggestions)

    def __contains__(self, suggestion_id: str) -> bool:
        return suggestion_id in self._suggestions

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._suggestions.get(suggestion_id)

    def with_status(self, *statuses: SuggestionStatus) -> List[Suggestion]:
        return [s for s in self._suggestions.values() if s.status in statuses]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def load(self, images: Iterable[ImageRecord]) -> None:
        """Replace the whole map with one pending suggestion per image."""
        self._swap({image.id: Suggestion.pending(image) for image in images})

    def put(self, suggestion: Suggestion) -> None:
        """Insert or replace one suggestion."""
        next_map = dict(self._suggestions)
        next_map[suggestion.id] = suggestion
        self._swap(next_map)

    def update(self, suggestion_id: str, **changes) -> Optional[Suggestion]:
        """
        Apply field changes to one suggestion.

        Returns None (and changes nothing) when the id is unknown. A status
        change must follow ALLOWED_TRANSITIONS.

        Raises:
            InvalidTransitionError: If the status change is not allowed
        """
        current = self._suggestions.get(suggestion_id)
        if current is None:
            return None

        new_status = changes.get("status")
        if new_status is not None and new_status != current.status:
            if new_status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(
                    f"Cannot move suggestion {suggestion_id} from "
                    f"{current.status.value} to {SuggestionStatus(new_status).value}"
                )

        updated = replace(current, **changes)
        next_map = dict(self._suggestions)
        next_map[suggestion_id] = updated
        self._swap(next_map)
        return updated

    def _swap(self, next_map: dict) -> None:
        self._suggestions = MappingProxyType(next_map)
        for listener in list(self._listeners):
            listener(self._suggestions)
