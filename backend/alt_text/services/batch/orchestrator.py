"""
Batch orchestration of alt-text generation.

Sweeps the candidate images in fixed-size chunks, keeps one Suggestion per
image in a SuggestionStore and persists accepted text either per image
(autosave) or with one bulk request (explicit save).
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

import httpx

from alt_text.services.batch.client import AltTextClient, BulkSaveResult
from alt_text.services.batch.suggestions import (
    ImageRecord,
    Suggestion,
    SuggestionStatus,
    SuggestionStore,
)
from alt_text.utils.logging import get_logger

logger = get_logger(__name__)

TIMEOUT_MESSAGE = "Request timed out"


class SaveMode(str, Enum):
    EXPLICIT = "explicit"
    AUTOSAVE = "autosave"


@dataclass(frozen=True)
class Progress:
    current: int
    total: int


ProgressListener = Callable[[Progress], None]


class BatchOrchestrator:
    """
    Drives generation for a set of images.

    Chunks run strictly in order; the images of one chunk are requested
    concurrently and the whole chunk settles before the next one starts.
    ``cancel()`` is honoured at chunk boundaries only, so requests already
    in flight always finish and update their suggestion.
    """

    def __init__(
        self,
        client: AltTextClient,
        store: Optional[SuggestionStore] = None,
        batch_size: int = 5,
        save_mode: SaveMode = SaveMode.EXPLICIT,
        timeout: float = 120.0,
        on_progress: Optional[ProgressListener] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: HTTP client for the collection being processed
            store: Suggestion store to update (a new one by default)
            batch_size: Number of concurrent requests per chunk
            save_mode: Persist each success immediately or on save_all()
            timeout: Per-image generation timeout in seconds
            on_progress: Called with (current, total) after every chunk
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.client = client
        self.store = store or SuggestionStore()
        self.batch_size = batch_size
        self.save_mode = SaveMode(save_mode)
        self.timeout = timeout
        self.on_progress = on_progress

        self.progress = Progress(0, 0)
        self._cancelled = False
        self._running = False
        # Last generated or persisted text per id; used to skip no-op edits
        self._last_known: Dict[str, str] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def load(self, images: Iterable[ImageRecord]) -> None:
        """Replace the session with one pending suggestion per image."""
        images = list(images)
        self.store.load(images)
        self._last_known = {}
        self.progress = Progress(0, len(images))
        logger.info("batch_loaded", total=len(images))

    async def load_from_client(self) -> List[ImageRecord]:
        images = await self.client.fetch_missing()
        self.load(images)
        return images

    def cancel(self) -> None:
        """Stop before the next chunk; in-flight requests still complete."""
        if self._running:
            logger.info("batch_cancel_requested", progress=self.progress.current)
        self._cancelled = True

    async def run(self, images: Optional[Iterable[ImageRecord]] = None) -> Progress:
        """
        Generate suggestions for every pending image.

        Args:
            images: Candidates to process; defaults to the pending suggestions
                already in the store

        Returns:
            Progress: Final (current, total)
        """
        if images is not None:
            candidates = list(images)
        else:
            candidates = [s.to_image() for s in self.store.with_status(SuggestionStatus.PENDING)]

        total = len(candidates)
        self._cancelled = False
        self._running = True
        self.progress = Progress(0, total)
        logger.info("batch_started", total=total, batch_size=self.batch_size, save_mode=self.save_mode.value)

        try:
            for start in range(0, total, self.batch_size):
                if self._cancelled:
                    logger.info("batch_cancelled", processed=start, total=total)
                    break

                chunk = candidates[start:start + self.batch_size]
                await asyncio.gather(*(self.generate_one(image) for image in chunk))

                self._publish(Progress(min(start + self.batch_size, total), total))
        finally:
            self._running = False

        logger.info(
            "batch_finished",
            processed=self.progress.current,
            total=total,
            ready=len(self.store.with_status(SuggestionStatus.READY)),
            saved=len(self.store.with_status(SuggestionStatus.SAVED)),
            failed=len(self.store.with_status(SuggestionStatus.ERROR)),
        )
        return self.progress

    def _publish(self, progress: Progress) -> None:
        self.progress = progress
        if self.on_progress is not None:
            self.on_progress(progress)

    async def generate_one(self, image: ImageRecord) -> Suggestion:
        """
        Generate a suggestion for one image.

        Never raises for a failed request: the suggestion ends in ``error``
        with the message instead. Does not touch batch progress. Saved
        suggestions are returned unchanged.
        """
        current = self.store.get(image.id)
        if current is None:
            self.store.put(Suggestion.pending(image))
        elif current.status is SuggestionStatus.SAVED:
            return current

        self.store.update(
            image.id,
            status=SuggestionStatus.GENERATING,
            suggested_alt="",
            error=None,
        )

        try:
            generated = await asyncio.wait_for(self.client.generate(image), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._fail(image.id, TIMEOUT_MESSAGE)
        except Exception as e:
            return self._fail(image.id, getattr(e, "message", None) or str(e))

        text = generated.suggested_alt
        if not text:
            return self._fail(image.id, "Empty alt text returned")

        if not self._still_generating(image.id):
            return self.store.get(image.id)
        suggestion = self.store.update(image.id, status=SuggestionStatus.READY, suggested_alt=text)
        self._last_known[image.id] = text
        logger.debug("suggestion_ready", image_id=image.id)

        if self.save_mode is SaveMode.AUTOSAVE:
            suggestion = await self._autosave(suggestion)
        return suggestion

    def _still_generating(self, image_id: str) -> bool:
        """False when an overlapping request for the same image already settled it."""
        current = self.store.get(image_id)
        if current is not None and current.status is SuggestionStatus.GENERATING:
            return True
        logger.info("stale_generation_dropped", image_id=image_id)
        return False

    def _fail(self, image_id: str, message: str) -> Suggestion:
        logger.warning("suggestion_failed", image_id=image_id, error_message=message)
        if not self._still_generating(image_id):
            return self.store.get(image_id)
        return self.store.update(
            image_id,
            status=SuggestionStatus.ERROR,
            error=f"Error: {message}",
        )

    async def _autosave(self, suggestion: Suggestion) -> Suggestion:
        try:
            result = await self.client.save_bulk([(suggestion.id, suggestion.suggested_alt)])
        except Exception as e:
            logger.warning("autosave_failed", image_id=suggestion.id, error_message=str(e))
            return self.store.get(suggestion.id)

        if suggestion.id in result.success:
            return self._mark_saved(suggestion.id, suggestion.suggested_alt)
        logger.warning("autosave_rejected", image_id=suggestion.id)
        return self.store.get(suggestion.id)

    def _mark_saved(
        self,
        image_id: str,
        text: str,
        from_statuses=(SuggestionStatus.READY,),
    ) -> Optional[Suggestion]:
        """
        Record a completed save.

        The map may have changed while the request was in flight (a retry or
        an edit). The suggestion only moves to ``saved`` if it is still in one
        of ``from_statuses`` with the text that was sent; otherwise it is left
        as it is now.
        """
        current = self.store.get(image_id)
        if current is None or current.status not in from_statuses or current.suggested_alt != text:
            logger.info(
                "save_superseded",
                image_id=image_id,
                status=current.status.value if current else None,
            )
            return current

        self._last_known[image_id] = text
        return self.store.update(image_id, status=SuggestionStatus.SAVED)

    async def save_all(self) -> BulkSaveResult:
        """
        Persist every ready suggestion with non-empty text in one request.

        The ids reported as saved move to ``saved`` unless they were retried
        or edited while the request was in flight; the rest stay ``ready``
        so they can be saved again.
        """
        pending = [
            s for s in self.store.with_status(SuggestionStatus.READY)
            if s.suggested_alt.strip()
        ]
        if not pending:
            return BulkSaveResult()

        result = await self.client.save_bulk([(s.id, s.suggested_alt) for s in pending])

        submitted = {s.id: s.suggested_alt for s in pending}
        for image_id in result.success:
            if image_id in submitted:
                self._mark_saved(image_id, submitted[image_id])

        logger.info("bulk_save_finished", saved=len(result.success), failed=len(result.failed))
        return result

    def edit(self, image_id: str, text: str) -> Optional[Suggestion]:
        """Change the suggested text without changing the status."""
        return self.store.update(image_id, suggested_alt=text)

    async def commit_edit(self, image_id: str, text: Optional[str] = None) -> Optional[Suggestion]:
        """
        Persist a manual edit.

        Sends one save request and marks the suggestion saved, unless the
        text equals the last generated or persisted value, in which case no
        request is made.

        Raises:
            ApiRequestError: If the service rejects the save
        """
        suggestion = self.store.get(image_id)
        if suggestion is None:
            return None
        if suggestion.status not in (SuggestionStatus.READY, SuggestionStatus.SAVED):
            return suggestion

        if text is None:
            text = suggestion.suggested_alt
        if text == self._last_known.get(image_id):
            return suggestion

        await self.client.save_alt(image_id, text)
        current = self.store.get(image_id)
        if current is not None and current.status in (SuggestionStatus.READY, SuggestionStatus.SAVED):
            self.store.update(image_id, suggested_alt=text)
        return self._mark_saved(image_id, text, (SuggestionStatus.READY, SuggestionStatus.SAVED))

    async def retry(self, image_id: str) -> Optional[Suggestion]:
        """Re-run generation for one image that failed or needs a new suggestion."""
        suggestion = self.store.get(image_id)
        if suggestion is None:
            return None
        return await self.generate_one(suggestion.to_image())
