"""
Generate Missing Alt Text - batch runner against a running service.

Loads every image of a collection that has no alt text, requests a
suggestion for each one in chunks and saves the results according to the
save mode (one bulk save at the end, or one save per image).

Usage:
    python backend/scripts/generate_missing_alt.py --token <token>
    python backend/scripts/generate_missing_alt.py --collection media --batch-size 10
    python backend/scripts/generate_missing_alt.py --cancel-after 2 --no-save
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, Tuple

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from alt_text.services.batch import (  # noqa: E402
    AltTextClient,
    BatchOrchestrator,
    Progress,
    SaveMode,
    SuggestionStatus,
)
from alt_text.utils.exceptions import ApiRequestError, ConfigurationError  # noqa: E402
from alt_text.utils.logging import configure_logging, get_logger  # noqa: E402

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 120.0


def resolve_options(
    info: dict,
    batch_size: Optional[int],
    save_mode: Optional[str],
    timeout: Optional[float],
    save: bool,
) -> Tuple[int, SaveMode, float]:
    """
    Fill unset options from the service info, then check they fit together.

    Raises:
        ConfigurationError: If saving is disabled while the effective save
            mode is autosave
    """
    batch_size = batch_size or info.get("batch_size", 5)
    mode = SaveMode(save_mode or info.get("save_mode", SaveMode.EXPLICIT.value))
    timeout = timeout or info.get("generation_timeout", DEFAULT_TIMEOUT)

    if not save and mode is SaveMode.AUTOSAVE:
        raise ConfigurationError(
            "--no-save cannot be combined with autosave; pass --save-mode explicit"
        )
    return batch_size, mode, timeout


async def run_batch(
    base_url: str,
    collection: str,
    token: Optional[str],
    batch_size: Optional[int] = None,
    save_mode: Optional[str] = None,
    cancel_after: Optional[int] = None,
    timeout: Optional[float] = None,
    save: bool = True,
) -> bool:
    """
    Run one generation session.

    Batch size, save mode and timeout default to what the service reports.

    Returns:
        bool: True when every image ended up ready or saved
    """
    async with AltTextClient(base_url, collection=collection, token=token) as client:
        info = {}
        if batch_size is None or save_mode is None or timeout is None:
            info = await client.get_service_info()
            print(f"🤖 Provider: {info.get('provider')} ({info.get('model')})")
        batch_size, mode, timeout = resolve_options(info, batch_size, save_mode, timeout, save)

        chunks_done = 0

        def on_progress(progress: Progress) -> None:
            nonlocal chunks_done
            chunks_done += 1
            print(f"   ⏳ {progress.current}/{progress.total}")
            if cancel_after is not None and chunks_done >= cancel_after:
                orchestrator.cancel()

        orchestrator = BatchOrchestrator(
            client,
            batch_size=batch_size,
            save_mode=mode,
            timeout=timeout,
            on_progress=on_progress,
        )

        images = await orchestrator.load_from_client()
        if not images:
            print(f"✅ No images without alt text in '{collection}'")
            return True

        print(f"🖼️  {len(images)} images without alt text in '{collection}' "
              f"(batch size {batch_size}, {mode.value} save)")
        await orchestrator.run()

        if orchestrator.cancelled:
            print("⏹️  Cancelled, remaining images were left pending")

        if orchestrator.save_mode is SaveMode.EXPLICIT and save:
            result = await orchestrator.save_all()
            print(f"💾 Saved {len(result.success)} alt texts, {len(result.failed)} failed")

        store = orchestrator.store
        for suggestion in store.with_status(SuggestionStatus.ERROR):
            print(f"   ❌ {suggestion.filename}: {suggestion.error}")
        if not save:
            for suggestion in store.with_status(SuggestionStatus.READY):
                print(f"   📝 {suggestion.filename}: {suggestion.suggested_alt}")

        failed = store.with_status(SuggestionStatus.ERROR)
        print(
            f"\n📊 ready={len(store.with_status(SuggestionStatus.READY))} "
            f"saved={len(store.with_status(SuggestionStatus.SAVED))} "
            f"pending={len(store.with_status(SuggestionStatus.PENDING))} "
            f"error={len(failed)}"
        )
        return not failed


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Generate alt text for every image of a collection that has none",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use the batch size and save mode configured on the service
  python backend/scripts/generate_missing_alt.py --token secret

  # Review suggestions without saving them
  python backend/scripts/generate_missing_alt.py --token secret --no-save

  # Stop after the first two chunks
  python backend/scripts/generate_missing_alt.py --token secret --cancel-after 2
        """
    )
    parser.add_argument("--base-url", default="http://localhost:8000", help="Service root URL")
    parser.add_argument("--collection", default="media", help="Collection slug")
    parser.add_argument("--token", help="Bearer token accepted by the service")
    parser.add_argument("--batch-size", type=int, help="Concurrent requests per chunk")
    parser.add_argument(
        "--save-mode",
        choices=[mode.value for mode in SaveMode],
        help="Save once at the end (explicit) or after every image (autosave)",
    )
    parser.add_argument("--cancel-after", type=int, help="Stop after this many chunks")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-image timeout in seconds (default: the service setting)",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Print suggestions instead of saving them; not allowed with autosave",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every request")

    args = parser.parse_args()
    if args.no_save and args.save_mode == SaveMode.AUTOSAVE.value:
        parser.error("--no-save cannot be combined with --save-mode autosave")

    configure_logging(log_level="DEBUG" if args.verbose else "WARNING", json_output=False)

    try:
        success = asyncio.run(run_batch(
            base_url=args.base_url,
            collection=args.collection,
            token=args.token,
            batch_size=args.batch_size,
            save_mode=args.save_mode,
            cancel_after=args.cancel_after,
            timeout=args.timeout,
            save=not args.no_save,
        ))
        sys.exit(0 if success else 1)

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user")
        sys.exit(1)
    except ApiRequestError as e:
        print(f"\n❌ {e.message} (status {e.status_code})")
        sys.exit(1)
    except ConfigurationError as e:
        print(f"\n❌ {e.message}")
        sys.exit(2)
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
