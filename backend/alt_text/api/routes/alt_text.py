"""
Alt-text endpoints, scoped to an image collection.

GET  /api/{collection}/missing-alt    - List images without alt text
POST /api/{collection}/generate-alt   - Generate alt text for one image
POST /api/{collection}/save-alt       - Persist one alt text
POST /api/{collection}/save-bulk-alt  - Persist many alt texts independently
"""
import asyncio
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from alt_text.api.dependencies import (
    get_collection,
    get_current_user,
    get_document_store,
    get_generator,
    get_settings,
)
from alt_text.api.schemas import (
    BulkAltUpdate,
    ErrorResponse,
    GenerateAltRequest,
    GenerateAltResponse,
    MissingAltResponse,
    SaveAltRequest,
    SaveAltResponse,
    SaveBulkAltRequest,
    SaveBulkAltResponse,
)
from alt_text.core.config import Settings
from alt_text.repositories.document_store import DocumentStore, missing_field
from alt_text.services.classifier import is_supported_image
from alt_text.services.generation import AltTextGenerator
from alt_text.utils.exceptions import UnsupportedImageTypeError
from alt_text.utils.logging import get_logger
from alt_text.utils.metrics import alt_text_saves_total

logger = get_logger(__name__)

router = APIRouter(prefix="/{collection}", tags=["alt-text"])


def error_response(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def target_collection(body_slug: Optional[str], path_collection: str, app_settings: Settings) -> Optional[str]:
    """Collection named in the body, else the one in the path; None if not enabled."""
    collection = body_slug or path_collection
    return collection if collection in app_settings.collections else None


def _update_label(item: Any, index: int) -> str:
    """The id to report for a malformed bulk entry, or its position if it has none."""
    if isinstance(item, dict) and isinstance(item.get("id"), (str, int)):
        return str(item["id"])
    return f"updates[{index}]"


@router.get(
    "/missing-alt",
    responses={
        200: {"model": MissingAltResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_missing_alt(
    user: dict = Depends(get_current_user),
    collection: str = Depends(get_collection),
    count_only: bool = Query(default=False, alias="countOnly"),
    app_settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_document_store),
):
    """
    List images whose alt-text field is empty, null or absent.

    Only files with a supported image extension are returned. With
    ``countOnly=true`` just the count is returned.
    """
    field = app_settings.alt_field_name
    try:
        records = await run_in_threadpool(
            store.find,
            collection,
            missing_field(field),
            app_settings.missing_alt_limit,
            ["filename", "url", field],
        )
    except Exception as e:
        logger.error(
            "missing_alt_query_failed",
            collection=collection,
            error_type=type(e).__name__,
            error_message=str(e),
            exc_info=True,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch images")

    images = [r for r in records if r.get("filename") and is_supported_image(r["filename"])]

    if count_only:
        return {"totalDocs": len(images)}

    docs = [
        {
            "id": r["id"],
            "filename": r["filename"],
            "url": r.get("url"),
            "alt": r.get(field) or None,
        }
        for r in images
    ]
    logger.info("missing_alt_listed", collection=collection, total=len(docs))
    return {"docs": docs, "totalDocs": len(docs)}


@router.post(
    "/generate-alt",
    response_model=GenerateAltResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_alt(
    body: GenerateAltRequest,
    request: Request,
    user: dict = Depends(get_current_user),
    collection: str = Depends(get_collection),
    generator: AltTextGenerator = Depends(get_generator),
):
    """
    Generate alt text for a single image.

    SVG files are described from their filename without calling the
    vision backend. Every failure is returned as a structured error.
    """
    if not body.imageUrl:
        return error_response(status.HTTP_400_BAD_REQUEST, "Image URL is required")

    try:
        result = await generator.generate(
            image_id=body.imageId,
            image_url=body.imageUrl,
            filename=body.filename,
            collection=collection,
            headers=request.headers,
        )
    except UnsupportedImageTypeError as e:
        logger.info("unsupported_image_type", image_id=body.imageId, extension=e.extension)
        return error_response(status.HTTP_400_BAD_REQUEST, "Not an image", e.message)
    except Exception as e:
        logger.error(
            "alt_text_generation_failed",
            image_id=body.imageId,
            filename=body.filename,
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate alt text", str(e)
        )

    return {
        "id": result.id,
        "filename": result.filename,
        "suggestedAlt": result.suggested_alt,
        "imageUrl": result.image_url,
    }


@router.post(
    "/save-alt",
    response_model=SaveAltResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def save_alt(
    body: SaveAltRequest,
    user: dict = Depends(get_current_user),
    collection: str = Depends(get_collection),
    app_settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_document_store),
):
    """Persist the alt text of one image."""
    if not body.imageId or body.altText is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Image ID and alt text are required")

    target = target_collection(body.collectionSlug, collection, app_settings)
    if target is None:
        return error_response(status.HTTP_400_BAD_REQUEST, f"Unknown collection: {body.collectionSlug}")

    try:
        await run_in_threadpool(
            store.update, target, body.imageId, {app_settings.alt_field_name: body.altText}
        )
    except Exception as e:
        alt_text_saves_total.labels(collection=target, status="failed").inc()
        logger.error(
            "alt_text_save_failed",
            collection=target,
            image_id=body.imageId,
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save alt text")

    alt_text_saves_total.labels(collection=target, status="success").inc()
    logger.info("alt_text_saved", collection=target, image_id=body.imageId)
    return {"success": True, "id": body.imageId}


@router.post(
    "/save-bulk-alt",
    response_model=SaveBulkAltResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def save_bulk_alt(
    body: SaveBulkAltRequest,
    user: dict = Depends(get_current_user),
    collection: str = Depends(get_collection),
    app_settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Persist many alt texts.

    Each update is attempted independently; partial success is a normal
    outcome and is reported through the success/failed id lists.
    Malformed entries are reported as failed by id, or by position when
    they carry no usable id.
    """
    if body.updates is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Updates array is required")

    target = target_collection(body.collectionSlug, collection, app_settings)
    if target is None:
        return error_response(status.HTTP_400_BAD_REQUEST, f"Unknown collection: {body.collectionSlug}")

    field = app_settings.alt_field_name

    async def update_one(record_id: str, alt: str) -> Tuple[str, bool]:
        try:
            await run_in_threadpool(store.update, target, record_id, {field: alt})
            return record_id, True
        except Exception as e:
            logger.warning(
                "bulk_alt_update_failed",
                collection=target,
                image_id=record_id,
                error_message=str(e),
            )
            return record_id, False

    valid, invalid = [], []
    for index, item in enumerate(body.updates):
        try:
            valid.append(BulkAltUpdate.model_validate(item))
        except ValidationError:
            label = _update_label(item, index)
            logger.warning("bulk_alt_update_invalid", collection=target, image_id=label)
            invalid.append(label)

    settled = await asyncio.gather(*(update_one(u.id, u.alt) for u in valid))

    results = {"success": [], "failed": invalid}
    for record_id, ok in settled:
        results["success" if ok else "failed"].append(record_id)

    alt_text_saves_total.labels(collection=target, status="success").inc(len(results["success"]))
    alt_text_saves_total.labels(collection=target, status="failed").inc(len(results["failed"]))
    logger.info(
        "bulk_alt_saved",
        collection=target,
        saved=len(results["success"]),
        failed=len(results["failed"]),
    )
    return results
