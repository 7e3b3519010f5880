"""
FastAPI dependencies.

Shared services are built once in ``create_app`` and kept on app.state;
these functions hand them to route handlers and enforce authentication.
"""
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from alt_text.core.config import Settings
from alt_text.repositories.document_store import DocumentStore
from alt_text.services.generation import AltTextGenerator
from alt_text.utils.logging import get_logger

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_generator(request: Request) -> AltTextGenerator:
    return request.app.state.generator


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    app_settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Authenticate the caller with a bearer token.

    Tokens are supplied by the host through the ``api_tokens`` setting.

    Raises:
        HTTPException: 401 when the token is missing or unknown
    """
    if credentials is None or credentials.credentials not in app_settings.api_tokens:
        logger.warning("unauthorized_request", has_token=credentials is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"token": credentials.credentials[:6] + "..."}


def get_collection(collection: str, app_settings: Settings = Depends(get_settings)) -> str:
    """
    Validate the collection path parameter.

    Raises:
        HTTPException: 404 when alt-text generation is not enabled for it
    """
    if collection not in app_settings.collections:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection not found: {collection}",
        )
    return collection
