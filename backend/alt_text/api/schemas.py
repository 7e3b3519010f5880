"""
Pydantic schemas for request/response models.

Field names follow the camelCase JSON contract used by the admin UI.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

RecordId = Union[str, int]


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    details: Optional[Union[str, Dict[str, Any], List[Any]]] = None


class ImageDoc(BaseModel):
    """An image record that is missing alt text."""

    id: RecordId
    filename: str
    url: Optional[str] = None
    alt: Optional[str] = None


class MissingAltResponse(BaseModel):
    """Response model for the missing-alt listing."""

    docs: List[ImageDoc]
    totalDocs: int


class GenerateAltRequest(BaseModel):
    """Request model for alt-text generation."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    imageId: Optional[str] = None
    imageUrl: Optional[str] = None
    filename: Optional[str] = None


class GenerateAltResponse(BaseModel):
    """Generated alt text for one image."""

    id: Optional[str] = None
    filename: Optional[str] = None
    suggestedAlt: str
    imageUrl: str


class SaveAltRequest(BaseModel):
    """Request model for saving one alt text."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    imageId: Optional[str] = None
    altText: Optional[str] = None
    collectionSlug: Optional[str] = None


class SaveAltResponse(BaseModel):
    """Response model for saving one alt text."""

    success: bool = True
    id: str


class BulkAltUpdate(BaseModel):
    """One entry of a bulk save."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    alt: str


class SaveBulkAltRequest(BaseModel):
    """Request model for saving many alt texts."""

    updates: Optional[List[Any]] = None
    collectionSlug: Optional[str] = None


class SaveBulkAltResponse(BaseModel):
    """Ids that were saved and ids that failed."""

    success: List[str] = []
    failed: List[str] = []
