"""
Async HTTP client for the alt-text endpoints of one collection.

Used by the batch orchestrator and the command-line runner.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from alt_text.services.batch.suggestions import ImageRecord
from alt_text.utils.exceptions import ApiRequestError
from alt_text.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GeneratedAlt:
    """Successful generate-alt response."""
    id: str
    filename: str
    suggested_alt: str
    image_url: str


@dataclass
class BulkSaveResult:
    """Ids persisted and ids rejected by a bulk save."""
    success: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class AltTextClient:
    """
    Client for ``/api/{collection}``.

    The underlying httpx.AsyncClient is created lazily; pass ``http_client``
    (or ``transport``) to share a connection pool or to stub the server.
    """

    def __init__(
        self,
        base_url: str,
        collection: str = "media",
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Service root (e.g., http://localhost:8000)
            collection: Collection slug the endpoints are scoped to
            token: Bearer token sent with every request
            http_client: Pre-built client to use instead of creating one
            transport: Transport for the lazily created client
            timeout: Timeout for listing and save requests in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.collection = collection
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client = http_client

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/api/{self.collection}"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "AltTextClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        default_error: str,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        client = await self._get_client()
        response = await client.request(
            method,
            f"{self.collection_url}{path}",
            headers=self._headers(),
            **kwargs,
        )
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body

        message, details = self._error_message(body, default_error)
        logger.warning(
            "alt_text_api_error",
            path=path,
            status_code=response.status_code,
            error_message=message,
        )
        raise ApiRequestError(message, status_code=response.status_code, details=details)

    @staticmethod
    def _error_message(body: Any, default_error: str) -> Tuple[str, Dict[str, Any]]:
        """Prefer the detailed cause, then the error summary, then a generic message."""
        if not isinstance(body, dict):
            return default_error, {}
        details = body.get("details")
        error = body.get("error")
        message = details if isinstance(details, str) and details else error or default_error
        return str(message), {k: v for k, v in body.items() if k in ("error", "details")}

    async def fetch_missing(self) -> List[ImageRecord]:
        """List images of the collection that have no alt text."""
        body = await self._request("GET", "/missing-alt", "Failed to fetch images")
        return [ImageRecord.from_dict(doc) for doc in body.get("docs", [])]

    async def count_missing(self) -> int:
        body = await self._request(
            "GET", "/missing-alt", "Failed to fetch images", params={"countOnly": "true"}
        )
        return int(body.get("totalDocs", 0))

    async def generate(self, image: ImageRecord) -> GeneratedAlt:
        """
        Request a suggestion for one image.

        No client-side timeout is applied here; callers bound the call.

        Raises:
            ApiRequestError: If the service returns a non-2xx response
        """
        body = await self._request(
            "POST",
            "/generate-alt",
            "Failed to generate",
            json={"imageId": image.id, "imageUrl": image.url, "filename": image.filename},
            timeout=None,
        )
        return GeneratedAlt(
            id=str(body.get("id", image.id)),
            filename=body.get("filename") or image.filename,
            suggested_alt=body.get("suggestedAlt") or "",
            image_url=body.get("imageUrl") or image.url,
        )

    async def save_alt(self, image_id: str, alt_text: str) -> None:
        await self._request(
            "POST",
            "/save-alt",
            "Failed to save alt text",
            json={"imageId": image_id, "altText": alt_text, "collectionSlug": self.collection},
        )

    async def save_bulk(self, updates: Iterable[Tuple[str, str]]) -> BulkSaveResult:
        """
        Persist many (id, alt) pairs in one request.

        Per-item failures are reported in the result, not raised.
        """
        body = await self._request(
            "POST",
            "/save-bulk-alt",
            "Failed to save alt text",
            json={
                "updates": [{"id": image_id, "alt": alt} for image_id, alt in updates],
                "collectionSlug": self.collection,
            },
        )
        return BulkSaveResult(
            success=[str(i) for i in body.get("success", [])],
            failed=[str(i) for i in body.get("failed", [])],
        )

    async def get_service_info(self) -> Dict[str, Any]:
        """Active provider and generation settings of the service."""
        client = await self._get_client()
        response = await client.get(f"{self.base_url}/api/health/provider")
        response.raise_for_status()
        return response.json()
