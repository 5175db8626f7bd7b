"""Remote document store client.

Thin async HTTP client for the Firestore REST API. Documents are flat
field maps whose values travel as typed wrappers (``stringValue``,
``integerValue``, ...); this module converts them to and from plain
Python values and maps transport failures to ``DocumentStoreError``.
"""

import base64
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from storefront.exceptions import (
    DocumentStoreError,
    DocumentStoreTimeoutError,
    MalformedDocumentError,
)

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 300


# ============================================================================
# Value Codec
# ============================================================================


def decode_value(value: dict[str, Any]) -> Any:
    """Convert a typed Firestore value into a Python value.

    Args:
        value: Typed value wrapper, e.g. ``{"integerValue": "15"}``.

    Returns:
        The plain Python value.

    Raises:
        MalformedDocumentError: If the wrapper is not a known value kind.
    """
    if not isinstance(value, dict) or len(value) != 1:
        raise MalformedDocumentError(f"Invalid field value: {value!r}")

    kind, raw = next(iter(value.items()))
    try:
        if kind in ("stringValue", "timestampValue", "referenceValue"):
            return str(raw)
        if kind == "integerValue":
            return int(raw)
        if kind == "doubleValue":
            return float(raw)
        if kind == "booleanValue":
            return bool(raw)
        if kind == "nullValue":
            return None
        if kind == "bytesValue":
            return base64.b64decode(raw)
        if kind == "geoPointValue":
            return {
                "latitude": float(raw.get("latitude", 0.0)),
                "longitude": float(raw.get("longitude", 0.0)),
            }
        if kind == "mapValue":
            return decode_fields(raw.get("fields", {}))
        if kind == "arrayValue":
            return [decode_value(v) for v in raw.get("values", [])]
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedDocumentError(f"Cannot decode {kind}: {raw!r}") from e

    raise MalformedDocumentError(f"Unknown value kind: {kind}")


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Decode a map of typed values."""
    if not isinstance(fields, dict):
        raise MalformedDocumentError(f"Invalid field map: {fields!r}")
    return {name: decode_value(value) for name, value in fields.items()}


def encode_value(value: Any) -> dict[str, Any]:
    """Convert a Python value into a typed Firestore value."""
    # bool must be checked before int
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, bytes):
        return {"bytesValue": base64.b64encode(value).decode("ascii")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a document value")


def encode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Encode a plain field map."""
    return {name: encode_value(value) for name, value in fields.items()}


# ============================================================================
# Client
# ============================================================================


@dataclass
class RemoteDocument:
    """A document read from or written to the store."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RemoteDocument":
        """Create from a Firestore document resource.

        The document id is the last segment of the resource name.

        Args:
            data: Document resource.

        Returns:
            RemoteDocument instance.
        """
        if not isinstance(data, dict) or not data.get("name"):
            raise MalformedDocumentError(f"Document without a name: {data!r}")
        return cls(
            id=str(data["name"]).rsplit("/", 1)[-1],
            fields=decode_fields(data.get("fields", {})),
        )


class DocumentStoreClient:
    """HTTP client for the remote document store.

    Reads whole collections and appends new documents. The store assigns
    document ids; no filtering is pushed to the server.
    """

    def __init__(
        self,
        base_url: str,
        project_id: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the document store client.

        Args:
            base_url: Firestore REST base URL.
            project_id: Project that owns the database.
            api_key: Optional API key.
            timeout: Request timeout in seconds.
            page_size: Documents requested per page when listing.
        """
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self.timeout = timeout
        self.page_size = page_size
        self._client: httpx.AsyncClient | None = None

    @property
    def documents_path(self) -> str:
        return f"/projects/{self.project_id}/databases/(default)/documents"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a store request and return the decoded JSON body.

        Raises:
            DocumentStoreTimeoutError: On timeout.
            DocumentStoreError: On transport or HTTP error.
            MalformedDocumentError: If the body is not a JSON object.
        """
        client = await self._get_client()

        params = {k: v for k, v in (params or {}).items() if v is not None}
        if self.api_key:
            params["key"] = self.api_key

        try:
            logger.debug(
                "Making document store request",
                method=method,
                path=path,
                has_body=json is not None,
            )
            response = await client.request(
                method=method,
                url=path,
                json=json,
                params=params,
            )
        except httpx.TimeoutException as e:
            logger.error("Document store request timeout", path=path, error=str(e))
            raise DocumentStoreTimeoutError(f"Request timed out: {path}") from e
        except httpx.RequestError as e:
            logger.error("Document store request failed", path=path, error=str(e))
            raise DocumentStoreError(f"Request failed: {str(e)}") from e

        if response.status_code >= 400:
            raise DocumentStoreError(
                _error_message(response),
                status_code=response.status_code,
                details={"path": path},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedDocumentError(f"Response is not JSON: {path}") from e
        if not isinstance(data, dict):
            raise MalformedDocumentError(f"Unexpected response body: {path}")
        return data

    async def list_documents(self, collection: str) -> list[RemoteDocument]:
        """Read every document of a collection.

        Follows ``nextPageToken`` until the store reports no more pages.

        Args:
            collection: Collection id.

        Returns:
            Documents in store order.
        """
        documents: list[RemoteDocument] = []
        page_token: str | None = None

        while True:
            data = await self._request(
                method="GET",
                path=f"{self.documents_path}/{collection}",
                params={"pageSize": self.page_size, "pageToken": page_token},
            )
            page = data.get("documents") or []
            if not isinstance(page, list):
                raise MalformedDocumentError(
                    f"Unexpected documents list: {collection}",
                    details={"collection": collection},
                )
            documents.extend(RemoteDocument.from_api_response(d) for d in page)
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.debug(
            "Listed collection",
            collection=collection,
            document_count=len(documents),
        )
        return documents

    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
    ) -> RemoteDocument:
        """Append a new document to a collection.

        Args:
            collection: Collection id.
            fields: Plain field map.

        Returns:
            The created document with its store-assigned id.
        """
        data = await self._request(
            method="POST",
            path=f"{self.documents_path}/{collection}",
            json={"fields": encode_fields(fields)},
        )
        return RemoteDocument.from_api_response(data)


def _error_message(response: httpx.Response) -> str:
    """Extract the store's error message from an error response."""
    try:
        error = response.json().get("error", {})
        message = error.get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"Document store returned HTTP {response.status_code}"
