"""Cloud Firestore REST gateway."""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import TYPE_CHECKING, Any

import httpx

from .codec import decode_document, encode_fields, encode_value
from .errors import NotFound, RemoteUnavailable

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://firestore.googleapis.com/v1"
AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20


def auto_id() -> str:
    """Random document id in the same shape the Firestore client SDKs generate."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


class FirestoreGateway:
    """RemoteGateway over the Firestore REST v1 API.

    Provides a thin async wrapper with:
    - API key and/or bearer token authentication
    - Server timestamps for ``createdAt`` on create
    - Equality queries through ``runQuery``
    - Uniform error mapping to ``RemoteUnavailable`` / ``NotFound``
    """

    def __init__(
        self,
        project: str,
        database: str = "(default)",
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the gateway.

        Args:
            project: Google Cloud project id hosting the database
            database: Firestore database id
            base_url: REST endpoint root (override for the emulator)
            api_key: Optional web API key, sent as the ``key`` query parameter
            token: Optional OAuth / Firebase ID token, sent as a bearer token
            timeout: Per-request timeout in seconds
        """
        self.project = project
        self.database = database
        self.base_url = base_url.rstrip("/")
        self._database_path = f"projects/{project}/databases/{database}"
        self._documents_path = f"{self._database_path}/documents"
        self._documents_url = f"{self.base_url}/{self._documents_path}"

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        params = {"key": api_key} if api_key else None
        self._client = httpx.AsyncClient(headers=headers, params=params, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> FirestoreGateway:
        """Create a gateway from application settings.

        Raises:
            RemoteUnavailable: If no Firestore project is configured
        """
        if not settings.firestore_project:
            raise RemoteUnavailable(
                "No Firestore project configured. Set VIBESYNC_FIRESTORE_PROJECT."
            )
        return cls(
            project=settings.firestore_project,
            database=settings.database,
            base_url=settings.base_url,
            api_key=settings.api_key,
            token=settings.token,
            timeout=settings.timeout,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> FirestoreGateway:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        """Create a document with an auto id and a server ``createdAt``."""
        document_id = auto_id()
        name = f"{self._documents_path}/{collection}/{document_id}"
        payload = {
            "writes": [
                {
                    "update": {"name": name, "fields": encode_fields(fields)},
                    "updateTransforms": [
                        {"fieldPath": "createdAt", "setToServerValue": "REQUEST_TIME"}
                    ],
                    "currentDocument": {"exists": False},
                }
            ]
        }
        await self._request("POST", f"{self._documents_url}:commit", op="create", json=payload)
        logger.debug("Created %s/%s", collection, document_id)
        return document_id

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        """Read one document."""
        response = await self._request(
            "GET",
            f"{self._documents_url}/{collection}/{document_id}",
            op="get",
            missing=(collection, document_id),
        )
        return decode_document(self._json(response, "get"))

    async def query(self, collection: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Run an equality query over one collection."""
        structured: dict[str, Any] = {"from": [{"collectionId": collection}]}
        where = _build_where(filters)
        if where is not None:
            structured["where"] = where

        response = await self._request(
            "POST",
            f"{self._documents_url}:runQuery",
            op="query",
            json={"structuredQuery": structured},
        )
        # runQuery streams one entry per result; entries without a document
        # only report progress (readTime, skippedResults)
        results = self._json(response, "query")
        return [decode_document(entry["document"]) for entry in results if "document" in entry]

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> bool:
        """Patch the given fields; the document must already exist."""
        params = {
            "updateMask.fieldPaths": list(fields),
            "currentDocument.exists": "true",
        }
        await self._request(
            "PATCH",
            f"{self._documents_url}/{collection}/{document_id}",
            op="update",
            missing=(collection, document_id),
            params=params,
            json={"fields": encode_fields(fields)},
        )
        return True

    async def _request(
        self,
        method: str,
        url: str,
        op: str,
        missing: tuple[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and map failures.

        Raises:
            NotFound: 404 for a request addressing a single document
            RemoteUnavailable: Transport errors and every other non-2xx status
        """
        start_time = time.monotonic()
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("Firestore %s failed after %.0fms: %s", op, elapsed_ms, e)
            raise RemoteUnavailable(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status == 404 and missing is not None:
            logger.info("Firestore %s: 404 Not Found (%.0fms)", op, elapsed_ms)
            raise NotFound(*missing)

        if status >= 400:
            logger.error("Firestore %s: HTTP %d (%.0fms)", op, status, elapsed_ms)
            raise RemoteUnavailable(
                f"HTTP {status}: {_error_message(response)}", status_code=status
            )

        logger.info("Firestore %s: %d OK (%.0fms)", op, status, elapsed_ms)
        return response

    @staticmethod
    def _json(response: httpx.Response, op: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error("Firestore %s: invalid JSON response", op)
            raise RemoteUnavailable(f"Invalid JSON response: {e}") from e


def _build_where(filters: dict[str, Any]) -> dict[str, Any] | None:
    """Equality filters AND-ed together, in runQuery's structured form."""
    clauses = [
        {
            "fieldFilter": {
                "field": {"fieldPath": field},
                "op": "EQUAL",
                "value": encode_value(value),
            }
        }
        for field, value in filters.items()
    ]
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"compositeFilter": {"op": "AND", "filters": clauses}}


def _error_message(response: httpx.Response) -> str:
    """Pull the message out of a Google API error body, falling back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", response.text)
    return response.text
