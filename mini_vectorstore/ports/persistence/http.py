"""HTTP persistence adapter talking to a remote document service with `requests`."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Sequence

import requests

from ...core._async_utils import _as_list
from ...core.constants import HTTP_DEFAULT_TIMEOUT_SECONDS
from ...core.errors import PersistenceError, VectorStoreErrorCode
from ...core.types import StoredDocument, VectorStoreMetadata
from ...core.vectors.document_codecs import (
    DEFAULT_METADATA_CODEC,
    MetadataCodec,
    deserialize_store_metadata,
    deserialize_stored_document,
    serialize_store_metadata,
    serialize_stored_document,
)

logger = logging.getLogger(__name__)


class HTTPPersistence:
    """Async persistence over a small REST API rooted at `base_url`.

    Endpoints:
        GET    {base}/documents   -> list of stored documents
        POST   {base}/documents   <- list of stored documents (upsert)
        DELETE {base}/documents   <- {"ids": [...]} removes ids; no body clears
        GET    {base}/metadata    -> store metadata, 404 when absent
        PUT    {base}/metadata    <- store metadata
        GET    {base}/health      -> any 2xx means available

    Blocking `requests` calls run in a worker thread.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = HTTP_DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        codec: MetadataCodec = DEFAULT_METADATA_CODEC,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.base_url = base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json", **dict(headers or {})}
        self.timeout = timeout
        self.session = session or requests.Session()
        self.codec = codec

    async def load(self) -> List[StoredDocument]:
        response = await self._request("GET", "/documents", operation="load")
        self._raise_for_status(response, "load", VectorStoreErrorCode.LOAD_FAILED)
        return [deserialize_stored_document(item, self.codec) for item in response.json()]

    async def load_metadata(self) -> Optional[VectorStoreMetadata]:
        try:
            response = await self._request("GET", "/metadata", operation="load_metadata")
        except PersistenceError:
            logger.info("Metadata request failed; treating store metadata as absent")
            return None
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "load_metadata", VectorStoreErrorCode.LOAD_FAILED)
        return deserialize_store_metadata(response.json())

    async def save(self, documents: StoredDocument | Sequence[StoredDocument]) -> None:
        docs = _as_list(documents, StoredDocument)
        payload = [serialize_stored_document(doc, self.codec) for doc in docs]
        response = await self._request("POST", "/documents", json=payload, operation="save")
        self._raise_for_status(response, "save", VectorStoreErrorCode.SAVE_FAILED)

    async def save_metadata(self, metadata: VectorStoreMetadata) -> None:
        response = await self._request(
            "PUT",
            "/metadata",
            json=serialize_store_metadata(metadata),
            operation="save_metadata",
        )
        self._raise_for_status(response, "save_metadata", VectorStoreErrorCode.SAVE_FAILED)

    async def remove(self, ids: str | Sequence[str]) -> None:
        response = await self._request(
            "DELETE",
            "/documents",
            json={"ids": _as_list(ids, str)},
            operation="remove",
        )
        self._raise_for_status(response, "remove", VectorStoreErrorCode.PERSISTENCE_FAILED)

    async def clear(self) -> None:
        response = await self._request("DELETE", "/documents", operation="clear")
        self._raise_for_status(response, "clear", VectorStoreErrorCode.PERSISTENCE_FAILED)

    async def is_available(self) -> bool:
        try:
            response = await self._request("GET", "/health", operation="is_available")
        except PersistenceError:
            return False
        return response.ok

    def close(self) -> None:
        self.session.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: Any = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        kwargs: dict[str, Any] = {"headers": self.headers, "timeout": self.timeout}
        if json is not None:
            kwargs["json"] = json
        logger.debug("HTTP %s %s", method, url)
        try:
            return await asyncio.to_thread(self.session.request, method, url, **kwargs)
        except requests.RequestException as exc:
            raise PersistenceError(f"HTTP {operation} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(
        response: requests.Response,
        operation: str,
        code: VectorStoreErrorCode,
    ) -> None:
        if not response.ok:
            raise PersistenceError(
                f"HTTP {operation} failed ({response.status_code})",
                code,
                status_code=response.status_code,
            )
