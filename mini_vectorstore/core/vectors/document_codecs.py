"""JSON codecs for stored documents, store metadata, and snapshots.

Embeddings are written as plain float lists. Metadata values that JSON cannot
represent natively (`datetime`, `Decimal`, `UUID`, `tuple`, `set`, `bytes`,
`Enum`) are written as tagged objects and restored on read.
"""

from __future__ import annotations

import base64
import json
import sys
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Protocol
from uuid import UUID

from ..errors import VectorStoreError, VectorStoreErrorCode
from ..types import (
    ExportedVectorStore,
    StoredDocument,
    VectorStoreMetadata,
    to_embedding,
)

_TYPE_KEY = "__vectorstore_codec__"


class MetadataCodec(Protocol):
    """Codec interface for document metadata serialization and deserialization."""

    def serialize(
        self,
        metadata: Mapping[str, Any] | None,
    ) -> Mapping[str, Any] | None: ...

    def deserialize(
        self,
        metadata: Mapping[str, Any] | None,
    ) -> Mapping[str, Any] | None: ...


@dataclass(frozen=True)
class TaggedJsonMetadataCodec:
    """Codec that keeps JSON-native values and tags everything else."""

    def serialize(
        self,
        metadata: Mapping[str, Any] | None,
    ) -> Mapping[str, Any] | None:
        if metadata is None:
            return None
        return {str(key): self._to_jsonable(value) for key, value in metadata.items()}

    def deserialize(
        self,
        metadata: Mapping[str, Any] | None,
    ) -> Mapping[str, Any] | None:
        if metadata is None:
            return None
        return {str(key): self._from_jsonable(value) for key, value in metadata.items()}

    def _to_jsonable(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return {
                _TYPE_KEY: "enum",
                "class": _enum_ref(type(value)),
                "value": self._to_jsonable(value.value),
            }
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, datetime):
            return {_TYPE_KEY: "datetime", "value": value.isoformat()}
        if isinstance(value, date):
            return {_TYPE_KEY: "date", "value": value.isoformat()}
        if isinstance(value, time):
            return {_TYPE_KEY: "time", "value": value.isoformat()}
        if isinstance(value, Decimal):
            return {_TYPE_KEY: "decimal", "value": str(value)}
        if isinstance(value, UUID):
            return {_TYPE_KEY: "uuid", "value": str(value)}
        if isinstance(value, (bytes, bytearray, memoryview)):
            encoded = base64.b64encode(bytes(value)).decode("ascii")
            return {_TYPE_KEY: "bytes", "value": encoded}
        if isinstance(value, tuple):
            return {_TYPE_KEY: "tuple", "items": [self._to_jsonable(item) for item in value]}
        if isinstance(value, (set, frozenset)):
            return {_TYPE_KEY: "set", "items": [self._to_jsonable(item) for item in value]}
        if isinstance(value, Mapping):
            return {str(key): self._to_jsonable(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._to_jsonable(item) for item in value]

        raise TypeError(
            "TaggedJsonMetadataCodec cannot serialize metadata value of type "
            f"{type(value).__name__}."
        )

    def _from_jsonable(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._from_jsonable(item) for item in value]
        if not isinstance(value, dict):
            return value

        codec_type = value.get(_TYPE_KEY)
        keys = set(value)
        if codec_type is not None and keys == {_TYPE_KEY, "value"}:
            raw = value["value"]
            if codec_type == "datetime":
                return datetime.fromisoformat(str(raw))
            if codec_type == "date":
                return date.fromisoformat(str(raw))
            if codec_type == "time":
                return time.fromisoformat(str(raw))
            if codec_type == "decimal":
                return Decimal(str(raw))
            if codec_type == "uuid":
                return UUID(str(raw))
            if codec_type == "bytes":
                return base64.b64decode(str(raw).encode("ascii"))
        if codec_type == "tuple" and keys == {_TYPE_KEY, "items"}:
            return tuple(self._from_jsonable(item) for item in value["items"])
        if codec_type == "set" and keys == {_TYPE_KEY, "items"}:
            return {self._from_jsonable(item) for item in value["items"]}
        if codec_type == "enum" and keys == {_TYPE_KEY, "class", "value"}:
            restored = self._from_jsonable(value["value"])
            enum_cls = _resolve_enum_type(str(value["class"]))
            if enum_cls is None:
                return restored
            try:
                return enum_cls(restored)
            except ValueError:
                return restored

        return {str(key): self._from_jsonable(item) for key, item in value.items()}


def _enum_ref(enum_cls: type[Enum]) -> str:
    return f"{enum_cls.__module__}:{enum_cls.__qualname__}"


def _resolve_enum_type(ref: str) -> type[Enum] | None:
    if ":" not in ref:
        return None

    module_name, qualname = ref.split(":", 1)
    # Only already-imported modules; never import from file content.
    module = sys.modules.get(module_name)
    if module is None:
        return None

    current: Any = module
    for part in qualname.split("."):
        current = getattr(current, part, None)
        if current is None:
            return None

    if isinstance(current, type) and issubclass(current, Enum):
        return current
    return None


DEFAULT_METADATA_CODEC: MetadataCodec = TaggedJsonMetadataCodec()


def serialize_stored_document(
    doc: StoredDocument,
    codec: MetadataCodec = DEFAULT_METADATA_CODEC,
) -> dict[str, Any]:
    """Convert a stored document into a JSON-ready dict."""

    data: dict[str, Any] = {
        "id": doc.id,
        "content": doc.content,
        "embedding": [float(value) for value in doc.embedding],
        "createdAt": doc.created_at,
        "updatedAt": doc.updated_at,
    }
    metadata = codec.serialize(doc.metadata)
    if metadata is not None:
        data["metadata"] = metadata
    return data


def deserialize_stored_document(
    data: Mapping[str, Any],
    codec: MetadataCodec = DEFAULT_METADATA_CODEC,
) -> StoredDocument:
    """Rebuild a stored document from `serialize_stored_document()` output."""

    try:
        return StoredDocument(
            id=str(data["id"]),
            content=str(data["content"]),
            embedding=to_embedding(data["embedding"]),
            metadata=codec.deserialize(data.get("metadata")),
            created_at=int(data.get("createdAt", 0)),
            updated_at=int(data.get("updatedAt", 0)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise VectorStoreError(
            f"Invalid stored document payload: {exc}",
            VectorStoreErrorCode.INVALID_DOCUMENT,
        ) from exc


def serialize_store_metadata(metadata: VectorStoreMetadata) -> dict[str, Any]:
    return {
        "modelId": metadata.model_id,
        "dimension": metadata.dimension,
        "documentCount": metadata.document_count,
        "createdAt": metadata.created_at,
        "updatedAt": metadata.updated_at,
    }


def deserialize_store_metadata(data: Mapping[str, Any]) -> VectorStoreMetadata:
    return VectorStoreMetadata(
        model_id=str(data["modelId"]),
        dimension=int(data["dimension"]),
        document_count=int(data.get("documentCount", 0)),
        created_at=int(data.get("createdAt", 0)),
        updated_at=int(data.get("updatedAt", 0)),
    )


def serialize_snapshot(
    snapshot: ExportedVectorStore,
    codec: MetadataCodec = DEFAULT_METADATA_CODEC,
) -> dict[str, Any]:
    return {
        "version": snapshot.version,
        "exportedAt": snapshot.exported_at,
        "modelId": snapshot.model_id,
        "dimension": snapshot.dimension,
        "documents": [serialize_stored_document(doc, codec) for doc in snapshot.documents],
    }


def deserialize_snapshot(
    data: Mapping[str, Any],
    codec: MetadataCodec = DEFAULT_METADATA_CODEC,
) -> ExportedVectorStore:
    return ExportedVectorStore(
        version=int(data["version"]),
        exported_at=int(data.get("exportedAt", 0)),
        model_id=str(data["modelId"]),
        dimension=int(data["dimension"]),
        documents=tuple(
            deserialize_stored_document(item, codec) for item in data.get("documents", [])
        ),
    )


def dumps_snapshot(snapshot: ExportedVectorStore, *, indent: int | None = None) -> str:
    return json.dumps(serialize_snapshot(snapshot), indent=indent)


def loads_snapshot(text: str) -> ExportedVectorStore:
    return deserialize_snapshot(json.loads(text))
