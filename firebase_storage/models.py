"""Models used by the storage client.

Request and response documents of the storage API are pydantic models with
camelCase aliases matching the wire format. Upload progress is carried in
immutable dataclasses so that each chunk send produces a new value instead
of mutating shared state.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from firebase_storage.const import DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class Blob:
    """Binary payload with its declared content type.

    The client never copies ``data`` wholesale; chunks are taken as
    ``memoryview`` slices, so the caller must keep the buffer unchanged for
    the lifetime of the upload.
    """

    data: bytes | bytearray | memoryview
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self) -> None:
        if not memoryview(self.data).c_contiguous:
            raise ValueError("Blob data must be a C-contiguous buffer")

    @property
    def size(self) -> int:
        """Return the payload length in bytes."""
        return memoryview(self.data).nbytes

    def view(self) -> memoryview:
        """Return a flat byte view of the payload without copying it."""
        return memoryview(self.data).cast("B")

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "Blob":
        """Read a local file into a Blob.

        Args:
            path: Local filesystem path.
            content_type: MIME type; guessed from the file name when omitted.

        Returns:
            Blob holding the file contents.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        file_path = Path(path)
        if content_type is None:
            guessed, _ = mimetypes.guess_type(file_path.name)
            content_type = guessed or DEFAULT_CONTENT_TYPE
        return cls(data=file_path.read_bytes(), content_type=content_type)


@dataclass(frozen=True)
class UploadSession:
    """In-progress state of a resumable upload.

    Attributes:
        upload_url: Server issued session URL that receives the chunks.
        granularity: Number of bytes the server accepts per chunk.
        offset: Bytes acknowledged by the server so far.
    """

    upload_url: str
    granularity: int
    offset: int = 0


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class UploadMetadata(_WireModel):
    """Object attributes that can be set when uploading a blob."""

    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    content_language: str | None = None
    content_type: str | None = None
    # Sent as "metadata", the key the storage API reads, not "customMetadata"
    custom_metadata: dict[str, str] | None = Field(default=None, alias="metadata")

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON document fields that were actually set."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StoredObjectMetadata(_WireModel):
    """Metadata the server holds for a stored blob."""

    model_config = ConfigDict(extra="allow")

    name: str
    bucket: str
    generation: str | None = None
    metageneration: str | None = None
    content_type: str | None = None
    time_created: str | None = None
    updated: str | None = None
    storage_class: str | None = None
    size: int | None = None
    md5_hash: str | None = None
    crc32c: str | None = None
    content_encoding: str | None = None
    content_disposition: str | None = None
    etag: str | None = None
    download_tokens: str | None = None
    custom_metadata: dict[str, str] | None = Field(default=None, alias="metadata")


@dataclass(frozen=True)
class ChunkContinue:
    """More data remains; send the next chunk with ``session``."""

    session: UploadSession


@dataclass(frozen=True)
class ChunkFinish:
    """The upload was finalized and the server returned ``metadata``."""

    metadata: StoredObjectMetadata


ChunkResult = ChunkContinue | ChunkFinish
