"""Storage client to upload, inspect and delete blobs in a bucket.

Uploads use the resumable protocol of the storage API: a ``start`` command
opens an upload session and tells us the chunk granularity, then the payload
is sent in granularity sized chunks. The first chunk shorter than the
granularity (possibly empty) carries the ``finalize`` command and its
response holds the metadata of the stored object.
"""

import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
from pydantic import ValidationError

from firebase_storage import urls
from firebase_storage.config import StorageSettings
from firebase_storage.const import (
    COMMAND_START,
    COMMAND_UPLOAD,
    COMMAND_UPLOAD_FINALIZE,
    JSON_CONTENT_TYPE,
    UPLOAD_COMMAND_HEADER,
    UPLOAD_CONTENT_LENGTH_HEADER,
    UPLOAD_CONTENT_TYPE_HEADER,
    UPLOAD_GRANULARITY_HEADER,
    UPLOAD_OFFSET_HEADER,
    UPLOAD_PROTOCOL_HEADER,
    UPLOAD_PROTOCOL_RESUMABLE,
    UPLOAD_URL_HEADER,
)
from firebase_storage.exceptions import (
    ProtocolViolationError,
    RequestFailedError,
    ResponseParseError,
)
from firebase_storage.http_errors import extract_error_detail
from firebase_storage.logging_utils import shorten_url
from firebase_storage.models import (
    Blob,
    ChunkContinue,
    ChunkFinish,
    ChunkResult,
    StoredObjectMetadata,
    UploadMetadata,
    UploadSession,
)
from firebase_storage.token_source import TokenSource

logger = logging.getLogger(__name__)


class StorageClient:
    """Upload, retrieve and delete blobs in a single storage bucket.

    Every request asks the token source for a bearer token. Upload state is
    never kept on the client, so independent uploads may run concurrently on
    one instance.
    """

    def __init__(
        self,
        settings: StorageSettings,
        token_source: TokenSource,
        client_session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the storage client.

        Args:
            settings: Bucket, endpoint and timeout settings.
            token_source: Called before every request for a bearer token.
            client_session: aiohttp ClientSession for HTTP requests. When
                omitted the client creates one and closes it in ``close``.
        """
        self._settings = settings
        self._token_source = token_source
        self._session = client_session
        self._owns_session = client_session is None

    @property
    def bucket(self) -> str:
        """Return the bucket this client operates on."""
        return self._settings.storage_bucket

    async def __aenter__(self) -> "StorageClient":
        """Enter the client context."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close the client on context exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if the client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def url(self, path: str) -> str:
        """Return the API URL of the object stored at ``path``."""
        return urls.make_url(self.bucket, path, self._settings.api_url)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    @asynccontextmanager
    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: Any = None,
        timeout: float | None = None,
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """Send one authenticated request and yield the raw response.

        Args:
            method: HTTP method.
            url: Target URL.
            headers: Extra request headers.
            data: Request body.
            timeout: Total timeout in seconds; defaults to the request timeout
                from the settings.

        Yields:
            The response, open until the context exits.

        Raises:
            RequestFailedError: If ``raise_for_status`` is enabled and the
                server answered with a non-2xx status.
            aiohttp.ClientError: If the request itself fails.
        """
        request_headers = dict(headers or {})
        token = await self._token_source()
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        client_timeout = aiohttp.ClientTimeout(
            total=timeout or self._settings.request_timeout_seconds
        )
        logger.debug("%s %s", method, shorten_url(url))
        async with self._get_session().request(
            method,
            url,
            headers=request_headers,
            data=data,
            timeout=client_timeout,
        ) as response:
            logger.debug(
                "%s %s response: status=%d", method, shorten_url(url), response.status
            )
            if self._settings.raise_for_status and not 200 <= response.status < 300:
                detail = await extract_error_detail(response)
                raise RequestFailedError(response.status, method, url, detail)
            yield response

    @staticmethod
    async def _read_metadata(
        response: aiohttp.ClientResponse,
    ) -> StoredObjectMetadata:
        body = await response.read()
        try:
            return StoredObjectMetadata.model_validate_json(body)
        except ValidationError as e:
            raise ResponseParseError(
                f"Response from {shorten_url(str(response.url))} is not valid "
                f"object metadata: {e}"
            ) from e

    async def upload_start(
        self,
        path: str,
        blob: Blob,
        metadata: UploadMetadata | None = None,
    ) -> UploadSession:
        """Open a resumable upload session for ``path``.

        Args:
            path: Name of the object to create.
            blob: Payload to upload.
            metadata: Optional object attributes. Its ``content_type`` only
                overrides the declared upload content type header; the object
                document always uses the blob's own type.

        Returns:
            A session positioned at offset 0.

        Raises:
            ProtocolViolationError: If the response lacks the session URL or
                a positive integer chunk granularity.
        """
        metadata = metadata or UploadMetadata()
        body = {
            **metadata.to_wire(),
            "name": path,
            "contentType": blob.content_type,
        }
        upload_content_type = (
            metadata.content_type
            if metadata.content_type is not None
            else blob.content_type
        )
        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            UPLOAD_PROTOCOL_HEADER: UPLOAD_PROTOCOL_RESUMABLE,
            UPLOAD_COMMAND_HEADER: COMMAND_START,
            UPLOAD_CONTENT_LENGTH_HEADER: str(blob.size),
            UPLOAD_CONTENT_TYPE_HEADER: upload_content_type,
        }

        async with self._request(
            "POST",
            self.url(path),
            headers=headers,
            data=json.dumps(body).encode("utf-8"),
        ) as response:
            upload_url = response.headers.get(UPLOAD_URL_HEADER)
            raw_granularity = response.headers.get(UPLOAD_GRANULARITY_HEADER)

        if upload_url is None:
            raise ProtocolViolationError(
                f"Upload start for {path!r} returned no {UPLOAD_URL_HEADER} header"
            )
        if raw_granularity is None:
            raise ProtocolViolationError(
                f"Upload start for {path!r} returned no "
                f"{UPLOAD_GRANULARITY_HEADER} header"
            )
        try:
            granularity = int(raw_granularity, 10)
        except ValueError as e:
            raise ProtocolViolationError(
                f"Invalid chunk granularity {raw_granularity!r} for {path!r}"
            ) from e
        if granularity <= 0:
            raise ProtocolViolationError(
                f"Chunk granularity must be positive, got {granularity} for {path!r}"
            )

        logger.info(
            "Upload session started: path=%s bytes=%d granularity=%d url=%s",
            path,
            blob.size,
            granularity,
            shorten_url(upload_url),
        )
        return UploadSession(upload_url=upload_url, granularity=granularity)

    async def upload_chunk(self, session: UploadSession, blob: Blob) -> ChunkResult:
        """Send the chunk of ``blob`` that starts at the session offset.

        A chunk shorter than the granularity, including an empty one, is the
        last chunk and finalizes the upload.

        Args:
            session: Current upload session.
            blob: The full payload being uploaded.

        Returns:
            ``ChunkFinish`` with the stored object metadata after the last
            chunk, otherwise ``ChunkContinue`` with the advanced session.

        Raises:
            ResponseParseError: If the finalizing response is not valid
                object metadata.
        """
        start = session.offset
        chunk = blob.view()[start : start + session.granularity]
        is_last_chunk = len(chunk) < session.granularity
        headers = {
            UPLOAD_OFFSET_HEADER: str(start),
            UPLOAD_COMMAND_HEADER: (
                COMMAND_UPLOAD_FINALIZE if is_last_chunk else COMMAND_UPLOAD
            ),
        }

        logger.debug(
            "Uploading chunk: offset=%d bytes=%d final=%s",
            start,
            len(chunk),
            is_last_chunk,
        )
        async with self._request(
            "POST",
            session.upload_url,
            headers=headers,
            data=chunk,
            timeout=self._settings.chunk_timeout_seconds,
        ) as response:
            if is_last_chunk:
                return ChunkFinish(metadata=await self._read_metadata(response))

        return ChunkContinue(
            session=UploadSession(
                upload_url=session.upload_url,
                granularity=session.granularity,
                offset=start + len(chunk),
            )
        )

    async def upload_remaining(
        self,
        session: UploadSession,
        blob: Blob,
        progress_callback: Callable[[int], None] | None = None,
    ) -> StoredObjectMetadata:
        """Send every chunk from the session offset until the upload finishes.

        Also used to continue an in-flight session after a failed chunk, as
        long as the server still holds the session.

        Args:
            session: Session to continue from.
            blob: The full payload being uploaded.
            progress_callback: Called with the byte count of each acknowledged
                chunk.

        Returns:
            Metadata of the stored object.
        """
        while True:
            result = await self.upload_chunk(session, blob)
            match result:
                case ChunkFinish(metadata=metadata):
                    if progress_callback:
                        progress_callback(blob.size - session.offset)
                    return metadata
                case ChunkContinue(session=next_session):
                    if progress_callback:
                        progress_callback(next_session.offset - session.offset)
                    session = next_session

    async def upload(
        self,
        path: str,
        blob: Blob,
        metadata: UploadMetadata | None = None,
        progress_callback: Callable[[int], None] | None = None,
    ) -> StoredObjectMetadata:
        """Start an upload, send all the chunks and finalize it.

        Args:
            path: Name of the object to create.
            blob: Payload to upload.
            metadata: Optional object attributes.
            progress_callback: Called with the byte count of each acknowledged
                chunk.

        Returns:
            Metadata of the stored object.
        """
        session = await self.upload_start(path, blob, metadata)
        stored = await self.upload_remaining(session, blob, progress_callback)
        logger.info("Upload complete: path=%s bytes=%d", path, blob.size)
        return stored

    async def delete(self, path: str) -> None:
        """Delete the object stored at ``path``."""
        async with self._request("DELETE", self.url(path)):
            pass
        logger.info("Deleted object: path=%s", path)

    async def metadata(self, path: str) -> StoredObjectMetadata:
        """Fetch the metadata of the object stored at ``path``.

        Raises:
            ResponseParseError: If the response is not valid object metadata.
        """
        async with self._request("GET", self.url(path)) as response:
            return await self._read_metadata(response)

    async def download_url(self, path: str) -> str:
        """Fetch the metadata of ``path`` and build its public download URL."""
        return urls.download_url(await self.metadata(path), self._settings.api_url)
