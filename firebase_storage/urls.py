"""URL construction for the storage API."""

from urllib.parse import quote

from firebase_storage.const import API_URL, URI_COMPONENT_SAFE
from firebase_storage.exceptions import MissingDownloadTokenError
from firebase_storage.models import StoredObjectMetadata


def quote_component(value: str) -> str:
    """Percent-encode ``value`` as a single URI component.

    Path separators are encoded too, so an object path like ``a/b`` stays
    one segment instead of becoming a hierarchy.
    """
    return quote(value, safe=URI_COMPONENT_SAFE)


def make_url(bucket: str, path: str, api_url: str = API_URL) -> str:
    """Return the canonical API URL of an object.

    Args:
        bucket: Storage bucket identifier.
        path: Object path, encoded as a single segment.
        api_url: Base endpoint, ending with ``/``.

    Returns:
        URL of the form ``<api_url>b/<bucket>/o/<encoded path>``.
    """
    return f"{api_url}b/{bucket}/o/{quote_component(path)}"


def download_url(metadata: StoredObjectMetadata, api_url: str = API_URL) -> str:
    """Build a public download URL from stored object metadata.

    Only the first of the comma separated download tokens is used.

    Args:
        metadata: Metadata of the stored object.
        api_url: Base endpoint, ending with ``/``.

    Returns:
        Object URL with ``alt=media`` and the download token appended.

    Raises:
        MissingDownloadTokenError: If the metadata has no download token.
    """
    token = (metadata.download_tokens or "").split(",")[0]
    if not token:
        raise MissingDownloadTokenError(
            f"No download token in metadata for {metadata.name!r}"
        )
    url = make_url(metadata.bucket, metadata.name, api_url)
    return f"{url}?alt=media&token={quote_component(token)}"
