"""Exception classes for the storage client."""


class StorageError(Exception):
    """Base error for storage client operations."""


class ConfigError(StorageError):
    """Raised when storage settings cannot be loaded or validated."""


class ProtocolViolationError(StorageError):
    """Raised when a server response is missing something the protocol requires."""


class ResponseParseError(ProtocolViolationError):
    """Raised when a response body is not the JSON document we expected."""


class MissingDownloadTokenError(StorageError):
    """Raised when object metadata carries no download token."""


class RequestFailedError(StorageError):
    """Raised when the storage API answers with a non-success status."""

    def __init__(
        self, status: int, method: str, url: str, detail: str | None = None
    ) -> None:
        """Initialize RequestFailedError.

        Args:
            status: HTTP status code returned by the server.
            method: HTTP method of the failed request.
            url: Target URL of the failed request.
            detail: Error message extracted from the response body, if any.
        """
        message = f"{method} {url} failed with HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = status
        self.method = method
        self.url = url
        self.detail = detail
