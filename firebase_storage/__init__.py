"""Minimal async client to upload files to Firebase Storage."""

from .client import StorageClient
from .config import ConfigManager, StorageSettings
from .exceptions import (
    ConfigError,
    MissingDownloadTokenError,
    ProtocolViolationError,
    RequestFailedError,
    ResponseParseError,
    StorageError,
)
from .models import (
    Blob,
    ChunkContinue,
    ChunkFinish,
    ChunkResult,
    StoredObjectMetadata,
    UploadMetadata,
    UploadSession,
)
from .token_source import StaticTokenSource, TokenSource, anonymous_token_source
from .urls import download_url, make_url

__version__ = "1.0.0"

__all__ = [
    "Blob",
    "ChunkContinue",
    "ChunkFinish",
    "ChunkResult",
    "ConfigError",
    "ConfigManager",
    "MissingDownloadTokenError",
    "ProtocolViolationError",
    "RequestFailedError",
    "ResponseParseError",
    "StaticTokenSource",
    "StorageClient",
    "StorageError",
    "StorageSettings",
    "StoredObjectMetadata",
    "TokenSource",
    "UploadMetadata",
    "UploadSession",
    "anonymous_token_source",
    "download_url",
    "make_url",
]
