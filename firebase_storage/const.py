"""Constants for the Firebase storage client."""

API_URL = "https://firebasestorage.googleapis.com/v0/"

DEFAULT_CONTENT_TYPE = "application/octet-stream"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CHUNK_TIMEOUT_SECONDS = 300.0

# Request headers of the resumable upload handshake
UPLOAD_PROTOCOL_HEADER = "X-Goog-Upload-Protocol"
UPLOAD_COMMAND_HEADER = "X-Goog-Upload-Command"
UPLOAD_CONTENT_LENGTH_HEADER = "X-Goog-Upload-Header-Content-Length"
UPLOAD_CONTENT_TYPE_HEADER = "X-Goog-Upload-Header-Content-Type"
UPLOAD_OFFSET_HEADER = "X-Goog-Upload-Offset"

# Response headers of the start command
UPLOAD_URL_HEADER = "x-goog-upload-url"
UPLOAD_GRANULARITY_HEADER = "x-goog-upload-chunk-granularity"

UPLOAD_PROTOCOL_RESUMABLE = "resumable"
COMMAND_START = "start"
COMMAND_UPLOAD = "upload"
COMMAND_UPLOAD_FINALIZE = "upload, finalize"

# Characters left unescaped by JavaScript's encodeURIComponent
URI_COMPONENT_SAFE = "!~*'()"

MAX_LOGGED_URL_LENGTH = 80
