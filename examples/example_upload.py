"""Upload a local file, print its download URL and optionally delete it.

Usage:
    FIREBASE_STORAGE_BUCKET=my-app.appspot.com FIREBASE_ID_TOKEN=... \
        python examples/example_upload.py path/to/file [object/path] [--delete]
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from firebase_storage import Blob, ConfigManager, StaticTokenSource, StorageClient
from firebase_storage.logging_utils import configure_logging


async def main(local_path: Path, object_path: str, delete: bool) -> None:
    settings = ConfigManager().resolve_settings()
    token_source = StaticTokenSource(os.getenv("FIREBASE_ID_TOKEN"))
    blob = Blob.from_path(local_path)

    uploaded = 0

    def report(n_bytes: int) -> None:
        nonlocal uploaded
        uploaded += n_bytes
        print(f"\r{uploaded}/{blob.size} bytes", end="", flush=True)

    async with StorageClient(settings, token_source) as storage:
        metadata = await storage.upload(object_path, blob, progress_callback=report)
        print()
        print(f"Stored {metadata.name} ({metadata.size} bytes)")
        print(await storage.download_url(object_path))
        if delete:
            await storage.delete(object_path)
            print(f"Deleted {object_path}")


if __name__ == "__main__":
    configure_logging(logging.INFO)
    args = [arg for arg in sys.argv[1:] if arg != "--delete"]
    if not args:
        sys.exit(__doc__)
    path = Path(args[0])
    object_path = args[1] if len(args) > 1 else path.name
    asyncio.run(main(path, object_path, "--delete" in sys.argv))
