"""Blob storage for composed artifacts."""

import base64
import re
from pathlib import Path
from typing import Any

from brandscene.core.config import Settings
from brandscene.utils.error_handler import UploadError

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._/-]+")


def to_data_uri(data: bytes, content_type: str) -> str:
    """Embed bytes as a base64 data URI."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class LocalBlobStorage:
    """Stores blobs on the local filesystem and returns their public URL."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize blob storage.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.root = Path(settings.blob_storage_path)

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """
        Store a blob.

        Args:
            data: Blob bytes
            key: Storage key (relative path)
            content_type: MIME type (informational for local storage)

        Returns:
            Public URL (blob_public_base_url + key) or a file URI

        Raises:
            UploadError: If the blob cannot be written
        """
        safe_key = _UNSAFE_KEY_CHARS.sub("-", key).lstrip("/")
        if not safe_key or ".." in Path(safe_key).parts:
            raise UploadError(f"Invalid storage key: {key!r}")

        file_path = self.root / safe_key
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)
        except OSError as e:
            raise UploadError(f"Could not write blob {safe_key}: {e}") from e

        self.logger.info(f"Stored {content_type} blob ({len(data)} bytes) at: {file_path}")

        if self.settings.blob_public_base_url:
            return f"{self.settings.blob_public_base_url.rstrip('/')}/{safe_key}"
        return file_path.resolve().as_uri()
