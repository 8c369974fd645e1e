"""
Storage Service
Handles generated video files - supports Google Cloud Storage and local filesystem.
"""

import logging
from pathlib import Path
from typing import Optional

from aiprime.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class StorageService:
    """Service for file storage operations."""

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.use_gcs = config.USE_GCS

        if self.use_gcs:
            # Google Cloud Storage
            from google.cloud import storage
            self.gcs_client = storage.Client(project=config.GCP_PROJECT_ID or None)
            self.bucket_outputs = self.gcs_client.bucket(config.GCS_BUCKET_OUTPUTS)
            logger.info(f"Using Google Cloud Storage: {config.GCS_BUCKET_OUTPUTS}")
        else:
            self.base_path = Path(config.LOCAL_STORAGE_PATH).resolve()
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Using local storage: {self.base_path}")

    def _local_path(self, path: str) -> Path:
        """Resolve a storage path, refusing anything outside the base directory."""
        file_path = (self.base_path / path).resolve()
        if file_path != self.base_path and self.base_path not in file_path.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return file_path

    async def upload_bytes(self, data: bytes, path: str, content_type: str = "video/mp4") -> str:
        """Upload bytes and return the API proxy URL."""
        if self.use_gcs:
            blob = self.bucket_outputs.blob(path)
            blob.upload_from_string(data, content_type=content_type)
        else:
            file_path = self._local_path(path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(data)

        logger.info(f"Stored {len(data)} bytes at {path}")
        return self.get_public_url(path)

    async def get_file(self, path: str) -> bytes:
        """Get file contents."""
        if self.use_gcs:
            blob = self.bucket_outputs.blob(path)
            return blob.download_as_bytes()

        with open(self._local_path(path), "rb") as f:
            return f.read()

    async def delete_file(self, path: str) -> None:
        """Delete a single file."""
        if self.use_gcs:
            blob = self.bucket_outputs.blob(path)
            try:
                blob.delete()
                logger.info(f"Deleted file: {path}")
            except Exception as e:
                logger.warning(f"Could not delete {path}: {e}")
        else:
            file_path = self._local_path(path)
            if file_path.exists() and file_path.is_file():
                file_path.unlink()
                logger.info(f"Deleted file: {path}")

    def get_public_url(self, path: str) -> str:
        """Files are served through the API's /files proxy for every backend."""
        return f"/files/{path}"

    def health_check(self) -> str:
        if self.use_gcs:
            self.bucket_outputs.exists()
        elif not self.base_path.exists():
            raise FileNotFoundError(str(self.base_path))
        return "ok"
