"""Durable storage backends for trimmed outputs."""

import logging
import shutil
from pathlib import Path
from typing import Protocol

import httpx

from lib.errors import UploadError

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def put(self, local_path: Path, name: str) -> str:
        """Copy ``local_path`` to durable storage under ``name``; return its URL or path."""
        ...


class LocalStorage:
    """Store outputs in a local media directory served under ``base_url``."""

    def __init__(self, media_dir: Path, base_url: str = "/media"):
        self.media_dir = Path(media_dir)
        self.base_url = base_url.rstrip("/")

    def put(self, local_path: Path, name: str) -> str:
        dest = self.media_dir / name
        try:
            self.media_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, dest)
        except OSError as e:
            raise UploadError(f"Failed to store {name}: {e}") from e
        return f"{self.base_url}/{name}"


class SupabaseStorage:
    """Upload to a Supabase Storage bucket via its REST API."""

    def __init__(self, url: str, service_key: str, bucket: str = "video-processing", timeout: float = 300.0):
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def public_url(self, name: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{name}"

    def put(self, local_path: Path, name: str) -> str:
        try:
            with open(local_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise UploadError(f"Failed to read {local_path.name} for upload: {e}") from e

        try:
            response = httpx.post(
                f"{self.url}/storage/v1/object/{self.bucket}/{name}",
                headers={
                    "Authorization": f"Bearer {self.service_key}",
                    "Content-Type": "video/mp4",
                    "x-upsert": "true",
                },
                content=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UploadError(f"Failed to upload trimmed video: {e}") from e

        logger.info("Uploaded %s to bucket %s (%.1f MB)", name, self.bucket, len(data) / 1e6)
        return self.public_url(name)
