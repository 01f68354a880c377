"""
Blob storage client - item photo uploads over the Supabase-style object REST API.
"""

import logging
import mimetypes
import uuid

import httpx

from lendoo.config import get_settings
from lendoo.core.exceptions import TransientError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}


class BlobStorage:
    """Uploads bytes to a bucket and returns their public URL."""

    def __init__(
        self,
        base_url: str | None = None,
        bucket: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.blob_storage_url).rstrip("/")
        self.bucket = bucket or settings.blob_storage_bucket
        self.api_key = api_key if api_key is not None else settings.blob_storage_key
        self.timeout = timeout or settings.blob_storage_timeout_seconds
        self._transport = transport

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{name}"

    async def upload(self, data: bytes, content_type: str) -> str:
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"unsupported image type: {content_type}")
        if not data:
            raise ValidationError("image is empty")
        extension = mimetypes.guess_extension(content_type) or ""
        name = f"item_{uuid.uuid4().hex}{extension}"
        headers = {"Content-Type": content_type, "x-upsert": "true"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                r = await client.post(
                    f"/storage/v1/object/{self.bucket}/{name}", content=data, headers=headers
                )
            except httpx.TransportError as exc:
                raise TransientError(f"blob storage unreachable: {exc}") from exc
        if r.status_code >= 500:
            raise TransientError(f"blob storage returned {r.status_code}")
        if r.status_code not in (200, 201):
            raise ValidationError(f"blob storage rejected upload: {r.status_code} {r.text[:200]}")
        url = self.public_url(name)
        logger.info("uploaded item image %s (%d bytes)", name, len(data))
        return url
