"""
app/services/storage_service.py

Purpose: Receipt image hosting on Cloudinary

- Signed uploads to the Cloudinary REST upload API
- Returns the permanent (https) URL of the stored asset
- Bounded request timeout; every failure surfaces as StorageUnavailableError
"""

import hashlib
import os
import time
from typing import Dict, Optional, Protocol

import httpx
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import StorageUnavailableError
from app.core.logging import get_logger

logger = get_logger(__name__)


class ObjectStore(Protocol):
    """Operation the upload pipeline needs from object storage."""

    async def store(self, local_path: str) -> str:
        ...


def _read_file(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """
    Computes the Cloudinary request signature.

    Parameters are sorted by name, joined as key=value pairs with "&",
    suffixed with the API secret and SHA-1 hashed.
    """
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryStorage:
    """Stores local files on Cloudinary and returns their permanent URL."""

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 30.0,
        folder: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.folder = folder
        self.transport = transport

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/auto/upload"

    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def store(self, local_path: str) -> str:
        """
        Uploads the file at local_path.

        Returns:
            The asset's secure URL

        Raises:
            StorageUnavailableError: Not configured, timeout, network or API error,
                or a response without a usable URL
        """
        if not self.is_configured():
            logger.error("Cloudinary credentials are not configured")
            raise StorageUnavailableError("Object storage is not configured")

        params = {"timestamp": str(int(time.time()))}
        if self.folder:
            params["folder"] = self.folder
        data = dict(params, api_key=self.api_key, signature=sign_params(params, self.api_secret))

        filename = os.path.basename(local_path)

        try:
            content = await run_in_threadpool(_read_file, local_path)
        except OSError as e:
            logger.error(f"Could not read staged upload {filename}: {e}")
            raise StorageUnavailableError("Failed to read uploaded file") from e

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.upload_url,
                    data=data,
                    files={"file": (filename, content)},
                )
        except httpx.TimeoutException as e:
            logger.error("Cloudinary upload timed out")
            raise StorageUnavailableError("Object storage timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Network error uploading to Cloudinary: {e}")
            raise StorageUnavailableError("Unable to reach object storage") from e

        if response.status_code not in (200, 201):
            logger.error(f"Cloudinary API error: {response.status_code} - {response.text}")
            raise StorageUnavailableError(f"Object storage error: {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise StorageUnavailableError("Object storage returned an unreadable response") from e

        url = result.get("secure_url") or result.get("url")
        if not url:
            logger.error("Cloudinary response carried no URL")
            raise StorageUnavailableError("Object storage returned no URL")

        logger.info(f"Stored {filename} on Cloudinary (public_id={result.get('public_id')})")
        return url
