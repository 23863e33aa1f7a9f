"""
app/services/upload_service.py

Purpose: Receipt upload pipeline

- Stages the inbound file to a transient local path
- Sends it to object storage and awaits the permanent URL
- Appends the URL to the authenticated user's receipt list
- No retries: each failed step surfaces immediately
"""

import os
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import PyMongoError

from app.core.exceptions import (
    MissingFileError,
    PersistenceError,
    StorageUnavailableError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.schemas.auth import IdentityClaim
from app.services.storage_service import ObjectStore
from app.services.user_store import UserStore
from utils.time_utils import epoch_millis
from utils.validation_utils import sanitize_filename

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


def _remove_if_exists(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)


@asynccontextmanager
async def stage_upload(upload: UploadFile, upload_dir: str, max_bytes: int) -> AsyncIterator[str]:
    """
    Writes an uploaded file to upload_dir and removes it on exit.

    The staged name is "<epoch-ms>-<random>-<sanitized original name>".

    Raises:
        ValidationError: File is larger than max_bytes
        MissingFileError: File is empty
    """
    await run_in_threadpool(os.makedirs, upload_dir, exist_ok=True)
    staged_name = f"{epoch_millis()}-{uuid.uuid4().hex[:8]}-{sanitize_filename(upload.filename)}"
    path = os.path.join(upload_dir, staged_name)

    try:
        size = 0
        out = await run_in_threadpool(open, path, "wb")
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise ValidationError(
                        "Uploaded file is too large",
                        details={"max_bytes": max_bytes}
                    )
                await run_in_threadpool(out.write, chunk)
        finally:
            await run_in_threadpool(out.close)

        if size == 0:
            raise MissingFileError("Uploaded file is empty")

        yield path

    finally:
        await run_in_threadpool(_remove_if_exists, path)


class UploadPipeline:
    """
    Moves an uploaded receipt into object storage and records it on the user.
    """

    def __init__(
        self,
        user_store: UserStore,
        object_store: ObjectStore,
        upload_dir: str = "uploads",
        max_bytes: int = 10 * 1024 * 1024,
    ):
        self.user_store = user_store
        self.object_store = object_store
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes

    async def handle_upload(self, identity: IdentityClaim, upload: Optional[UploadFile]) -> str:
        """
        Stores the file and appends its URL to the user's receipts.

        Args:
            identity: Claim attached by the auth gate
            upload: The multipart file (None when the field is absent)

        Returns:
            The permanent URL of the stored file

        Raises:
            MissingFileError: No file was sent (nothing is touched)
            StorageUnavailableError: Object storage failed (user record untouched)
            UserNotFoundError: The claim no longer resolves to a user
            PersistenceError: The user store failed; the stored object is not rolled back
        """
        if upload is None or not upload.filename:
            raise MissingFileError()

        async with stage_upload(upload, self.upload_dir, self.max_bytes) as local_path:
            url = await self.object_store.store(local_path)

        if not url:
            raise StorageUnavailableError("Object storage returned no URL")

        try:
            user = await self.user_store.find_by_id(identity.user_id)
        except PyMongoError as e:
            logger.error(f"User lookup failed after storing {url}: {e}", extra={"user_id": identity.user_id})
            raise PersistenceError("Failed to load user record") from e

        if user is None:
            logger.warning(f"Stored {url} for unknown user", extra={"user_id": identity.user_id})
            raise UserNotFoundError()

        try:
            appended = await self.user_store.append_receipt_url(user.id, url)
        except PyMongoError as e:
            logger.error(f"Failed to record {url}: {e}", extra={"user_id": user.id})
            raise PersistenceError() from e

        if not appended:
            raise UserNotFoundError()

        logger.info(f"Receipt stored: {url}", extra={"user_id": user.id})
        return url
