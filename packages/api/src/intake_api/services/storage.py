# This project was developed with assistance from AI tools.
"""S3-compatible object storage service backed by MinIO.

Uses boto3 synchronous client run in a thread-pool executor for async
compatibility. The module exposes a singleton initialised at app startup
via ``init_storage_service()``.
"""

import asyncio
import enum
import logging
import os
import uuid
from datetime import UTC, datetime
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..core.config import Settings
from .file_constraints import file_extension

logger = logging.getLogger(__name__)

# S3 error codes that mean the uploaded body itself was bad.
_CORRUPT_BODY_CODES = frozenset({"BadDigest", "InvalidDigest", "IncompleteBody", "EntityTooSmall"})


class StorageFailure(str, enum.Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    CORRUPTED = "corrupted"
    GENERIC = "generic"

    @property
    def user_message(self) -> str:
        return _FAILURE_MESSAGES[self]


_FAILURE_MESSAGES = {
    StorageFailure.NETWORK: (
        "Connection problem detected. Please check your internet and try uploading again"
    ),
    StorageFailure.TIMEOUT: (
        "Upload is taking too long. Try with a smaller file or check your connection."
    ),
    StorageFailure.CORRUPTED: (
        "This file appears to be corrupted or damaged. Please try with a different file"
    ),
    StorageFailure.GENERIC: (
        "Unable to upload your file. Please check your internet connection and try again"
    ),
}


class StorageError(Exception):
    """Blob store operation failed; ``failure`` carries the user-facing category."""

    def __init__(self, failure: StorageFailure, detail: str = ""):
        super().__init__(detail or failure.value)
        self.failure = failure

    @property
    def user_message(self) -> str:
        return self.failure.user_message


def categorize_storage_error(exc: BaseException) -> StorageFailure:
    """Map a raw storage exception onto a user-facing failure category."""
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ReadTimeoutError, ConnectTimeoutError)):
        return StorageFailure.TIMEOUT
    if isinstance(exc, (EndpointConnectionError, ConnectionClosedError, ConnectionError)):
        return StorageFailure.NETWORK
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        if code in _CORRUPT_BODY_CODES:
            return StorageFailure.CORRUPTED
    return StorageFailure.GENERIC


class StorageService:
    """Thin wrapper around a boto3 S3 client."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "us-east-1",
        timeout: float = 60.0,
    ):
        self._bucket = bucket
        self._timeout = timeout
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(
                signature_version="s3v4",
                connect_timeout=min(timeout, 10.0),
                read_timeout=timeout,
                retries={"max_attempts": 1},
                s3={
                    "addressing_style": "path",
                    "use_accelerate_endpoint": False,
                },
            ),
        )
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        """Create the bucket if it doesn't already exist (dev convenience)."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info("Creating S3 bucket: %s", self._bucket)
            self._client.create_bucket(Bucket=self._bucket)

    async def upload_file(
        self,
        file_data: bytes,
        object_key: str,
        content_type: str,
    ) -> str:
        """Upload bytes to S3 and return the object key.

        Raises StorageError with a categorized failure on any error,
        including exceeding the configured timeout.
        """
        loop = asyncio.get_running_loop()
        put = loop.run_in_executor(
            None,
            partial(
                self._client.put_object,
                Bucket=self._bucket,
                Key=object_key,
                Body=file_data,
                ContentType=content_type,
            ),
        )
        try:
            await asyncio.wait_for(asyncio.shield(put), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            # put_object keeps running in its worker thread; remove the object if it lands later.
            put.add_done_callback(partial(self._discard_late_upload, object_key))
            logger.warning("Upload of %s exceeded %.0fs", object_key, self._timeout)
            raise StorageError(StorageFailure.TIMEOUT, f"timed out after {self._timeout}s") from exc
        except Exception as exc:
            failure = categorize_storage_error(exc)
            logger.exception("Upload of %s failed (%s)", object_key, failure.value)
            raise StorageError(failure, str(exc)) from exc
        return object_key

    def _discard_late_upload(self, object_key: str, put: asyncio.Future) -> None:
        if put.cancelled() or put.exception() is not None:
            return
        logger.warning("Upload of %s finished after its timeout, deleting it", object_key)
        asyncio.get_running_loop().run_in_executor(None, self._delete_quietly, object_key)

    def _delete_quietly(self, object_key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=object_key)
        except Exception:
            logger.exception("Could not delete late upload %s", object_key)

    async def delete_file(self, object_key: str) -> None:
        """Remove an object. Used to clean up blobs with no matching record."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            partial(self._client.delete_object, Bucket=self._bucket, Key=object_key),
        )

    async def get_download_url(self, object_key: str, expires_in: int = 3600) -> str:
        """Return a presigned GET URL for the given object key."""
        loop = asyncio.get_running_loop()
        url: str = await loop.run_in_executor(
            None,
            partial(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self._bucket, "Key": object_key},
                ExpiresIn=expires_in,
            ),
        )
        return url

    @staticmethod
    def build_object_key(
        lead_id: int,
        document_type_id: int,
        filename: str,
        now: datetime | None = None,
    ) -> str:
        """Build the S3 object key: {lead_id}/{document_type_id}/{epoch_ms}-{random}.{ext}.

        The client filename never becomes a path component; only its
        extension survives, which rules out path traversal.
        """
        now = now or datetime.now(UTC)
        stamp = int(now.timestamp() * 1000)
        ext = file_extension(os.path.basename(filename))
        suffix = f".{ext}" if ext.isalnum() else ""
        return f"{lead_id}/{document_type_id}/{stamp}-{uuid.uuid4().hex[:8]}{suffix}"


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: StorageService | None = None


def init_storage_service(cfg: Settings) -> StorageService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = StorageService(
        endpoint=cfg.S3_ENDPOINT,
        access_key=cfg.S3_ACCESS_KEY,
        secret_key=cfg.S3_SECRET_KEY,
        bucket=cfg.S3_BUCKET,
        region=cfg.S3_REGION,
        timeout=cfg.STORAGE_TIMEOUT_SECONDS,
    )
    logger.info("StorageService initialised (bucket=%s)", cfg.S3_BUCKET)
    return _service


def get_storage_service() -> StorageService:
    """Return the initialised StorageService singleton."""
    if _service is None:
        raise RuntimeError("StorageService not initialised -- call init_storage_service() first")
    return _service
