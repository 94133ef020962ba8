"""
Payment Proof Storage Gateway

Thin adapter over an S3-compatible object store (MinIO in development) for
payment proof images:

1. Object keys: collision-resistant keys embedding the owner id, a timestamp,
   a random component and an extension taken from an allow-listed MIME map.
2. Pre-signed URLs: time-limited PUT (upload) and GET (view) URLs. TTLs are
   clamped into [MIN_URL_TTL_SECONDS, MAX_URL_TTL_SECONDS] whatever the
   configured or requested value.
3. Existence checks: HEAD on the object. A confirmed 404 returns False; any
   other failure (network, credentials, timeouts) raises StorageError.

boto3 is synchronous, so every call runs in a worker thread. The client is
built with bounded connect/read timeouts and retry attempts so a hung backend
cannot stall an admin decision indefinitely.

The gateway is constructed from an explicit StorageConfig and handed to the
service layer; it never reads settings on its own.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from membership_api.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

MIME_TO_EXTENSION: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
ALLOWED_CONTENT_TYPES = frozenset(MIME_TO_EXTENSION)

MIN_URL_TTL_SECONDS = 60
MAX_URL_TTL_SECONDS = 3600
DEFAULT_VIEW_URL_TTL_SECONDS = 900

NOT_FOUND_ERROR_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageError(Exception):
    """Raised when the object store cannot be reached or refuses a request."""


class StorageNotConfiguredError(StorageError):
    """Raised when bucket or credentials are missing."""


@dataclass(frozen=True)
class StorageConfig:
    """Connection and policy settings for the payment proof bucket."""

    bucket: str | None
    endpoint_url: str | None = None
    region: str = "us-east-1"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    force_path_style: bool = True
    signed_url_ttl_seconds: int = 900
    max_bytes: int = 10 * 1024 * 1024
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 10.0
    max_attempts: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        endpoint = settings.s3_endpoint_url.rstrip("/") if settings.s3_endpoint_url else None
        return cls(
            bucket=settings.s3_bucket,
            endpoint_url=endpoint,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            force_path_style=settings.s3_force_path_style,
            signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
            max_bytes=settings.payment_proof_max_bytes,
            connect_timeout_seconds=settings.storage_connect_timeout_seconds,
            read_timeout_seconds=settings.storage_read_timeout_seconds,
            max_attempts=settings.storage_max_attempts,
        )


@dataclass(frozen=True)
class PresignedUpload:
    """A pre-signed PUT URL and its lifetime in seconds."""

    url: str
    expires_in: int


def clamp_ttl(ttl_seconds: int) -> int:
    """Clamp a URL lifetime into the allowed band."""
    return max(MIN_URL_TTL_SECONDS, min(int(ttl_seconds), MAX_URL_TTL_SECONDS))


def is_allowed_content_type(content_type: str) -> bool:
    return content_type in ALLOWED_CONTENT_TYPES


def build_proof_object_key(user_id: uuid.UUID | str, content_type: str) -> str:
    """
    Build a fresh object key for a payment proof upload.

    Format: applications/<user id>/payment-proof-<epoch ms>-<uuid4>.<ext>

    Raises:
        ValueError: If the content type is not an allowed image type
    """
    extension = MIME_TO_EXTENSION.get(content_type)
    if extension is None:
        raise ValueError(f"Unsupported payment proof content type: {content_type}")

    timestamp_ms = int(time.time() * 1000)
    return f"applications/{user_id}/payment-proof-{timestamp_ms}-{uuid.uuid4()}.{extension}"


class PaymentProofStorage:
    """Pre-signed URL issuing and existence checks for payment proofs."""

    def __init__(self, config: StorageConfig, client: BaseClient | None = None):
        self.config = config
        self._client = client

    @property
    def max_bytes(self) -> int:
        return self.config.max_bytes

    def _get_client(self) -> BaseClient:
        if self._client is not None:
            return self._client

        if not (
            self.config.bucket and self.config.access_key_id and self.config.secret_access_key
        ):
            raise StorageNotConfiguredError("Payment proof storage is not configured")

        addressing_style = "path" if self.config.force_path_style else "auto"
        self._client = boto3.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            region_name=self.config.region,
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.secret_access_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": addressing_style},
                connect_timeout=self.config.connect_timeout_seconds,
                read_timeout=self.config.read_timeout_seconds,
                retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
            ),
        )
        return self._client

    async def _call(self, operation: str, fn, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Storage {operation} failed: {type(e).__name__}")
            raise StorageError(f"Storage {operation} failed") from e

    def build_object_key(self, user_id: uuid.UUID | str, content_type: str) -> str:
        return build_proof_object_key(user_id, content_type)

    async def create_upload_url(
        self, key: str, content_type: str, content_length: int
    ) -> PresignedUpload:
        """
        Issue a pre-signed PUT URL bound to the content type and length.

        Raises:
            StorageError: If the URL cannot be signed
        """
        client = self._get_client()
        expires_in = clamp_ttl(self.config.signed_url_ttl_seconds)
        url = await self._call(
            "presign upload",
            client.generate_presigned_url,
            "put_object",
            Params={
                "Bucket": self.config.bucket,
                "Key": key,
                "ContentType": content_type,
                "ContentLength": content_length,
            },
            ExpiresIn=expires_in,
        )
        return PresignedUpload(url=url, expires_in=expires_in)

    async def create_view_url(
        self, key: str, ttl_seconds: int = DEFAULT_VIEW_URL_TTL_SECONDS
    ) -> str:
        """
        Issue a pre-signed GET URL for an existing object.

        Raises:
            StorageError: If the URL cannot be signed
        """
        client = self._get_client()
        return await self._call(
            "presign view",
            client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.config.bucket, "Key": key},
            ExpiresIn=clamp_ttl(ttl_seconds),
        )

    async def object_exists(self, key: str) -> bool:
        """
        Check whether an object is present in the bucket.

        Returns:
            True if the object exists, False only on a confirmed not-found

        Raises:
            StorageError: On any other failure (transport, credentials, timeouts)
        """
        client = self._get_client()
        try:
            await asyncio.to_thread(client.head_object, Bucket=self.config.bucket, Key=key)
            return True
        except ClientError as e:
            error = e.response.get("Error", {})
            code = str(error.get("Code", ""))
            http_status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if code in NOT_FOUND_ERROR_CODES or http_status == 404:
                return False
            logger.error(f"Storage head_object failed: code={code}")
            raise StorageError("Storage existence check failed") from e
        except BotoCoreError as e:
            logger.error(f"Storage head_object failed: {type(e).__name__}")
            raise StorageError("Storage existence check failed") from e


@lru_cache(maxsize=1)
def get_proof_storage() -> PaymentProofStorage:
    """FastAPI dependency returning the process-wide storage gateway."""
    return PaymentProofStorage(StorageConfig.from_settings(get_settings()))
