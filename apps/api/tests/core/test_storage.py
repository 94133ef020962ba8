"""
Unit tests for the payment proof storage gateway.

boto3 is replaced by a MagicMock client; errors are real botocore exceptions.
"""

import re
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from membership_api.core.config import Settings
from membership_api.core.storage import (
    DEFAULT_VIEW_URL_TTL_SECONDS,
    MAX_URL_TTL_SECONDS,
    MIN_URL_TTL_SECONDS,
    PaymentProofStorage,
    StorageConfig,
    StorageError,
    StorageNotConfiguredError,
    build_proof_object_key,
    clamp_ttl,
    is_allowed_content_type,
)

KEY_PATTERN = re.compile(
    r"^applications/(?P<user>[0-9a-f-]+)/payment-proof-(?P<ts>\d+)-[0-9a-f-]{36}\.(?P<ext>\w+)$"
)


def _client_error(code: str, http_status: int, operation: str = "HeadObject") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": "error"},
            "ResponseMetadata": {"HTTPStatusCode": http_status},
        },
        operation,
    )


@pytest.fixture
def config():
    return StorageConfig(
        bucket="payment-proofs",
        endpoint_url="http://localhost:9000",
        access_key_id="minio",
        secret_access_key="minio-secret",
        signed_url_ttl_seconds=900,
    )


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://storage.test/signed"
    client.head_object.return_value = {"ContentLength": 1024}
    return client


@pytest.fixture
def storage(config, s3_client):
    return PaymentProofStorage(config, client=s3_client)


class TestObjectKeys:
    """Tests for object key construction."""

    @pytest.mark.parametrize(
        "content_type,extension",
        [("image/jpeg", "jpg"), ("image/png", "png"), ("image/webp", "webp")],
    )
    def test_key_format(self, content_type, extension):
        user_id = uuid4()

        key = build_proof_object_key(user_id, content_type)

        match = KEY_PATTERN.match(key)
        assert match is not None
        assert match.group("user") == str(user_id)
        assert match.group("ext") == extension

    def test_keys_are_unique(self):
        user_id = uuid4()
        keys = {build_proof_object_key(user_id, "image/png") for _ in range(50)}
        assert len(keys) == 50

    def test_unsupported_type_raises(self):
        with pytest.raises(ValueError):
            build_proof_object_key(uuid4(), "application/pdf")

    def test_allowed_content_types(self):
        assert is_allowed_content_type("image/png") is True
        assert is_allowed_content_type("image/gif") is False
        assert is_allowed_content_type("IMAGE/PNG") is False


class TestClampTtl:
    @pytest.mark.parametrize(
        "ttl,expected",
        [
            (1, MIN_URL_TTL_SECONDS),
            (0, MIN_URL_TTL_SECONDS),
            (-30, MIN_URL_TTL_SECONDS),
            (900, 900),
            (10_000, MAX_URL_TTL_SECONDS),
        ],
    )
    def test_clamp(self, ttl, expected):
        assert clamp_ttl(ttl) == expected


class TestPresignedUrls:
    """Tests for upload and view URL signing."""

    @pytest.mark.asyncio
    async def test_create_upload_url(self, storage, s3_client):
        result = await storage.create_upload_url("applications/u/p.png", "image/png", 2048)

        assert result.url == "https://storage.test/signed"
        assert result.expires_in == 900
        s3_client.generate_presigned_url.assert_called_once_with(
            "put_object",
            Params={
                "Bucket": "payment-proofs",
                "Key": "applications/u/p.png",
                "ContentType": "image/png",
                "ContentLength": 2048,
            },
            ExpiresIn=900,
        )

    @pytest.mark.asyncio
    async def test_upload_ttl_is_clamped(self, config, s3_client):
        storage = PaymentProofStorage(
            StorageConfig(**{**config.__dict__, "signed_url_ttl_seconds": 86400}),
            client=s3_client,
        )

        result = await storage.create_upload_url("k", "image/png", 1)

        assert result.expires_in == MAX_URL_TTL_SECONDS
        assert s3_client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == MAX_URL_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_create_view_url_default_ttl(self, storage, s3_client):
        url = await storage.create_view_url("applications/u/p.png")

        assert url == "https://storage.test/signed"
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "payment-proofs", "Key": "applications/u/p.png"},
            ExpiresIn=DEFAULT_VIEW_URL_TTL_SECONDS,
        )

    @pytest.mark.asyncio
    async def test_view_ttl_is_clamped(self, storage, s3_client):
        await storage.create_view_url("k", ttl_seconds=5)
        assert s3_client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == MIN_URL_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_signing_failure_raises_storage_error(self, storage, s3_client):
        s3_client.generate_presigned_url.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000"
        )

        with pytest.raises(StorageError):
            await storage.create_upload_url("k", "image/png", 1)


class TestObjectExists:
    """Tests for the existence check."""

    @pytest.mark.asyncio
    async def test_exists(self, storage, s3_client):
        assert await storage.object_exists("k") is True
        s3_client.head_object.assert_called_once_with(Bucket="payment-proofs", Key="k")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,http_status",
        [("404", 404), ("NoSuchKey", 404), ("NotFound", 404), ("Unknown", 404)],
    )
    async def test_not_found_returns_false(self, storage, s3_client, code, http_status):
        s3_client.head_object.side_effect = _client_error(code, http_status)
        assert await storage.object_exists("k") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,http_status",
        [("403", 403), ("AccessDenied", 403), ("InternalError", 500), ("SlowDown", 503)],
    )
    async def test_other_client_errors_raise(self, storage, s3_client, code, http_status):
        s3_client.head_object.side_effect = _client_error(code, http_status)

        with pytest.raises(StorageError):
            await storage.object_exists("k")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, storage, s3_client):
        """A network failure is never reported as a missing object."""
        s3_client.head_object.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000"
        )

        with pytest.raises(StorageError):
            await storage.object_exists("k")


class TestConfiguration:
    """Tests for client construction and settings mapping."""

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_not_configured(self):
        storage = PaymentProofStorage(StorageConfig(bucket="payment-proofs"))

        with pytest.raises(StorageNotConfiguredError):
            await storage.object_exists("k")

    @pytest.mark.asyncio
    async def test_missing_bucket_raises_not_configured(self):
        storage = PaymentProofStorage(
            StorageConfig(bucket=None, access_key_id="a", secret_access_key="b")
        )

        with pytest.raises(StorageError):
            await storage.create_view_url("k")

    def test_client_built_with_bounded_timeouts(self, config):
        storage = PaymentProofStorage(config)

        with patch("membership_api.core.storage.boto3.client") as mock_client:
            storage._get_client()
            storage._get_client()

        mock_client.assert_called_once()
        kwargs = mock_client.call_args.kwargs
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["config"].connect_timeout == config.connect_timeout_seconds
        assert kwargs["config"].read_timeout == config.read_timeout_seconds
        assert kwargs["config"].s3 == {"addressing_style": "path"}

    def test_from_settings(self):
        settings = Settings(
            S3_ENDPOINT_URL="http://minio:9000/",
            S3_BUCKET="proofs",
            S3_ACCESS_KEY_ID="key",
            S3_SECRET_ACCESS_KEY="secret",
            S3_SIGNED_URL_TTL_SECONDS=300,
            PAYMENT_PROOF_MAX_BYTES=1024,
        )

        config = StorageConfig.from_settings(settings)

        assert config.endpoint_url == "http://minio:9000"
        assert config.bucket == "proofs"
        assert config.signed_url_ttl_seconds == 300
        assert config.max_bytes == 1024
        assert PaymentProofStorage(config).max_bytes == 1024
