"""
Unit Tests for the S3 Object Store Adapter

Tests key layout, serialization and failure classification against a
mocked boto3 client.
"""

import time

import orjson
import pytest
from botocore.exceptions import EndpointConnectionError

from tests.test_fixtures.store_factory import StoreTestFactory
from tiercache.core.config.constants import CacheKind
from tiercache.core.config.settings import ObjectStoreSettings, reload_settings
from tiercache.core.exceptions import (
    CacheBackendError,
    CacheNotFoundError,
    CacheTimeoutError,
    ConfigurationError,
    ErrorKind,
)
from tiercache.infrastructure.storage import object_store as object_store_module
from tiercache.infrastructure.storage.object_store import (
    S3ObjectStore,
    build_object_key,
    create_s3_client,
    get_object_store,
)


@pytest.mark.unit
class TestObjectKeyLayout:
    """Test object key construction."""

    def test_cache_kind(self):
        assert build_object_key("index", CacheKind.CACHE) == "cache/default/index.cache"

    def test_composable_kind(self):
        assert build_object_key("index", CacheKind.COMPOSABLE, build_id="b1") == "cache/b1/index.composable"

    def test_fetch_kind_has_no_suffix(self):
        assert build_object_key("abc123", CacheKind.FETCH, build_id="b1") == "cache/__fetch/b1/abc123"

    def test_accepts_kind_value(self):
        assert build_object_key("index", "fetch") == "cache/__fetch/default/index"

    def test_leading_slash_does_not_reset_path(self):
        assert build_object_key("/blog/post", CacheKind.CACHE) == "cache/default/blog/post.cache"

    def test_duplicate_slashes_collapse(self):
        assert build_object_key("a//b", CacheKind.CACHE, prefix="pages//") == "pages/default/a/b.cache"

    @pytest.mark.parametrize("prefix", ["/", "//", "///"])
    def test_root_prefix_keeps_single_leading_slash(self, prefix):
        assert build_object_key("index", CacheKind.CACHE, prefix=prefix) == "/default/index.cache"
        assert build_object_key("abc", CacheKind.FETCH, prefix=prefix) == "/__fetch/default/abc"

    def test_double_slash_prefix_collapses(self):
        assert build_object_key("index", CacheKind.CACHE, prefix="//pages/") == "/pages/default/index.cache"

    def test_store_uses_its_prefix_and_build(self, mock_s3_client):
        store = S3ObjectStore(mock_s3_client, bucket="b", prefix="next", build_id="42")
        assert store.object_key("x", CacheKind.FETCH) == "next/__fetch/42/x"


@pytest.mark.unit
class TestObjectStoreReadWrite:
    """Test successful operations."""

    @pytest.fixture
    def store(self, mock_s3_client):
        return S3ObjectStore(mock_s3_client, bucket="page-cache")

    @pytest.mark.asyncio
    async def test_get_decodes_json_and_timestamp(self, store, mock_s3_client):
        mock_s3_client.get_object.return_value = StoreTestFactory.get_object_response(
            b'{"html":"<p>hi</p>"}', StoreTestFactory.utc(1_700_000_000_123)
        )

        entry = await store.get("index")

        assert entry.value == {"html": "<p>hi</p>"}
        assert entry.last_modified == 1_700_000_000_123
        mock_s3_client.get_object.assert_called_once_with(Bucket="page-cache", Key="cache/default/index.cache")

    @pytest.mark.asyncio
    async def test_get_without_timestamp_uses_now(self, store, mock_s3_client):
        mock_s3_client.get_object.return_value = StoreTestFactory.get_object_response(b"[1, 2]")
        before = int(time.time() * 1000)

        entry = await store.get("index")

        assert entry.value == [1, 2]
        assert entry.last_modified >= before

    @pytest.mark.asyncio
    async def test_set_uploads_json_with_headers(self, store, mock_s3_client):
        await store.set("post", {"title": "héllo"}, CacheKind.FETCH)

        kwargs = mock_s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "page-cache"
        assert kwargs["Key"] == "cache/__fetch/default/post"
        assert orjson.loads(kwargs["Body"]) == {"title": "héllo"}
        assert kwargs["ContentType"] == "application/json"
        assert kwargs["CacheControl"] == "public, max-age=31536000"

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_s3_client):
        await store.delete("index")

        mock_s3_client.delete_object.assert_called_once_with(Bucket="page-cache", Key="cache/default/index.cache")

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, store, mock_s3_client):
        health = await store.health_check()

        assert health == {"status": "healthy", "bucket": "page-cache"}
        mock_s3_client.head_bucket.assert_called_once_with(Bucket="page-cache")


@pytest.mark.unit
class TestObjectStoreFailures:
    """Test failure classification."""

    @pytest.fixture
    def store(self, mock_s3_client):
        return S3ObjectStore(mock_s3_client, bucket="page-cache", timeout=0.2)

    @pytest.mark.parametrize(
        ("code", "status"),
        [("NoSuchKey", 404), ("NotFound", 404), ("404", 404), ("SomethingElse", 404)],
    )
    @pytest.mark.asyncio
    async def test_not_found_is_ignorable(self, store, mock_s3_client, code, status):
        mock_s3_client.get_object.side_effect = StoreTestFactory.client_error(code, status)

        with pytest.raises(CacheNotFoundError) as exc_info:
            await store.get("index")

        assert exc_info.value.kind is ErrorKind.IGNORABLE
        assert exc_info.value.tier == "object_store"

    @pytest.mark.asyncio
    async def test_access_denied_is_recoverable(self, store, mock_s3_client):
        error = StoreTestFactory.client_error("AccessDenied", 403)
        mock_s3_client.get_object.side_effect = error

        with pytest.raises(CacheBackendError) as exc_info:
            await store.get("index")

        assert exc_info.value.kind is ErrorKind.RECOVERABLE
        assert exc_info.value.__cause__ is error
        assert exc_info.value.details["error_code"] == "AccessDenied"
        assert exc_info.value.details["object_key"] == "cache/default/index.cache"

    @pytest.mark.asyncio
    async def test_network_error_is_recoverable(self, store, mock_s3_client):
        mock_s3_client.get_object.side_effect = EndpointConnectionError(endpoint_url="https://oss.example.com")

        with pytest.raises(CacheBackendError) as exc_info:
            await store.get("index")

        assert not isinstance(exc_info.value, CacheNotFoundError)

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self, store, mock_s3_client):
        def slow(**kwargs):
            time.sleep(0.5)
            return StoreTestFactory.get_object_response(b"{}")

        mock_s3_client.get_object.side_effect = slow

        with pytest.raises(CacheTimeoutError):
            await store.get("index")

    @pytest.mark.asyncio
    async def test_invalid_json_is_recoverable(self, store, mock_s3_client):
        mock_s3_client.get_object.return_value = StoreTestFactory.get_object_response(b"<html>")

        with pytest.raises(CacheBackendError):
            await store.get("index")

    @pytest.mark.asyncio
    async def test_unserializable_value_rejected_before_upload(self, store, mock_s3_client):
        with pytest.raises(CacheBackendError):
            await store.set("index", {"bad": object()})

        mock_s3_client.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_failure_is_recoverable(self, store, mock_s3_client):
        mock_s3_client.put_object.side_effect = StoreTestFactory.client_error("SlowDown", 503, "PutObject")

        with pytest.raises(CacheBackendError):
            await store.set("index", {"a": 1})

    @pytest.mark.asyncio
    async def test_delete_of_absent_object_succeeds(self, store, mock_s3_client):
        mock_s3_client.delete_object.side_effect = StoreTestFactory.client_error("NoSuchKey", 404, "DeleteObject")

        await store.delete("index")

    @pytest.mark.asyncio
    async def test_delete_failure_is_recoverable(self, store, mock_s3_client):
        mock_s3_client.delete_object.side_effect = StoreTestFactory.client_error("AccessDenied", 403, "DeleteObject")

        with pytest.raises(CacheBackendError):
            await store.delete("index")

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self, store, mock_s3_client):
        mock_s3_client.head_bucket.side_effect = StoreTestFactory.client_error("AccessDenied", 403, "HeadBucket")

        health = await store.health_check()

        assert health["status"] == "unhealthy"
        assert health["bucket"] == "page-cache"
        assert "error" in health


@pytest.mark.unit
class TestObjectStoreSingleton:
    """Test the lazy shared instance."""

    def test_none_when_not_configured(self):
        assert get_object_store() is None

    def test_created_once_when_configured(self, monkeypatch, mock_s3_client):
        monkeypatch.setenv("OBJECT_STORE_REGION", "us-east-1")
        monkeypatch.setenv("OBJECT_STORE_ACCESS_KEY_ID", "key-id")
        monkeypatch.setenv("OBJECT_STORE_ACCESS_KEY_SECRET", "key-secret")
        monkeypatch.setenv("OBJECT_STORE_BUCKET", "page-cache")
        monkeypatch.setenv("BUILD_ID", "b7")
        reload_settings()
        monkeypatch.setattr(object_store_module, "create_s3_client", lambda settings: mock_s3_client)

        store = get_object_store()

        assert isinstance(store, S3ObjectStore)
        assert store.bucket == "page-cache"
        assert store.object_key("index") == "cache/b7/index.cache"
        assert get_object_store() is store

    def test_reset(self, monkeypatch, mock_s3_client):
        monkeypatch.setattr(object_store_module, "_object_store", S3ObjectStore(mock_s3_client, bucket="b"))

        object_store_module.reset_object_store()

        assert object_store_module._object_store is None

    def test_invalid_endpoint_is_configuration_error(self):
        settings = ObjectStoreSettings(
            OBJECT_STORE_REGION="us-east-1",
            OBJECT_STORE_ACCESS_KEY_ID="key-id",
            OBJECT_STORE_ACCESS_KEY_SECRET="key-secret",
            OBJECT_STORE_BUCKET="page-cache",
            OBJECT_STORE_ENDPOINT="not a url",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            create_s3_client(settings)

        assert exc_info.value.details["endpoint"] == "not a url"
