"""
Store Test Factory

Creates tier store doubles (spies, failing stores) and boto3 client mocks
for testing.
"""

import io
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from botocore.exceptions import ClientError

from tiercache.core.exceptions import CacheBackendError


class StoreTestFactory:
    """Factory for creating tier test objects."""

    @staticmethod
    def spy_object_store(store: Any) -> MagicMock:
        """Wrap an object store so every call is recorded and delegated."""
        spy = MagicMock()
        spy.get = AsyncMock(side_effect=store.get)
        spy.set = AsyncMock(side_effect=store.set)
        spy.delete = AsyncMock(side_effect=store.delete)
        spy.health_check = AsyncMock(side_effect=store.health_check)
        spy.wrapped = store
        return spy

    @staticmethod
    def spy_metadata_store(store: Any) -> MagicMock:
        """Wrap a metadata store so every call is recorded and delegated."""
        spy = MagicMock()
        spy.get_meta = AsyncMock(side_effect=store.get_meta)
        spy.set_meta = AsyncMock(side_effect=store.set_meta)
        spy.delete_meta = AsyncMock(side_effect=store.delete_meta)
        spy.batch_get_meta = AsyncMock(side_effect=store.batch_get_meta)
        spy.health_check = AsyncMock(side_effect=store.health_check)
        spy.wrapped = store
        return spy

    @staticmethod
    def failing_object_store(error: Exception | None = None) -> MagicMock:
        """Create an object store whose every call fails recoverably."""
        if error is None:
            error = CacheBackendError("Object store unavailable", details={"tier": "object_store"})

        store = MagicMock()
        store.get = AsyncMock(side_effect=error)
        store.set = AsyncMock(side_effect=error)
        store.delete = AsyncMock(side_effect=error)
        store.health_check = AsyncMock(return_value={"status": "unhealthy", "error": str(error)})
        return store

    @staticmethod
    def s3_client() -> MagicMock:
        """Create a boto3 S3 client mock with empty successful responses."""
        client = MagicMock()
        client.put_object.return_value = {"ETag": '"etag"'}
        client.delete_object.return_value = {}
        client.head_bucket.return_value = {}
        return client

    @staticmethod
    def get_object_response(body: bytes, last_modified: datetime | None = None) -> dict[str, Any]:
        """Build a get_object response with a readable streaming body."""
        response: dict[str, Any] = {"Body": io.BytesIO(body), "ContentLength": len(body)}
        if last_modified is not None:
            response["LastModified"] = last_modified
        return response

    @staticmethod
    def client_error(code: str, status: int = 400, operation: str = "GetObject") -> ClientError:
        """Build a botocore ClientError with the given error code and HTTP status."""
        return ClientError(
            {
                "Error": {"Code": code, "Message": f"{code} error"},
                "ResponseMetadata": {"HTTPStatusCode": status},
            },
            operation,
        )

    @staticmethod
    def utc(epoch_ms: int) -> datetime:
        """Epoch milliseconds as an aware UTC datetime."""
        return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
