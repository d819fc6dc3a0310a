"""
Object Store Adapter - Persistent Tier

S3-compatible object storage (Alibaba OSS, MinIO, AWS S3) holding the full
serialized value of every cache entry.

Architecture:
    S3ObjectStore (ObjectStore protocol)
        ├── build_object_key()   key layout shared with external tooling
        ├── _run()               thread offload + time bound
        └── _classify()          driver errors -> Ignorable / Recoverable

Key Layout:
    cache / composable:  {prefix}/{build_id}/{key}.{kind}
    fetch:               {prefix}/__fetch/{build_id}/{key}

boto3 is synchronous, so every call runs in a worker thread
(asyncio.to_thread) under asyncio.wait_for. botocore's own connect/read
timeouts bound the thread itself.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import posixpath
import threading
from datetime import datetime
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from tiercache.core.config.constants import (
    DEFAULT_BUILD_ID,
    OBJECT_CACHE_CONTROL,
    OBJECT_CONTENT_TYPE,
    OBJECT_KEY_DEFAULT_PREFIX,
    OBJECT_KEY_FETCH_DIR,
    OBJECT_NOT_FOUND_CODES,
    OBJECT_STORE_TIMEOUT,
    CacheKind,
    CacheTier,
)
from tiercache.core.config.settings import ObjectStoreSettings, get_settings
from tiercache.core.exceptions import (
    CacheBackendError,
    CacheError,
    CacheNotFoundError,
    CacheTimeoutError,
    ConfigurationError,
)
from tiercache.core.interfaces.cache import (
    CacheEntry,
    deserialize_value,
    now_ms,
    serialize_value,
)
from tiercache.core.logging.logger import get_logger

logger = get_logger(__name__)

_TIER = CacheTier.OBJECT_STORE.value


def _join(*parts: str) -> str:
    # Join then normalize, so a leading "/" on a key does not discard the prefix
    joined = posixpath.normpath("/".join(part for part in parts if part))
    # normpath keeps exactly two leading slashes; an absolute key gets one
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


def _epoch_ms(moment: datetime) -> int:
    # Whole seconds plus milliseconds, avoiding float rounding of the timestamp
    return int(moment.timestamp()) * 1000 + moment.microsecond // 1000


def build_object_key(
    key: str,
    kind: CacheKind = CacheKind.CACHE,
    prefix: str = OBJECT_KEY_DEFAULT_PREFIX,
    build_id: str = DEFAULT_BUILD_ID,
) -> str:
    """
    Build the object key for a cache key.

    Examples:
        >>> build_object_key("index", CacheKind.CACHE)
        'cache/default/index.cache'
        >>> build_object_key("abc123", CacheKind.FETCH, build_id="b1")
        'cache/__fetch/b1/abc123'
        >>> build_object_key("/blog/post", CacheKind.COMPOSABLE, prefix="next")
        'next/default/blog/post.composable'
    """
    kind = CacheKind(kind)
    if kind is CacheKind.FETCH:
        return _join(prefix, OBJECT_KEY_FETCH_DIR, build_id, key)
    return _join(prefix, build_id, f"{key}.{kind.value}")


def _classify(exc: BaseException, operation: str, object_key: str) -> CacheError:
    """
    Map a driver exception to the tier failure taxonomy.

    Not-found (NoSuchKey / NotFound / 404) is ignorable; everything else is
    recoverable and carries the original exception as its cause.
    """
    context = {"tier": _TIER, "operation": operation, "object_key": object_key}

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in OBJECT_NOT_FOUND_CODES or status == 404:
            return CacheNotFoundError(f"Object not found: {object_key}", details=context)
        return CacheBackendError.from_exception(
            exc, f"Object store {operation} failed ({code or status})", error_code=code, **context
        )

    if isinstance(exc, (asyncio.TimeoutError, ConnectTimeoutError, ReadTimeoutError)):
        return CacheTimeoutError.from_exception(exc, f"Object store {operation} timed out", **context)

    return CacheBackendError.from_exception(exc, f"Object store {operation} failed", **context)


class S3ObjectStore:
    """
    Persistent tier over an S3-compatible bucket.

    Usage:
        store = S3ObjectStore(client, bucket="my-cache")
        await store.set("index", {"html": "..."})
        entry = await store.get("index")
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        prefix: str = OBJECT_KEY_DEFAULT_PREFIX,
        build_id: str = DEFAULT_BUILD_ID,
        timeout: float = OBJECT_STORE_TIMEOUT,
    ):
        """
        Args:
            client: boto3 S3 client (or any object with the same methods)
            bucket: Bucket name
            prefix: Object key prefix
            build_id: Deployment/build identifier scoping every key
            timeout: Upper bound for each call, in seconds
        """
        self._client = client
        self._bucket = bucket
        self._prefix = prefix
        self._build_id = build_id
        self._timeout = timeout

    @property
    def bucket(self) -> str:
        return self._bucket

    def object_key(self, key: str, kind: CacheKind = CacheKind.CACHE) -> str:
        return build_object_key(key, kind, prefix=self._prefix, build_id=self._build_id)

    async def _run(self, operation: str, object_key: str, func, *args, **kwargs):
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args, **kwargs), timeout=self._timeout
            )
        except (ClientError, BotoCoreError, asyncio.TimeoutError, OSError, ValueError) as exc:
            raise _classify(exc, operation, object_key) from exc

    # -------------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # -------------------------------------------------------------------------

    def _get_blocking(self, object_key: str) -> tuple[bytes, datetime | None]:
        response = self._client.get_object(Bucket=self._bucket, Key=object_key)
        body = response["Body"]
        try:
            content = body.read()
        finally:
            body.close()
        return content, response.get("LastModified")

    # -------------------------------------------------------------------------
    # ObjectStore protocol
    # -------------------------------------------------------------------------

    async def get(self, key: str, kind: CacheKind = CacheKind.CACHE) -> CacheEntry:
        """
        Fetch and decode a value.

        last_modified comes from the object's LastModified timestamp when
        the store reports one, else the current time.

        Raises:
            CacheNotFoundError: The object does not exist
            CacheBackendError: Any other failure
        """
        object_key = self.object_key(key, kind)
        logger.debug("Fetching object", tier=_TIER, object_key=object_key, kind=CacheKind(kind).value)

        content, modified = await self._run("get", object_key, self._get_blocking, object_key)

        try:
            value = deserialize_value(content)
        except ValueError as exc:
            raise CacheBackendError.from_exception(
                exc, "Stored object is not valid JSON", tier=_TIER, object_key=object_key
            ) from exc

        last_modified = _epoch_ms(modified) if modified else now_ms()
        return CacheEntry(value=value, last_modified=last_modified)

    async def set(self, key: str, value: Any, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Serialize and store a value.

        Raises:
            CacheBackendError: Serialization or upload failure
        """
        object_key = self.object_key(key, kind)
        try:
            body = serialize_value(value)
        except TypeError as exc:
            raise CacheBackendError.from_exception(
                exc, "Value is not JSON serializable", tier=_TIER, object_key=object_key
            ) from exc

        await self._run(
            "set",
            object_key,
            self._client.put_object,
            Bucket=self._bucket,
            Key=object_key,
            Body=body,
            ContentType=OBJECT_CONTENT_TYPE,
            CacheControl=OBJECT_CACHE_CONTROL,
        )
        logger.debug("Stored object", tier=_TIER, object_key=object_key, size=len(body))

    async def delete(self, key: str, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Delete an object. An absent object is not an error.

        Raises:
            CacheBackendError: If the delete fails
        """
        object_key = self.object_key(key, kind)
        try:
            await self._run(
                "delete", object_key, self._client.delete_object, Bucket=self._bucket, Key=object_key
            )
        except CacheNotFoundError:
            logger.debug("Object already absent", tier=_TIER, object_key=object_key)
            return
        logger.debug("Deleted object", tier=_TIER, object_key=object_key)

    async def health_check(self) -> dict[str, Any]:
        """
        Check bucket reachability with HEAD bucket.

        Returns:
            Dict with status ("healthy" / "unhealthy"), bucket and error if any
        """
        try:
            await self._run("health_check", self._bucket, self._client.head_bucket, Bucket=self._bucket)
            return {"status": "healthy", "bucket": self._bucket}
        except CacheError as exc:
            return {"status": "unhealthy", "bucket": self._bucket, "error": exc.message}


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_object_store: S3ObjectStore | None = None
_object_store_lock = threading.Lock()


def create_s3_client(settings: ObjectStoreSettings) -> Any:
    """Build a boto3 S3 client with bounded timeouts and retries."""
    config = Config(
        connect_timeout=settings.OBJECT_STORE_TIMEOUT,
        read_timeout=settings.OBJECT_STORE_TIMEOUT,
        retries={"max_attempts": settings.OBJECT_STORE_MAX_ATTEMPTS, "mode": "standard"},
    )
    kwargs: dict[str, Any] = {
        "region_name": settings.OBJECT_STORE_REGION,
        "aws_access_key_id": settings.OBJECT_STORE_ACCESS_KEY_ID,
        "aws_secret_access_key": settings.OBJECT_STORE_ACCESS_KEY_SECRET,
        "config": config,
    }
    if settings.OBJECT_STORE_ENDPOINT:
        kwargs["endpoint_url"] = settings.OBJECT_STORE_ENDPOINT
    try:
        return boto3.client("s3", **kwargs)
    except ValueError as e:
        # botocore rejects malformed endpoint URLs here
        raise ConfigurationError.from_exception(
            e, "Invalid object store configuration", endpoint=settings.OBJECT_STORE_ENDPOINT
        ) from e


def get_object_store() -> S3ObjectStore | None:
    """
    Get the process-wide object store (lazy, thread-safe singleton).

    Returns:
        The shared S3ObjectStore, or None when the persistent tier is not
        configured (the orchestrator then runs without it).
    """
    global _object_store

    if _object_store is not None:
        return _object_store

    settings = get_settings().object_store
    if not settings.is_configured:
        return None

    with _object_store_lock:
        if _object_store is None:
            _object_store = S3ObjectStore(
                client=create_s3_client(settings),
                bucket=settings.OBJECT_STORE_BUCKET,
                prefix=settings.OBJECT_STORE_PREFIX,
                build_id=settings.BUILD_ID,
                timeout=settings.OBJECT_STORE_TIMEOUT,
            )
            logger.info(
                "Object store enabled",
                tier=_TIER,
                bucket=settings.OBJECT_STORE_BUCKET,
                region=settings.OBJECT_STORE_REGION,
                prefix=settings.OBJECT_STORE_PREFIX,
            )
    return _object_store


def reset_object_store() -> None:
    """Drop the shared instance (tests and settings reload)."""
    global _object_store
    with _object_store_lock:
        _object_store = None
