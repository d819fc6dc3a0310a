"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the tiered cache service.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for tier and kind identifiers
- Object key layout constants shared with external tooling

Author: System Architect
Date: 2025-12-05
"""

from enum import Enum

# ============================================================================
# Cache Kinds
# ============================================================================


class CacheKind(str, Enum):
    """
    Cache entry kinds.

    The kind selects the object key layout in the persistent tier:

    CACHE:      {prefix}/{build_id}/{key}.cache
    FETCH:      {prefix}/__fetch/{build_id}/{key}
    COMPOSABLE: {prefix}/{build_id}/{key}.composable
    """

    CACHE = "cache"
    FETCH = "fetch"
    COMPOSABLE = "composable"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Cache tiers, in lookup order.

    LOCAL:        In-process recency cache (fastest, < 1ms)
    METADATA:     Freshness metadata in Redis (5-10ms)
    OBJECT_STORE: Persistent S3-compatible object store (10-50ms)
    """

    LOCAL = "local"
    METADATA = "metadata"
    OBJECT_STORE = "object_store"


class LookupOutcome(str, Enum):
    """
    Result of a single tier lookup, used for logging and metrics.
    """

    HIT = "hit"
    MISS = "miss"
    STALE = "stale"
    VALIDATED = "validated"
    TOMBSTONE = "tombstone"
    DEGRADED = "degraded"
    ERROR = "error"


# ============================================================================
# Local Tier Defaults
# ============================================================================

LOCAL_CACHE_TTL_MS = 60_000
LOCAL_CACHE_MAX_SIZE = 1000

# ============================================================================
# Object Store
# ============================================================================

OBJECT_KEY_DEFAULT_PREFIX = "cache/"
OBJECT_KEY_FETCH_DIR = "__fetch"
DEFAULT_BUILD_ID = "default"

OBJECT_CONTENT_TYPE = "application/json"
OBJECT_CACHE_CONTROL = "public, max-age=31536000"

# Error codes the S3 API uses for an absent object
OBJECT_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})

OBJECT_STORE_TIMEOUT = 60.0
OBJECT_STORE_MAX_ATTEMPTS = 3

# ============================================================================
# Metadata Store
# ============================================================================

METADATA_DEFAULT_TABLE_NAME = "cache_metadata"
METADATA_STORE_TIMEOUT = 5.0

# Hash field names (shared with tooling that reads the metadata table)
META_FIELD_LAST_MODIFIED = "lastModified"
META_FIELD_REVALIDATED_AT = "revalidatedAt"
META_FIELD_DELETED = "deleted"
META_FIELD_SIZE = "size"

# ============================================================================
# HTTP
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
