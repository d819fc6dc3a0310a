"""
Cache Routes
============

HTTP access to the cache handler for hosts that cannot embed the Python
package directly.

    GET    /cache/{key}?kind=cache|fetch   -> {"value", "lastModified"} | 404
    PUT    /cache/{key}?kind=cache|fetch   body {"value", "revalidate"} -> 204
    DELETE /cache/{key}?kind=cache|fetch   -> 204
    POST   /cache/revalidate-tag           body {"tag"} -> 202

Keys may contain slashes (page paths), hence the ``{key:path}`` converter.
"""

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, Field

from tiercache.application.api.dependencies import CacheHandlerDep

router = APIRouter(prefix="/cache", tags=["Cache"])

KindParam = Literal["cache", "fetch"]


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================


class CacheEntryResponse(BaseModel):
    value: Any
    lastModified: int = Field(description="Epoch milliseconds of the entry's last write")


class CacheWriteRequest(BaseModel):
    value: Any = Field(description="JSON-serializable payload")
    revalidate: int | bool | None = Field(default=None, description="Revalidation interval (seconds) or False")


class RevalidateTagRequest(BaseModel):
    tag: str | list[str]


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.post("/revalidate-tag", status_code=status.HTTP_202_ACCEPTED)
async def revalidate_tag(body: RevalidateTagRequest, handler: CacheHandlerDep):
    """Accept a tag revalidation request."""
    await handler.revalidate_tag(body.tag)
    return {"status": "accepted", "tag": body.tag}


@router.get("/{key:path}", response_model=CacheEntryResponse)
async def get_entry(key: str, handler: CacheHandlerDep, kind: KindParam = "cache"):
    """
    Read an entry through the tiers.

    Raises:
        HTTPException: 404 on a miss
    """
    entry = await handler.get(key, {"kindHint": kind})
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Cache miss: {key}")
    return entry


@router.put("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def put_entry(key: str, body: CacheWriteRequest, handler: CacheHandlerDep, kind: KindParam = "cache"):
    """Write an entry through every tier."""
    await handler.set(
        key,
        {"value": body.value},
        {"revalidate": body.revalidate, "fetchCache": kind == "fetch"},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(key: str, handler: CacheHandlerDep, kind: KindParam = "cache"):
    """Delete an entry from every tier (tombstoned in metadata)."""
    await handler.set(key, None, {"fetchCache": kind == "fetch"})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
