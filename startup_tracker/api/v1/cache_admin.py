"""
Response cache inspection and invalidation.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from startup_tracker.core.cache import TTLCache, get_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.get("/stats")
def cache_stats(cache: TTLCache = Depends(get_cache)):
    """Hit / miss / eviction counters and current size."""
    return cache.stats()


@router.delete("")
def clear_cache(
    prefix: Optional[str] = Query(None, description="Only clear keys starting with this, e.g. 'people:'"),
    cache: TTLCache = Depends(get_cache),
):
    """Drop cached responses, all of them or one resource's."""
    cleared = cache.clear(prefix)
    logger.info(f"Cleared {cleared} cache entries (prefix={prefix!r})")
    return {"cleared": cleared, "prefix": prefix}
