"""
Key people API endpoints.

People are linked to startups by case-insensitive name; a person whose
startup_name matches no startup is still listed, with startup_id null.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from startup_tracker.core.cache import TTLCache, build_cache_key, get_cache
from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError
from startup_tracker.query.execute import run_listing
from startup_tracker.query.params import ListingParams, is_refresh, listing_params
from startup_tracker.query.resources import PEOPLE, people_filters, people_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/people", tags=["People"])


def load_people(db: Session, listing: ListingParams) -> Dict[str, Any]:
    built = people_query(listing.filters).build(listing)
    total, rows = run_listing(db, built)
    return {"data": rows, "total": total, "page": listing.page, "limit": listing.limit}


@router.get("")
def list_people(
    search: Optional[str] = Query(None, description="Substring of name, role or company"),
    sort: Optional[str] = Query(None, description="name, role or company"),
    order: Optional[str] = Query(None, description="ASC or DESC"),
    page: Optional[str] = Query(None, description="Page number (from 1)"),
    limit: Optional[str] = Query(None, description="Page size (1-100, default 50)"),
    refresh: Optional[str] = Query(None, description="'true' to bypass the cache"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """List key people, sorted by name unless told otherwise."""
    raw = {"search": search, "sort": sort, "order": order, "page": page, "limit": limit}
    listing = listing_params(
        raw,
        PEOPLE.sorts,
        PEOPLE.default_sort,
        PEOPLE.default_order,
        filters=people_filters(raw),
    )
    key = build_cache_key(PEOPLE.name, listing.key_pairs())

    try:
        return cache.get_or_compute(
            key, lambda: load_people(db, listing), refresh=is_refresh(refresh)
        )
    except Exception as e:
        logger.error(f"People API error: {e}")
        raise DatabaseError("Failed to fetch people")
