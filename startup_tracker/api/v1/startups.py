"""
Startup API endpoints.

- Paginated, filterable, sortable startup list (cached)
- Startup detail with people, news content and products
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from startup_tracker.core.cache import TTLCache, build_cache_key, get_cache
from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError, NotFoundError, TrackerError
from startup_tracker.query.aggregation import split_list_field
from startup_tracker.query.execute import fetch_one, fetch_rows, run_listing
from startup_tracker.query.params import (
    ListingParams,
    fits_db_int,
    is_refresh,
    listing_params,
    parse_int,
)
from startup_tracker.query.resources import STARTUPS, startup_filters, startups_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/startups", tags=["Startups"])


def load_startups(db: Session, listing: ListingParams) -> Dict[str, Any]:
    built = startups_query(listing.filters).build(listing)
    total, rows = run_listing(db, built)
    return {"data": rows, "total": total, "page": listing.page, "limit": listing.limit}


@router.get("")
def list_startups(
    search: Optional[str] = Query(None, description="Substring of name, product, country or vertical"),
    region: Optional[str] = Query(None, description="Exact region"),
    vertical: Optional[str] = Query(None, description="Exact vertical"),
    stage: Optional[str] = Query(None, description="Exact funding stage"),
    needs_database: Optional[str] = Query(None, description="'true' to keep only startups flagged as needing a database"),
    min_relevance: Optional[str] = Query(None, description="Minimum relevance score"),
    max_relevance: Optional[str] = Query(None, description="Maximum relevance score"),
    sort: Optional[str] = Query(None, description="name, region, vertical, relevance_score, stage, discovered_at, updated_at, latest_news"),
    order: Optional[str] = Query(None, description="ASC or DESC"),
    page: Optional[str] = Query(None, description="Page number (from 1)"),
    limit: Optional[str] = Query(None, description="Page size (1-100, default 50)"),
    refresh: Optional[str] = Query(None, description="'true' to bypass the cache"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """
    List startups.

    Malformed paging, sorting and numeric filters fall back to defaults
    instead of failing. Unknown sort keys sort by discovered_at.
    """
    raw = {
        "search": search,
        "region": region,
        "vertical": vertical,
        "stage": stage,
        "needs_database": needs_database,
        "min_relevance": min_relevance,
        "max_relevance": max_relevance,
        "sort": sort,
        "order": order,
        "page": page,
        "limit": limit,
    }
    listing = listing_params(
        raw,
        STARTUPS.sorts,
        STARTUPS.default_sort,
        STARTUPS.default_order,
        filters=startup_filters(raw),
    )
    key = build_cache_key(STARTUPS.name, listing.key_pairs())

    try:
        return cache.get_or_compute(
            key, lambda: load_startups(db, listing), refresh=is_refresh(refresh)
        )
    except Exception as e:
        logger.error(f"Startups error: {e}")
        raise DatabaseError("Failed to fetch startups")


@router.get("/{startup_id}")
def get_startup(startup_id: str, db: Session = Depends(get_db)):
    """
    Get one startup with its persons, content and products.

    Relations are matched on case-insensitive name and only looked up once
    the startup itself exists.
    """
    resolved_id = parse_int(startup_id)
    if (
        resolved_id is None
        or str(resolved_id) != startup_id.strip()
        or not fits_db_int(resolved_id)
    ):
        raise NotFoundError(resource_id=startup_id)

    try:
        startup = fetch_one(db, "SELECT * FROM ai_startups WHERE id = :id", {"id": resolved_id})
        if startup is None:
            raise NotFoundError(resource_id=startup_id)

        name = {"name": startup["name"]}
        persons = fetch_rows(
            db,
            "SELECT * FROM key_persons WHERE LOWER(startup_name) = LOWER(:name) ORDER BY name, id",
            name,
        )
        content = fetch_rows(
            db,
            """
            SELECT * FROM company_content
            WHERE LOWER(startup_name) = LOWER(:name)
            ORDER BY (published_at IS NULL), published_at DESC, id ASC
            """,
            name,
        )
        products = fetch_rows(
            db,
            "SELECT * FROM ai_products WHERE LOWER(company) = LOWER(:name) ORDER BY id",
            name,
        )
    except TrackerError:
        raise
    except Exception as e:
        logger.error(f"Startup detail error: {e}")
        raise DatabaseError("Failed to fetch startup")

    return {
        **startup,
        "tech_stack_list": split_list_field(startup.get("tech_stack")),
        "persons": persons,
        "content": content,
        "products": products,
    }
