"""
RSS 2.0 feed of startups with their latest news.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from startup_tracker.core.cache import TTLCache, build_cache_key, get_cache
from startup_tracker.core.config import get_settings
from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError
from startup_tracker.feeds.rss import render_feed
from startup_tracker.query.aggregation import group_news_by_startup
from startup_tracker.query.execute import fetch_rows
from startup_tracker.query.params import MAX_FEED_LIMIT, ListingParams, is_refresh, listing_params
from startup_tracker.query.resources import FEED_STARTUPS, feed_filters, feed_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rss", tags=["Feed"])

RSS_MEDIA_TYPE = "application/rss+xml; charset=utf-8"
RSS_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=7200"

NEWS_FOR_STARTUPS_SQL = text(
    """
    SELECT startup_name, title, url, summary, published_at
    FROM company_content
    WHERE LOWER(startup_name) IN :names
    ORDER BY (published_at IS NULL), published_at DESC, id ASC
    """
).bindparams(bindparam("names", expanding=True))


def load_news(db: Session, startups: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """All content for the selected startups in one query, grouped by name."""
    names = sorted({s["name"].lower() for s in startups if s.get("name")})
    if not names:
        return {}
    return group_news_by_startup(fetch_rows(db, NEWS_FOR_STARTUPS_SQL, {"names": names}))


def load_feed(db: Session, listing: ListingParams) -> str:
    built = feed_query(listing.filters).build(listing, paged=False)
    startups = fetch_rows(db, built.data_sql, built.params)
    news = load_news(db, startups)
    return render_feed(startups, news, listing.filters, get_settings().site_url)


@router.get("")
def get_feed(
    region: Optional[str] = Query(None, description="Exact region, e.g. US, SG"),
    vertical: Optional[str] = Query(None, description="Vertical, case-insensitive"),
    stage: Optional[str] = Query(None, description="Exact funding stage"),
    min_relevance: Optional[str] = Query(None, description="Minimum relevance score"),
    needs_database: Optional[str] = Query(None, description="'true' to keep only startups needing a database"),
    sort: Optional[str] = Query(None, description="updated_at, discovered_at, relevance_score or name"),
    limit: Optional[str] = Query(None, description="Max items (1-200, default 50)"),
    refresh: Optional[str] = Query(None, description="'true' to bypass the cache"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Startup discovery feed, most recently updated first."""
    raw = {
        "region": region,
        "vertical": vertical,
        "stage": stage,
        "min_relevance": min_relevance,
        "needs_database": needs_database,
        "sort": sort,
        "limit": limit,
    }
    listing = listing_params(
        raw,
        FEED_STARTUPS.sorts,
        FEED_STARTUPS.default_sort,
        FEED_STARTUPS.default_order,
        max_limit=MAX_FEED_LIMIT,
        filters=feed_filters(raw),
    )
    key = build_cache_key(FEED_STARTUPS.name, listing.key_pairs())

    try:
        xml = cache.get_or_compute(
            key, lambda: load_feed(db, listing), refresh=is_refresh(refresh)
        )
    except Exception as e:
        logger.error(f"RSS error: {e}")
        raise DatabaseError("Failed to build feed")

    return Response(
        content=xml,
        media_type=RSS_MEDIA_TYPE,
        headers={"Cache-Control": RSS_CACHE_CONTROL},
    )
