"""
Dashboard statistics.

Counts, group-bys and top lists over ai_startups, computed in one pass of
small queries and cached as a single payload.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.orm import Session

from startup_tracker.core.cache import TTLCache, build_cache_key, get_cache
from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError
from startup_tracker.query.aggregation import rank_top_funded
from startup_tracker.query.execute import fetch_rows, fetch_scalar
from startup_tracker.query.params import is_refresh

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["Stats"])

NEW_WINDOW_DAYS = 7
RECENT_LIMIT = 10
TOP_FUNDED_LIMIT = 10

NEW_SINCE_SQL = text(
    "SELECT COUNT(*) AS count FROM ai_startups WHERE discovered_at >= :since"
).bindparams(bindparam("since", type_=DateTime()))

# Rows without usable funding text never reach the ranking
FUNDED_ROWS_SQL = """
    SELECT id, name, region, vertical, stage, funding_amount
    FROM ai_startups
    WHERE funding_amount IS NOT NULL
      AND TRIM(funding_amount) <> ''
      AND UPPER(TRIM(funding_amount)) <> 'N/A'
    ORDER BY id
"""


def round_half_up(value: Optional[float], digits: int = 1) -> float:
    if value is None:
        return 0.0
    factor = 10 ** digits
    return math.floor(float(value) * factor + 0.5) / factor


def group_counts(db: Session, column: str, skip_null: bool) -> list:
    # column is one of the literals passed below, never client input
    where = f"WHERE {column} IS NOT NULL" if skip_null else ""
    return fetch_rows(
        db,
        f"""
        SELECT {column}, COUNT(*) AS count
        FROM ai_startups
        {where}
        GROUP BY {column}
        ORDER BY count DESC, {column}
        """,
    )


def load_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    total = fetch_scalar(db, "SELECT COUNT(*) AS count FROM ai_startups") or 0
    avg = fetch_scalar(db, "SELECT AVG(relevance_score) AS avg FROM ai_startups")
    new_this_week = fetch_scalar(db, NEW_SINCE_SQL, {"since": now - timedelta(days=NEW_WINDOW_DAYS)}) or 0
    recent = fetch_rows(
        db,
        """
        SELECT id, name, region, vertical, relevance_score, discovered_at
        FROM ai_startups
        ORDER BY (discovered_at IS NULL), discovered_at DESC, id ASC
        LIMIT :limit
        """,
        {"limit": RECENT_LIMIT},
    )

    return {
        "totalStartups": int(total),
        "regions": group_counts(db, "region", skip_null=False),
        "avgRelevance": round_half_up(avg),
        "newThisWeek": int(new_this_week),
        "verticals": group_counts(db, "vertical", skip_null=True),
        "stages": group_counts(db, "stage", skip_null=True),
        "recent": recent,
        "topFunded": rank_top_funded(fetch_rows(db, FUNDED_ROWS_SQL), limit=TOP_FUNDED_LIMIT),
    }


@router.get("")
def get_stats(
    refresh: Optional[str] = Query(None, description="'true' to bypass the cache"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """Aggregate dashboard metrics."""
    key = build_cache_key("stats", [])

    try:
        return cache.get_or_compute(key, lambda: load_stats(db), refresh=is_refresh(refresh))
    except Exception as e:
        logger.error(f"Stats error: {e}")
        raise DatabaseError("Failed to fetch stats")
