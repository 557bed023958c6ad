"""
Investor (VC) reverse index.

There is no investor table: the index is rebuilt from the comma-separated
ai_startups.investors column and cached per search term.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from startup_tracker.core.cache import TTLCache, build_cache_key, get_cache
from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError
from startup_tracker.query.aggregation import build_vc_index
from startup_tracker.query.execute import fetch_rows
from startup_tracker.query.params import clean_text, is_refresh

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vcs", tags=["Investors"])

INVESTOR_ROWS_SQL = """
    SELECT id, name, investors
    FROM ai_startups
    WHERE investors IS NOT NULL AND investors <> ''
    ORDER BY id
"""


def load_vcs(db: Session, search: str) -> Dict[str, Any]:
    vcs = build_vc_index(fetch_rows(db, INVESTOR_ROWS_SQL), search=search)
    return {"data": vcs, "total": len(vcs)}


@router.get("")
def list_vcs(
    search: Optional[str] = Query(None, description="Substring of the investor name"),
    refresh: Optional[str] = Query(None, description="'true' to bypass the cache"),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    """List investors with the startups they backed, most active first."""
    search = clean_text(search)
    key = build_cache_key("vcs", [("search", search)])

    try:
        return cache.get_or_compute(
            key, lambda: load_vcs(db, search), refresh=is_refresh(refresh)
        )
    except Exception as e:
        logger.error(f"VCs API error: {e}")
        raise DatabaseError("Failed to fetch VCs")
