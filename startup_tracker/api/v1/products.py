"""
Product API endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError
from startup_tracker.query.execute import fetch_rows
from startup_tracker.query.params import clean_text
from startup_tracker.query.resources import PRODUCTS, products_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("")
def list_products(
    category: Optional[str] = Query(None, description="Exact product category"),
    db: Session = Depends(get_db),
):
    """
    List products, newest first, with the full category list for filtering.
    """
    builder = products_query(clean_text(category))
    order_by = builder.order_sql(PRODUCTS.sorts[PRODUCTS.default_sort], PRODUCTS.default_order)
    where = builder.where_sql

    try:
        rows = fetch_rows(db, f"{PRODUCTS.select_sql} {where} {order_by}", builder.params)
        categories = fetch_rows(
            db,
            "SELECT DISTINCT category FROM ai_products WHERE category IS NOT NULL ORDER BY category",
        )
    except Exception as e:
        logger.error(f"Products error: {e}")
        raise DatabaseError("Failed to fetch products")

    return {"data": rows, "categories": [row["category"] for row in categories]}
