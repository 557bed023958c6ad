"""
Thin helpers for running parameterized text() statements on a Session.

Rows come back as plain dicts so they can be cached and JSON-encoded.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import TextClause

from startup_tracker.query.builder import BuiltQuery

Statement = Union[str, TextClause]


def _as_clause(sql: Statement) -> TextClause:
    return sql if isinstance(sql, TextClause) else text(sql)


def fetch_rows(db: Session, sql: Statement, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    result = db.execute(_as_clause(sql), params or {})
    return [dict(row) for row in result.mappings().all()]


def fetch_one(db: Session, sql: Statement, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    row = db.execute(_as_clause(sql), params or {}).mappings().first()
    return dict(row) if row is not None else None


def fetch_scalar(db: Session, sql: Statement, params: Optional[Dict[str, Any]] = None) -> Any:
    return db.execute(_as_clause(sql), params or {}).scalar()


def run_listing(db: Session, built: BuiltQuery) -> Tuple[int, List[Dict[str, Any]]]:
    """Execute the count statement, then the data statement."""
    total = fetch_scalar(db, built.count_sql, built.count_params) or 0
    rows = fetch_rows(db, built.data_sql, built.params)
    return int(total), rows
