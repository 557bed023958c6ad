"""
Query-string sanitizing for listing endpoints.

Read-side input is never an error: every malformed value degrades to a
documented default so UI-driven requests always get a response. Nothing here
touches SQL; sort values are resolved through an allow-list to trusted column
expressions and free text only ever becomes a bound parameter.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

ORDERS = ("ASC", "DESC")

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
MAX_FEED_LIMIT = 200

# Largest value a signed 64-bit INTEGER / BIGINT column or bind accepts
MAX_DB_INT = 2 ** 63 - 1
# Keeps (page - 1) * limit inside MAX_DB_INT for every allowed limit
MAX_PAGE = MAX_DB_INT // MAX_FEED_LIMIT

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(raw: Optional[str]) -> Optional[int]:
    """
    Parse the leading integer of a string.

    "12" -> 12, "12abc" -> 12, " 7" -> 7, "abc" -> None, None -> None

    Values beyond the 64-bit range saturate just past it, so callers can
    clamp or reject them without converting arbitrarily long digit strings.
    """
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    if not match:
        return None
    text = match.group(1)
    digits = text.lstrip("+-").lstrip("0")
    if len(digits) > len(str(MAX_DB_INT)):
        return -MAX_DB_INT - 2 if text.startswith("-") else MAX_DB_INT + 1
    return int(text)


def parse_page(raw: Optional[str]) -> int:
    """Page number in [1, MAX_PAGE]. Non-numeric input means page 1."""
    value = parse_int(raw)
    if value is None:
        return 1
    return min(MAX_PAGE, max(1, value))


def fits_db_int(value: int) -> bool:
    """True when value can be bound against a 64-bit integer column."""
    return -MAX_DB_INT - 1 <= value <= MAX_DB_INT


def parse_limit(
    raw: Optional[str],
    default: int = DEFAULT_LIMIT,
    maximum: int = MAX_LIMIT,
) -> int:
    """Page size clamped to [1, maximum]. Non-numeric input means default."""
    value = parse_int(raw)
    if value is None:
        value = default
    return min(maximum, max(1, value))


def parse_number(raw: Optional[str]) -> Optional[float]:
    """
    Parse a numeric threshold.

    Returns None (no filter) for absent, empty or non-numeric input,
    including "nan" and "inf".
    """
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_flag(raw: Optional[str]) -> bool:
    """Only the literal "true" turns a flag filter on."""
    return raw == "true"


def is_refresh(raw: Optional[str]) -> bool:
    return raw == "true"


def clean_text(raw: Optional[str]) -> str:
    """Absent text filters become the empty string (filter omitted)."""
    return raw or ""


def like_pattern(raw: str) -> str:
    """Lower-cased substring pattern for a LIKE predicate."""
    return f"%{raw.lower()}%"


def resolve_sort(
    raw: Optional[str],
    allowed: Mapping[str, str],
    default: str,
) -> Tuple[str, str]:
    """
    Map a client sort key to a trusted column expression.

    Returns:
        (effective key, column expression). Unknown keys fall back to the
        default key; the raw value is never returned as an expression.
    """
    key = raw if raw in allowed else default
    return key, allowed[key]


def resolve_order(raw: Optional[str], default: str) -> str:
    """Exactly "ASC" or "DESC"; anything else is the resource default."""
    if raw in ORDERS:
        return raw
    return default


@dataclass
class ListingParams:
    """
    Sanitized paging, sorting and filter descriptor for one request.

    filters keeps insertion order; that order is part of the cache key, so
    each handler must add filters in a fixed order.
    """
    page: int
    limit: int
    sort: str
    sort_expr: str
    order: str
    filters: Dict[str, Any] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def key_pairs(self) -> List[Tuple[str, Any]]:
        """Parameters in cache-key order: filters first, then paging."""
        pairs: List[Tuple[str, Any]] = []
        for name, value in self.filters.items():
            if value is True:
                value = "true"
            elif value is False:
                value = None
            pairs.append((name, value))
        pairs.extend([
            ("sort", self.sort),
            ("order", self.order),
            ("page", self.page),
            ("limit", self.limit),
        ])
        return pairs


def listing_params(
    query: Mapping[str, Optional[str]],
    allowed_sorts: Mapping[str, str],
    default_sort: str,
    default_order: str,
    max_limit: int = MAX_LIMIT,
    filters: Optional[Dict[str, Any]] = None,
) -> ListingParams:
    """
    Build a ListingParams from raw query values.

    Args:
        query: Raw values keyed by parameter name (page, limit, sort, order)
        allowed_sorts: Allow-list of sort key -> column expression
        default_sort: Key used when the requested sort is not allowed
        default_order: "ASC" or "DESC"
        max_limit: Upper clamp for limit
        filters: Already-sanitized filter values, in a fixed order
    """
    sort, sort_expr = resolve_sort(query.get("sort"), allowed_sorts, default_sort)
    return ListingParams(
        page=parse_page(query.get("page")),
        limit=parse_limit(query.get("limit"), maximum=max_limit),
        sort=sort,
        sort_expr=sort_expr,
        order=resolve_order(query.get("order"), default_order),
        filters=dict(filters or {}),
    )
