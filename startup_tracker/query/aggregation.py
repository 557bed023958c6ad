"""
Derived shapes built from flat rows at read time.

- build_vc_index: investor name -> companies, from the comma-separated
  ai_startups.investors column
- group_news_by_startup / news_for: per-startup news lists for the feed
- rank_top_funded: numeric ordering of the free-text funding_amount column

Missing relations are always empty lists, never None.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

Row = Mapping[str, Any]

# Values that mean "no funding data"
FUNDING_PLACEHOLDERS = {"", "n/a"}

_NON_NUMERIC = re.compile(r"[^0-9.]")


def split_list_field(value: Optional[str]) -> List[str]:
    """Split a comma-separated text column into trimmed, non-empty items."""
    if not value:
        return []
    return [piece.strip() for piece in value.split(",") if piece.strip()]


def build_vc_index(rows: Iterable[Row], search: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Reverse-index startups by investor.

    Investors are grouped case-insensitively on the trimmed name; the display
    name is the first spelling seen. Entries are sorted by company count,
    descending, ties keeping first-seen order. The search filter is a
    case-insensitive substring match on the investor name, applied after
    grouping.

    Args:
        rows: Startup rows with id, name and investors
        search: Optional investor-name filter

    Returns:
        [{"name": str, "count": int, "companies": [{"id", "name"}]}]
    """
    index: Dict[str, Dict[str, Any]] = {}

    for row in rows:
        for investor in split_list_field(row.get("investors")):
            entry = index.setdefault(investor.lower(), {"name": investor, "companies": []})
            entry["companies"].append({"id": row["id"], "name": row["name"]})

    vcs = [
        {"name": entry["name"], "count": len(entry["companies"]), "companies": entry["companies"]}
        for entry in index.values()
    ]

    if search:
        needle = search.lower()
        vcs = [vc for vc in vcs if needle in vc["name"].lower()]

    vcs.sort(key=lambda vc: vc["count"], reverse=True)
    return vcs


def group_news_by_startup(rows: Iterable[Row]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Group content rows by lower-cased startup name.

    Rows are expected newest first; each group keeps that order, with
    undated rows after dated ones.
    """
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        name = row.get("startup_name")
        if not name:
            continue
        grouped.setdefault(name.lower(), []).append(dict(row))

    for items in grouped.values():
        items.sort(key=lambda item: item.get("published_at") is None)
    return grouped


def news_for(grouped: Mapping[str, List[Dict[str, Any]]], name: Optional[str], limit: int = 3) -> List[Dict[str, Any]]:
    """Most recent news for a startup; empty when it has none."""
    if not name:
        return []
    return list(grouped.get(name.lower(), []))[:limit]


def parse_funding_amount(value: Optional[str]) -> Optional[Decimal]:
    """
    Numeric value of a free-text funding amount, for ordering only.

    "$12,500,000" -> 12500000, "+$3.5M" -> 3.5. Blank and "N/A" return None.
    Anything that is still not a number after stripping non-numeric
    characters counts as 0.
    """
    if value is None or value.strip().lower() in FUNDING_PLACEHOLDERS:
        return None
    digits = _NON_NUMERIC.sub("", value)
    try:
        return Decimal(digits)
    except InvalidOperation:
        return Decimal(0)


def rank_top_funded(rows: Iterable[Row], limit: int = 10) -> List[Dict[str, Any]]:
    """
    Rows ordered by parsed funding amount, highest first.

    Rows without funding data are excluded, not sorted last. Each returned
    row gets a float "funding_value".
    """
    ranked = []
    for row in rows:
        amount = parse_funding_amount(row.get("funding_amount"))
        if amount is None:
            continue
        ranked.append((amount, dict(row)))

    ranked.sort(key=lambda pair: pair[0], reverse=True)

    top = []
    for amount, row in ranked[:limit]:
        row["funding_value"] = float(amount)
        top.append(row)
    return top
