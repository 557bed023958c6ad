"""
Listing resources: SQL shape, sort allow-lists and filter predicates.

Each resource gets a ResourceSchema plus functions that sanitize raw query
values into a filter mapping (in the fixed order used for cache keys) and
turn that mapping into a QueryBuilder.
"""

from typing import Any, Dict, Mapping, Optional

from startup_tracker.query.builder import QueryBuilder, ResourceSchema, builder_for
from startup_tracker.query.params import (
    clean_text,
    like_pattern,
    parse_flag,
    parse_number,
)

RawQuery = Mapping[str, Optional[str]]


# =============================================================================
# Startups
# =============================================================================

# Latest news date per startup, matched on lower-cased name. Startups without
# content get NULL and sort last.
LATEST_NEWS_JOIN = """
LEFT JOIN (
    SELECT LOWER(startup_name) AS startup_key, MAX(published_at) AS latest_news_at
    FROM company_content
    GROUP BY LOWER(startup_name)
) ln ON ln.startup_key = LOWER(s.name)"""

STARTUPS = ResourceSchema(
    name="startups",
    select_sql="SELECT s.*, ln.latest_news_at\nFROM ai_startups s" + LATEST_NEWS_JOIN,
    count_sql="SELECT COUNT(*) AS count FROM ai_startups s",
    sorts={
        "name": "s.name",
        "region": "s.region",
        "vertical": "s.vertical",
        "relevance_score": "s.relevance_score",
        "stage": "s.stage",
        "discovered_at": "s.discovered_at",
        "updated_at": "s.updated_at",
        "latest_news": "ln.latest_news_at",
    },
    default_sort="discovered_at",
    default_order="DESC",
    tiebreak="s.id",
)


def startup_filters(query: RawQuery) -> Dict[str, Any]:
    return {
        "search": clean_text(query.get("search")),
        "region": clean_text(query.get("region")),
        "vertical": clean_text(query.get("vertical")),
        "stage": clean_text(query.get("stage")),
        "needs_database": parse_flag(query.get("needs_database")),
        "min_relevance": parse_number(query.get("min_relevance")),
        "max_relevance": parse_number(query.get("max_relevance")),
    }


def startups_query(filters: Dict[str, Any]) -> QueryBuilder:
    search = filters["search"]
    return builder_for(STARTUPS, [
        (
            search,
            "(LOWER(s.name) LIKE :search OR LOWER(s.product) LIKE :search"
            " OR LOWER(s.country) LIKE :search OR LOWER(s.vertical) LIKE :search)",
            {"search": like_pattern(search)},
        ),
        (filters["region"], "s.region = :region", {"region": filters["region"]}),
        (filters["vertical"], "s.vertical = :vertical", {"vertical": filters["vertical"]}),
        (filters["stage"], "s.stage = :stage", {"stage": filters["stage"]}),
        (filters["needs_database"], "s.needs_database = :needs_database", {"needs_database": True}),
        (
            filters["min_relevance"],
            "s.relevance_score >= :min_relevance",
            {"min_relevance": filters["min_relevance"]},
        ),
        (
            filters["max_relevance"],
            "s.relevance_score <= :max_relevance",
            {"max_relevance": filters["max_relevance"]},
        ),
    ])


# =============================================================================
# People
# =============================================================================

PEOPLE = ResourceSchema(
    name="people",
    select_sql=(
        "SELECT kp.id, kp.name, kp.role, kp.startup_name, kp.linkedin, kp.github,"
        " kp.twitter, kp.email, s.id AS startup_id\n"
        "FROM key_persons kp\n"
        "LEFT JOIN ai_startups s ON LOWER(s.name) = LOWER(kp.startup_name)"
    ),
    count_sql="SELECT COUNT(*) AS count FROM key_persons kp",
    sorts={
        "name": "kp.name",
        "role": "kp.role",
        "company": "kp.startup_name",
    },
    default_sort="name",
    default_order="ASC",
    tiebreak="kp.id",
)


def people_filters(query: RawQuery) -> Dict[str, Any]:
    return {"search": clean_text(query.get("search"))}


def people_query(filters: Dict[str, Any]) -> QueryBuilder:
    search = filters["search"]
    return builder_for(PEOPLE, [
        (
            search,
            "(LOWER(kp.name) LIKE :search OR LOWER(kp.role) LIKE :search"
            " OR LOWER(kp.startup_name) LIKE :search)",
            {"search": like_pattern(search)},
        ),
    ])


# =============================================================================
# RSS feed selection
# =============================================================================

FEED_STARTUPS = ResourceSchema(
    name="rss",
    select_sql="SELECT s.*\nFROM ai_startups s",
    count_sql="SELECT COUNT(*) AS count FROM ai_startups s",
    sorts={
        "updated_at": "s.updated_at",
        "discovered_at": "s.discovered_at",
        "relevance_score": "s.relevance_score",
        "name": "s.name",
    },
    default_sort="updated_at",
    default_order="DESC",
    tiebreak="s.id",
    secondary=(("s.discovered_at", "DESC"),),
)


def feed_filters(query: RawQuery) -> Dict[str, Any]:
    return {
        "region": clean_text(query.get("region")),
        "vertical": clean_text(query.get("vertical")),
        "stage": clean_text(query.get("stage")),
        "min_relevance": parse_number(query.get("min_relevance")),
        "needs_database": parse_flag(query.get("needs_database")),
    }


def feed_query(filters: Dict[str, Any]) -> QueryBuilder:
    return builder_for(FEED_STARTUPS, [
        (filters["region"], "s.region = :region", {"region": filters["region"]}),
        (
            filters["vertical"],
            "LOWER(s.vertical) = LOWER(:vertical)",
            {"vertical": filters["vertical"]},
        ),
        (filters["stage"], "s.stage = :stage", {"stage": filters["stage"]}),
        (
            filters["min_relevance"],
            "s.relevance_score >= :min_relevance",
            {"min_relevance": filters["min_relevance"]},
        ),
        (filters["needs_database"], "s.needs_database = :needs_database", {"needs_database": True}),
    ])


# =============================================================================
# Products
# =============================================================================

PRODUCTS = ResourceSchema(
    name="products",
    select_sql="SELECT p.*\nFROM ai_products p",
    count_sql="SELECT COUNT(*) AS count FROM ai_products p",
    sorts={
        "discovered_at": "p.discovered_at",
        "name": "p.name",
    },
    default_sort="discovered_at",
    default_order="DESC",
    tiebreak="p.id",
)


def products_query(category: str) -> QueryBuilder:
    return builder_for(PRODUCTS, [
        (category, "p.category = :category", {"category": category}),
    ])
