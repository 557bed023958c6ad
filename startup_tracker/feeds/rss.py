"""
RSS 2.0 rendering for the startup discovery feed.

Items are written as text rather than through an XML library because every
text node must escape all five reserved characters (& < > " '), including
the quotes that ElementTree leaves alone in text content.

Each item description is product text, a metadata line, and (when the
startup has news) an HTML list of the latest headlines, all escaped once so
a standard XML parser gives back the original strings.
"""

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence
from xml.sax.saxutils import escape

from startup_tracker.query.aggregation import news_for

logger = logging.getLogger(__name__)

FEED_TITLE = "AI Startup Tracker"
FEED_TTL_MINUTES = 360
NEWS_PER_ITEM = 3

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: Any) -> str:
    """Escape & < > " ' for XML text and attribute content."""
    if value is None:
        return ""
    return escape(str(value), _QUOTE_ENTITIES)


def to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a DB timestamp (datetime or ISO string) to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            logger.debug(f"Unparseable timestamp {value!r}")
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_rfc1123(value: Any, fallback: Optional[datetime] = None) -> str:
    """RFC-1123 date in GMT, e.g. "Mon, 19 Oct 2026 08:30:00 GMT"."""
    dt = to_datetime(value) or fallback or datetime.now(timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def describe_filters(filters: Mapping[str, Any]) -> str:
    """Human-readable summary of the active feed filters, or "all"."""
    parts = []
    if filters.get("region"):
        parts.append(f"region={filters['region']}")
    if filters.get("vertical"):
        parts.append(f"vertical={filters['vertical']}")
    if filters.get("stage"):
        parts.append(f"stage={filters['stage']}")
    if filters.get("min_relevance") is not None:
        parts.append(f"relevance>={_format_number(filters['min_relevance'])}")
    if filters.get("needs_database"):
        parts.append("needs_database")
    return ", ".join(parts) or "all"


def item_link(startup: Mapping[str, Any], site_url: str) -> str:
    website = startup.get("website")
    if website:
        return website if website.startswith("http") else f"https://{website}"
    return f"{site_url}/startups/{startup['id']}"


def item_metadata(startup: Mapping[str, Any]) -> str:
    relevance = startup.get("relevance_score")
    parts = [
        startup.get("region") and f"Region: {startup['region']}",
        startup.get("vertical") and f"Vertical: {startup['vertical']}",
        startup.get("stage") and f"Stage: {startup['stage']}",
        startup.get("funding_amount") and f"Funding: {startup['funding_amount']}",
        startup.get("investors") and f"Investors: {startup['investors']}",
        f"Relevance: {relevance if relevance is not None else 0}/10",
        "Needs Database: Yes" if startup.get("needs_database") else None,
        startup.get("source") and f"Source: {startup['source']}",
    ]
    return " | ".join(part for part in parts if part)


def news_html(news: Sequence[Mapping[str, Any]]) -> str:
    """Unescaped HTML list of headlines; empty when there is no news."""
    if not news:
        return ""
    entries = "".join(
        f'<li><a href="{item.get("url") or ""}">{item.get("title") or ""}</a>'
        f' — {item.get("summary") or ""}</li>'
        for item in news
    )
    return f"\n<h3>Latest News</h3><ul>{entries}</ul>"


def render_item(
    startup: Mapping[str, Any],
    news: Sequence[Mapping[str, Any]],
    site_url: str,
    now: datetime,
) -> str:
    description = f"{startup.get('product') or ''}\n\n{item_metadata(startup)}{news_html(news)}"
    pub_date = format_rfc1123(
        startup.get("updated_at") or startup.get("discovered_at"), fallback=now
    )
    permalink = f"{site_url}/startups/{startup['id']}"

    return (
        "    <item>\n"
        f"      <title>{escape_xml(startup.get('name'))}</title>\n"
        f"      <link>{escape_xml(item_link(startup, site_url))}</link>\n"
        f'      <guid isPermaLink="false">{escape_xml(permalink)}</guid>\n'
        f"      <pubDate>{pub_date}</pubDate>\n"
        f"      <category>{escape_xml(startup.get('vertical') or 'AI')}</category>\n"
        f"      <description>{escape_xml(description)}</description>\n"
        f'      <source url="{escape_xml(site_url + "/api/rss")}">{FEED_TITLE}</source>\n'
        "    </item>"
    )


def feed_docs(site_url: str) -> str:
    return f"""
Subscribe to this RSS feed for regular updates to the AI startup list.
Each item includes: company URL, region, vertical, stage, funding, investors, relevance score, and latest news.

Query parameters for filtering:
- region: country code (US, CN, SG, IN, KR, JP, etc.)
- vertical: AI vertical (agents, llm, coding, healthcare, etc.)
- stage: funding stage (Seed, Series A, Series B, Growth, Public, etc.)
- min_relevance: minimum relevance score 1-10
- needs_database: true/false
- sort: updated_at, discovered_at, relevance_score or name
- limit: max items (default 50, max 200)

Examples:
- {site_url}/api/rss?region=SG
- {site_url}/api/rss?min_relevance=8
- {site_url}/api/rss?needs_database=true&stage=Series%20A
"""


def render_feed(
    startups: Sequence[Mapping[str, Any]],
    news_by_startup: Mapping[str, List[Dict[str, Any]]],
    filters: Mapping[str, Any],
    site_url: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Render the complete RSS document.

    Args:
        startups: Selected startup rows, in feed order
        news_by_startup: Output of group_news_by_startup for those startups
        filters: Sanitized feed filters (for the channel title)
        site_url: Public dashboard URL, without trailing slash
        now: Build time (defaults to the current time)
    """
    now = now or datetime.now(timezone.utc)
    built = format_rfc1123(now)
    filter_desc = escape_xml(describe_filters(filters))
    items = "\n".join(
        render_item(s, news_for(news_by_startup, s.get("name"), NEWS_PER_ITEM), site_url, now)
        for s in startups
    )
    site = escape_xml(site_url)

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>{FEED_TITLE} - {filter_desc}</title>
    <link>{site}</link>
    <description>AI startups discovery feed. Filter: {filter_desc}. Updated every 6 hours.</description>
    <language>en-us</language>
    <lastBuildDate>{built}</lastBuildDate>
    <atom:link href="{site}/api/rss" rel="self" type="application/rss+xml"/>
    <ttl>{FEED_TTL_MINUTES}</ttl>
    <docs>{escape_xml(feed_docs(site_url))}</docs>
{items}
  </channel>
</rss>"""
