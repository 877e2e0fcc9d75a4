"""Reddit insider-alert posts: listing fetch and free-text field extraction.

Posts are reported sightings, not filings. A parsed alert never counts as
verified on its own; :mod:`insider_alerts.core.verifier` upgrades it.
"""

from __future__ import annotations

import re

from insider_alerts.core.models import ParsedAlert, RawPost
from insider_alerts.utils.config import DEFAULT_REDDIT_USER_AGENT, REDDIT_BASE
from insider_alerts.utils.http import fetch_json
from insider_alerts.utils.logging import get_logger

log = get_logger("reddit")

LISTING_URL = REDDIT_BASE + "/r/{subreddit}/new.json"

_MARKERS = ("insider", "form 4", "sec filing")
_BUY_WORDS = ("buy", "bought", "purchased", "acquired")
_SELL_WORDS = ("sell", "sold", "disposed")

_TICKER_RE = re.compile(r"\$([A-Z]{1,5})\b", re.IGNORECASE)
_AMOUNT_SUFFIX_RE = re.compile(r"\$(\d+\.?\d*)\s*([MBK])", re.IGNORECASE)
_AMOUNT_PLAIN_RE = re.compile(r"(?:total of\s+)?\$(\d{1,3}(?:,\d{3})+(?:\.\d+)?)", re.IGNORECASE)
_SHARES_RE = re.compile(r"(\d{1,3}(?:,\d{3})*)\s*shares", re.IGNORECASE)
_PRICE_RE = re.compile(r"\$(\d+\.?\d*)\s*per share", re.IGNORECASE)
_TRADE_DATE_RE = re.compile(r"Trade Date[:\s]*(\d{4}-\d{2}-\d{2})", re.IGNORECASE)
_FILING_DATE_RE = re.compile(r"Filing Date[:\s]*(\d{4}-\d{2}-\d{2})", re.IGNORECASE)
_COMPANY_RE = re.compile(r"of\s+([A-Z][A-Za-z\s&.]+(?:Inc|Corp|Ltd|plc|LLC)?)")

# Tried in order, first match wins
_INSIDER_PATTERNS = (
    re.compile(r"(?:by|from)\s+([A-Z][a-z]+(?:\s+[A-Z]\.?)?\s+[A-Z][a-z]+)"),
    re.compile(r"([A-Z][a-z]+\s+[A-Z][a-z]+),?\s+(?:CEO|CFO|Director|Officer)", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+,?\s+[A-Z][a-z]+)\s+of\s+"),
)

RAW_TEXT_LIMIT = 500


# -------------------------------------------------------------------
# Listing fetch
# -------------------------------------------------------------------

def fetch_subreddit_page(
        subreddit: str,
        limit: int = 25,
        after: str | None = None,
        user_agent: str = DEFAULT_REDDIT_USER_AGENT,
        timeout: float = 15,
) -> tuple[list[RawPost], str | None]:
    """Fetch one page of a subreddit's newest posts.

    Returns
    -------
    (posts, after)
        ``after`` is the cursor for the next page, or None at the end.

    Raises
    ------
    requests.HTTPError
        On non-2xx responses. No retry at this layer.
    """
    params: dict[str, str | int] = {"limit": limit}
    if after:
        params["after"] = after

    data = fetch_json(
        LISTING_URL.format(subreddit=subreddit),
        user_agent=user_agent,
        params=params,
        timeout=timeout,
    )
    listing = (data or {}).get("data", {}) or {}
    posts = [RawPost.from_listing_child(c) for c in listing.get("children", []) or []]
    log.info("Reddit r/%s: %d posts", subreddit, len(posts))
    return posts, listing.get("after")


def fetch_subreddit_posts(
        subreddit: str,
        limit: int = 25,
        after: str | None = None,
        user_agent: str = DEFAULT_REDDIT_USER_AGENT,
        timeout: float = 15,
) -> list[RawPost]:
    posts, _ = fetch_subreddit_page(subreddit, limit, after, user_agent=user_agent, timeout=timeout)
    return posts


# -------------------------------------------------------------------
# Post parsing
# -------------------------------------------------------------------

def classify_text(text: str) -> str | None:
    """BUY/SELL from keywords. Buy words are checked first, so they win ties."""
    lower = text.lower()
    if any(w in lower for w in _BUY_WORDS):
        return "BUY"
    if any(w in lower for w in _SELL_WORDS):
        return "SELL"
    return None


def _first_group(pattern: re.Pattern, text: str) -> str | None:
    m = pattern.search(text)
    return m.group(1) if m else None


def extract_amount(text: str) -> str | None:
    m = _AMOUNT_SUFFIX_RE.search(text) or _AMOUNT_PLAIN_RE.search(text)
    return m.group(0) if m else None


def extract_insider_name(text: str) -> str | None:
    for pattern in _INSIDER_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(1).strip()
    return None


def parse_insider_alert(post: RawPost) -> ParsedAlert | None:
    """Extract an insider alert from a Reddit post, or None if it isn't one."""
    text = post.text
    lower = text.lower()

    if not any(marker in lower for marker in _MARKERS):
        return None

    ticker = _first_group(_TICKER_RE, text)
    if not ticker:
        return None

    txn_type = classify_text(text)
    if txn_type is None:
        return None

    shares_raw = _first_group(_SHARES_RE, text)
    price_raw = _first_group(_PRICE_RE, text)
    company = _first_group(_COMPANY_RE, text)

    return ParsedAlert(
        reddit_id=post.id,
        ticker=ticker.upper(),
        transaction_type=txn_type,  # type: ignore[arg-type]
        amount=extract_amount(text),
        shares=int(shares_raw.replace(",", "")) if shares_raw else None,
        price_per_share=float(price_raw) if price_raw else None,
        trade_date=_first_group(_TRADE_DATE_RE, text),
        filing_date=_first_group(_FILING_DATE_RE, text),
        insider_name=extract_insider_name(text),
        company_name=company.strip() if company else None,
        reddit_url=post.url,
        reddit_score=post.score,
        posted_at=post.posted_at,
        raw_text=text[:RAW_TEXT_LIMIT],
    )


def parse_posts(posts: list[RawPost]) -> list[ParsedAlert]:
    alerts = []
    for post in posts:
        alert = parse_insider_alert(post)
        if alert is None:
            log.debug("Post %s is not an insider alert", post.id)
            continue
        alerts.append(alert)
    return alerts
