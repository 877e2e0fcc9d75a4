"""SEC EDGAR feed, filing archive and company lookup endpoints.

Compliance: every request carries the configured SEC User-Agent and goes
through the shared 10 req/s limiter, as required by
https://www.sec.gov/os/accessing-edgar-data.
"""

from __future__ import annotations

import html
import re
from datetime import timedelta
from typing import Any

from bs4 import BeautifulSoup

from insider_alerts.core.models import RawFiling
from insider_alerts.utils.caching import TTLCache
from insider_alerts.utils.config import SEC_DATA_BASE, SEC_WWW_BASE, TICKER_MAP_TTL
from insider_alerts.utils.http import fetch_json, fetch_url
from insider_alerts.utils.logging import get_logger

log = get_logger("edgar")

CURRENT_FORM4_URL = (
    SEC_WWW_BASE
    + "/cgi-bin/browse-edgar?action=getcurrent&type=4&owner=only&count={count}&output=atom"
)
COMPANY_TICKERS_URL = SEC_WWW_BASE + "/files/company_tickers.json"
SUBMISSIONS_URL = SEC_DATA_BASE + "/submissions/CIK{cik}.json"
ARCHIVE_DIR_URL = SEC_WWW_BASE + "/Archives/edgar/data/{cik}/{accession_nodash}"

_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.DOTALL | re.IGNORECASE)
_LINK_RE = re.compile(r"<link\b[^>]*?\bhref=\"([^\"]+)\"", re.IGNORECASE)
_UPDATED_RE = re.compile(r"<updated[^>]*>(.*?)</updated>", re.DOTALL | re.IGNORECASE)
_SUMMARY_RE = re.compile(r"<summary[^>]*>(.*?)</summary>", re.DOTALL | re.IGNORECASE)
_FILED_RE = re.compile(r"Filed:\s*(\d{4}-\d{2}-\d{2})")


# -------------------------------------------------------------------
# Current filings feed
# -------------------------------------------------------------------

def _tag_text(pattern: re.Pattern, block: str) -> str:
    m = pattern.search(block)
    return html.unescape(m.group(1).strip()) if m else ""


def parse_atom_entries(xml_text: str) -> list[RawFiling]:
    """Split an Atom document into RawFiling records.

    Scans ``<entry>`` ... ``</entry>`` boundaries rather than building a
    full XML tree, so a single malformed entry cannot sink the whole feed.
    Entries without a title or link are skipped.
    """
    entries: list[RawFiling] = []
    pos = 0
    while True:
        start = xml_text.find("<entry>", pos)
        if start == -1:
            break
        end = xml_text.find("</entry>", start)
        if end == -1:
            break
        block = xml_text[start + len("<entry>"):end]
        pos = end + len("</entry>")

        title = _tag_text(_TITLE_RE, block)
        link_match = _LINK_RE.search(block)
        link = html.unescape(link_match.group(1)) if link_match else ""
        if not title or not link:
            log.debug("Skipping Atom entry without title/link")
            continue

        entries.append(RawFiling(
            title=title,
            link=link,
            updated=_tag_text(_UPDATED_RE, block),
            summary=_tag_text(_SUMMARY_RE, block),
        ))
    return entries


def fetch_recent_form4_entries(user_agent: str, count: int = 100, timeout: float = 15) -> list[RawFiling]:
    """Fetch the latest Form 4 filings from the SEC current-filings feed.

    Raises
    ------
    ConfigError
        No SEC User-Agent configured.
    requests.RequestException
        On network failure or non-2xx response.
    """
    xml_text = fetch_url(
        CURRENT_FORM4_URL.format(count=count),
        user_agent=user_agent,
        headers={"Accept": "application/atom+xml,application/xml;q=0.9,*/*;q=0.8"},
        timeout=timeout,
        sec=True,
    )
    entries = parse_atom_entries(xml_text)
    log.info("SEC feed: %d Form 4 entries", len(entries))
    return entries


def filing_date_from_entry(entry: RawFiling) -> str | None:
    """Filing date (YYYY-MM-DD) from the summary's ``Filed:`` field or ``<updated>``."""
    if entry.summary:
        # summary is HTML (<b>Filed:</b> 2026-02-05 <b>AccNo:</b> ...)
        text = BeautifulSoup(entry.summary, "lxml").get_text(" ", strip=True)
        m = _FILED_RE.search(text)
        if m:
            return m.group(1)
    if len(entry.updated) >= 10:
        return entry.updated[:10]
    return None


# -------------------------------------------------------------------
# Filing archive
# -------------------------------------------------------------------

def archive_dir_url(cik: str, accession_number: str) -> str:
    return ARCHIVE_DIR_URL.format(
        cik=str(int(cik)),  # archive paths drop the zero padding
        accession_nodash=accession_number.replace("-", ""),
    )


def filing_index_url(cik: str, accession_number: str) -> str:
    """Human-readable index page for one filing."""
    return f"{archive_dir_url(cik, accession_number)}/{accession_number}-index.htm"


def fetch_filing_index(cik: str, accession_number: str, user_agent: str, timeout: float = 15) -> list[str]:
    """Return the file names listed in a filing's ``index.json`` directory."""
    data = fetch_json(
        f"{archive_dir_url(cik, accession_number)}/index.json",
        user_agent=user_agent,
        timeout=timeout,
        sec=True,
    )
    items = ((data or {}).get("directory", {}) or {}).get("item", []) or []
    return [str(item.get("name", "")) for item in items if item.get("name")]


def fetch_filing_document(
        cik: str, accession_number: str, name: str, user_agent: str, timeout: float = 15,
) -> str:
    return fetch_url(
        f"{archive_dir_url(cik, accession_number)}/{name}",
        user_agent=user_agent,
        timeout=timeout,
        sec=True,
    )


# -------------------------------------------------------------------
# Company lookups
# -------------------------------------------------------------------

def fetch_company_tickers(user_agent: str, timeout: float = 30) -> dict[str, dict[str, Any]]:
    """Fetch SEC's company_tickers.json and key it by uppercase ticker.

    Raw format: ``{"0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."}, ...}``
    """
    raw = fetch_json(COMPANY_TICKERS_URL, user_agent=user_agent, timeout=timeout, sec=True)
    ticker_map: dict[str, dict[str, Any]] = {}
    for entry in (raw or {}).values():
        t = str(entry.get("ticker", "")).upper().strip()
        # first listing wins for share classes that repeat a ticker
        if t and t not in ticker_map:
            ticker_map[t] = entry
    log.info("Loaded %d tickers from SEC", len(ticker_map))
    return ticker_map


class TickerMap:
    """Process-wide ticker → (CIK, company) lookup backed by a TTL cache.

    The table is loaded once and reused until it expires or
    :meth:`refresh` is called.
    """

    _KEY = "company_tickers"

    def __init__(self, user_agent: str, ttl: int = TICKER_MAP_TTL, cache: TTLCache | None = None):
        self.user_agent = user_agent
        self.ttl = timedelta(seconds=ttl)
        self._cache = cache or TTLCache()

    def _table(self) -> dict[str, dict[str, Any]]:
        return self._cache.get_or_load(
            self._KEY, lambda: fetch_company_tickers(self.user_agent), self.ttl,
        )

    def refresh(self) -> None:
        self._cache.invalidate(self._KEY)

    def lookup(self, ticker: str) -> tuple[str | None, str | None]:
        """Return (cik10, company_title) or (None, None)."""
        entry = self._table().get(ticker.upper().strip())
        if not entry:
            return None, None
        cik_num = entry.get("cik_str")
        title = entry.get("title")
        if cik_num is None:
            return None, title
        return str(cik_num).zfill(10), title


def fetch_submissions(cik: str, user_agent: str, timeout: float = 15) -> dict[str, Any]:
    """Fetch a company's submissions document (filing history)."""
    return fetch_json(
        SUBMISSIONS_URL.format(cik=cik.zfill(10)),
        user_agent=user_agent,
        timeout=timeout,
        sec=True,
    ) or {}
