"""Verify a claimed insider trade against the issuer's SEC Form 4 history."""

from __future__ import annotations

import threading
from typing import Any

from dateutil.parser import parse as dtparse

from insider_alerts.core.edgar import TickerMap, archive_dir_url, fetch_submissions
from insider_alerts.core.models import FilingRef, VerificationResult
from insider_alerts.utils.logging import get_logger

log = get_logger("verifier")

MAX_FORM4_FILINGS = 10
MAX_CANDIDATES = 5

_maps: dict[str, TickerMap] = {}
_maps_lock = threading.Lock()


def get_ticker_map(user_agent: str) -> TickerMap:
    """Process-wide TickerMap, one per User-Agent."""
    with _maps_lock:
        if user_agent not in _maps:
            _maps[user_agent] = TickerMap(user_agent)
        return _maps[user_agent]


def normalize_date(value: str | None) -> str | None:
    """Reduce a user-supplied date to ``YYYY-MM-DD``; None if unparseable."""
    if not value or not str(value).strip():
        return None
    text = str(value).strip()
    if len(text) >= 10 and text[4] == "-" and text[7] == "-":
        return text[:10]
    try:
        return dtparse(text).date().isoformat()
    except (ValueError, OverflowError):
        return None


def form4_filings(submissions: dict[str, Any], cik: str, limit: int = MAX_FORM4_FILINGS) -> list[FilingRef]:
    """Most recent Form 4 filings (form exactly "4") from a submissions document."""
    recent = (submissions.get("filings", {}) or {}).get("recent", {}) or {}
    forms = recent.get("form", []) or []
    accessions = recent.get("accessionNumber", []) or []
    filing_dates = recent.get("filingDate", []) or []
    report_dates = recent.get("reportDate", []) or []
    primary_docs = recent.get("primaryDocument", []) or []

    refs: list[FilingRef] = []
    for i in range(min(len(forms), len(accessions), len(filing_dates))):
        if str(forms[i]) != "4":
            continue
        acc = str(accessions[i])
        doc = primary_docs[i] if i < len(primary_docs) and primary_docs[i] else f"{acc}-index.htm"
        report = report_dates[i] if i < len(report_dates) else None
        refs.append(FilingRef(
            accession_number=acc,
            date=str(filing_dates[i])[:10],
            report_date=str(report)[:10] if report else None,
            url=f"{archive_dir_url(cik, acc)}/{doc}",
        ))
        if len(refs) >= limit:
            break
    return refs


def match_filing(filings: list[FilingRef], trade_date: str) -> FilingRef | None:
    """Exact date match, preferring ``report_date`` over the filing date."""
    for f in filings:
        if f.report_date and f.report_date[:10] == trade_date:
            return f
    for f in filings:
        if f.date[:10] == trade_date:
            return f
    return None


class Verifier:
    """Resolve ticker → CIK → Form 4 history and grade a claimed trade.

    Parameters
    ----------
    user_agent : str
        SEC-compliant User-Agent.
    ticker_map : TickerMap or None
        Shared lookup table; defaults to the process-wide one.
    """

    def __init__(self, user_agent: str, ticker_map: TickerMap | None = None, timeout: float = 15):
        self.user_agent = user_agent
        self.ticker_map = ticker_map or get_ticker_map(user_agent)
        self.timeout = timeout

    def verify(
            self,
            ticker: str,
            trade_date: str | None = None,
            amount: str | None = None,
            insider_name: str | None = None,
            *,
            timeout: float | None = None,
    ) -> VerificationResult:
        """Check a claimed trade.

        ``timeout`` overrides the instance timeout for this call's SEC request.

        Returns
        -------
        VerificationResult
            ``verified`` is True on an exact date match, "partial" when
            Form 4 filings exist without a match, False otherwise.

        Raises
        ------
        requests.RequestException
            SEC lookups failed; nothing can be said about the claim.
        """
        symbol = ticker.upper().strip()
        cik, company = self.ticker_map.lookup(symbol)
        if not cik:
            log.info("Ticker %s not in SEC company list", symbol)
            return VerificationResult(
                verified=False,
                message=f"Ticker {symbol} not found in SEC company list",
                ticker=symbol,
                found=False,
            )

        submissions = fetch_submissions(
            cik, self.user_agent, timeout=self.timeout if timeout is None else timeout,
        )
        company = submissions.get("name") or company
        filings = form4_filings(submissions, cik)
        candidates = filings[:MAX_CANDIDATES]

        if not filings:
            return VerificationResult(
                verified=False,
                message=f"No Form 4 filings found for {symbol}",
                ticker=symbol,
                company_name=company,
                cik=cik,
            )

        wanted = normalize_date(trade_date)
        if wanted:
            matched = match_filing(filings, wanted)
            if matched:
                return VerificationResult(
                    verified=True,
                    message=f"Verified: Form 4 filed {matched.date} matches trade date {wanted}",
                    ticker=symbol,
                    company_name=company,
                    cik=cik,
                    matched_filing=matched,
                    recent_filings=candidates,
                )

        claim = ", ".join(p for p in (amount, insider_name) if p)
        detail = f" ({claim})" if claim else ""
        if wanted:
            message = (
                f"Partial: {len(filings)} recent Form 4 filings found, but none match "
                f"trade date {wanted}{detail}. Check recent filings manually."
            )
        else:
            message = f"Partial: Form 4 filed {filings[0].date}, no trade date to match{detail}"
        return VerificationResult(
            verified="partial",
            message=message,
            ticker=symbol,
            company_name=company,
            cik=cik,
            recent_filings=candidates,
        )


def verify(
        ticker: str,
        trade_date: str | None = None,
        amount: str | None = None,
        insider_name: str | None = None,
        *,
        user_agent: str,
) -> VerificationResult:
    """Module-level shortcut using the process-wide ticker map."""
    return Verifier(user_agent).verify(ticker, trade_date, amount, insider_name)
