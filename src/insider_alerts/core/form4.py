"""Form 4 extraction: Atom entry → filing documents → one InsiderTransaction.

Field extraction works by tag proximity over the XML text and is kept
behind :func:`extract_form4_fields` (XML text in, :class:`Form4Fields`
out), so aggregation and qualification never see the matching strategy.

Aggregation policy: all ``nonDerivativeTransaction`` line items collapse
into one record per filing. Shares are summed, prices averaged over the
items that report one, and the first acquired/disposed code decides
BUY/SELL. A filing bundling an acquisition with a disposition (option
exercise then sale) is therefore classified by its first line item.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from insider_alerts.core.edgar import (
    fetch_filing_document,
    fetch_filing_index,
    filing_date_from_entry,
    filing_index_url,
)
from insider_alerts.core.models import Form4Fields, InsiderTransaction, RawFiling
from insider_alerts.core.qualify import meets_threshold
from insider_alerts.utils.logging import get_logger

log = get_logger("form4")

DEFAULT_MIN_VALUE = 100_000.0

_ACCESSION_RE = re.compile(r"(\d{10}-\d{2}-\d{6})")
_TITLE_RE = re.compile(r"^\s*4\s*-\s*(.+?)\s*\((\d+)\)\s*\(Reporting\)", re.IGNORECASE)
_TXN_BLOCK_RE = re.compile(
    r"<nonDerivativeTransaction\b[^>]*>(.*?)</nonDerivativeTransaction>", re.DOTALL,
)
_VALUE_RE = re.compile(r"<value>\s*(.*?)\s*</value>", re.DOTALL)

_CODE_TO_TYPE = {"A": "BUY", "D": "SELL"}

OutcomeStatus = Literal["ok", "parse_miss", "below_threshold"]


@dataclass
class Form4Outcome:
    status: OutcomeStatus
    transaction: InsiderTransaction | None = None
    reason: str = ""


# -------------------------------------------------------------------
# Entry metadata
# -------------------------------------------------------------------

def extract_accession_number(link: str) -> str | None:
    """Accession number (``0001234567-26-000012``) from a filing link."""
    m = _ACCESSION_RE.search(link or "")
    if m:
        return m.group(1)
    # archive paths carry it without dashes: .../000123456726000012/...
    m = re.search(r"/(\d{18})(?:/|$)", link or "")
    if m:
        raw = m.group(1)
        return f"{raw[:10]}-{raw[10:12]}-{raw[12:]}"
    return None


def parse_entry_title(title: str) -> tuple[str, str] | None:
    """Parse ``"4 - Company Name (0001234567) (Reporting)"`` into (company, cik10)."""
    m = _TITLE_RE.match(title or "")
    if not m:
        return None
    return m.group(1).strip(), m.group(2).zfill(10)


def find_form4_document(names: list[str]) -> str | None:
    """Pick the machine-readable Form 4 body out of a filing directory listing."""
    for name in names:
        lower = name.lower()
        if lower.endswith(".xml") and "primary" not in lower:
            return name
    return None


# -------------------------------------------------------------------
# XML field extraction
# -------------------------------------------------------------------

def _tag_block(xml: str, tag: str) -> str | None:
    m = re.search(rf"<{tag}\b[^>]*>(.*?)</{tag}>", xml, re.DOTALL)
    return m.group(1) if m else None


def _tag_value(xml: str, tag: str) -> str | None:
    """Text of ``<tag>``, looking through a nested ``<value>`` when present."""
    block = _tag_block(xml, tag)
    if block is None:
        return None
    m = _VALUE_RE.search(block)
    text = m.group(1) if m else re.sub(r"<[^>]+>", "", block)
    text = text.strip()
    return text or None


def _is_true(xml: str, tag: str) -> bool:
    value = _tag_value(xml, tag)
    return (value or "").lower() in ("1", "true")


def _to_float(text: str | None) -> float | None:
    if not text:
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def _insider_title(xml: str) -> str:
    title = _tag_value(xml, "officerTitle")
    if title:
        return title
    if _is_true(xml, "isDirector"):
        return "Director"
    if _is_true(xml, "isTenPercentOwner"):
        return "10% Owner"
    return "Insider"


def extract_form4_fields(xml: str) -> Form4Fields:
    """Extract issuer, owner and aggregated transaction fields from Form 4 XML."""
    ticker = _tag_value(xml, "issuerTradingSymbol")
    fields = Form4Fields(
        ticker=ticker.upper() if ticker else None,
        insider_name=_tag_value(xml, "rptOwnerName") or "",
        insider_title=_insider_title(xml),
    )

    for block in _TXN_BLOCK_RE.findall(xml):
        shares = _to_float(_tag_value(block, "transactionShares"))
        if shares is not None:
            fields.shares += shares

        price = _to_float(_tag_value(block, "transactionPricePerShare"))
        if price is not None:
            fields.price_sum += price
            fields.price_count += 1

        if fields.report_date is None:
            txn_date = _tag_value(block, "transactionDate")
            if txn_date:
                fields.report_date = txn_date[:10]

        if fields.transaction_type is None:
            code = (_tag_value(block, "transactionAcquiredDisposedCode") or "").upper()
            fields.transaction_type = _CODE_TO_TYPE.get(code)  # type: ignore[assignment]

    return fields


# -------------------------------------------------------------------
# Filing → transaction
# -------------------------------------------------------------------

def build_transaction(
        fields: Form4Fields,
        *,
        accession_number: str,
        company_name: str,
        cik: str,
        filing_date: str | None,
) -> InsiderTransaction:
    return InsiderTransaction(
        filing_id=accession_number,
        ticker=fields.ticker or "",
        transaction_type=fields.transaction_type or "BUY",
        company_name=company_name,
        cik=cik,
        insider_name=fields.insider_name,
        insider_title=fields.insider_title,
        shares=fields.shares,
        price_per_share=fields.mean_price,
        total_value=fields.total_value,
        report_date=fields.report_date or filing_date,
        filing_date=filing_date,
        source="sec",
        source_url=filing_index_url(cik, accession_number),
        verification_status="verified",
        verification_message="Sourced directly from SEC EDGAR",
    )


def evaluate_form4(
        entry: RawFiling,
        fields: Form4Fields,
        *,
        accession_number: str,
        company_name: str,
        cik: str,
        min_value: float = DEFAULT_MIN_VALUE,
) -> Form4Outcome:
    """Apply the reject rules to already-extracted fields (no I/O)."""
    if not fields.ticker:
        return Form4Outcome("parse_miss", reason="no issuer ticker")
    if fields.transaction_type is None:
        return Form4Outcome("parse_miss", reason="no acquired/disposed code")
    if fields.shares == 0:
        return Form4Outcome("parse_miss", reason="zero shares")

    txn = build_transaction(
        fields,
        accession_number=accession_number,
        company_name=company_name,
        cik=cik,
        filing_date=filing_date_from_entry(entry),
    )
    if not meets_threshold(txn.total_value, min_value):
        return Form4Outcome("below_threshold", txn, reason=f"value {txn.total_value:,.0f}")
    return Form4Outcome("ok", txn)


def parse_form4_detailed(
        entry: RawFiling,
        user_agent: str,
        min_value: float = DEFAULT_MIN_VALUE,
        timeout: float = 15,
) -> Form4Outcome:
    """Fetch and parse one feed entry, reporting why it was rejected.

    Raises
    ------
    requests.RequestException
        When the filing index or XML document cannot be fetched.
    """
    accession = extract_accession_number(entry.link)
    if not accession:
        return Form4Outcome("parse_miss", reason="no accession number in link")

    parsed_title = parse_entry_title(entry.title)
    if not parsed_title:
        return Form4Outcome("parse_miss", reason=f"unexpected title {entry.title!r}")
    company_name, cik = parsed_title

    names = fetch_filing_index(cik, accession, user_agent, timeout=timeout)
    doc = find_form4_document(names)
    if not doc:
        return Form4Outcome("parse_miss", reason="no Form 4 XML in filing index")

    xml = fetch_filing_document(cik, accession, doc, user_agent, timeout=timeout)
    fields = extract_form4_fields(xml)
    outcome = evaluate_form4(
        entry, fields,
        accession_number=accession, company_name=company_name, cik=cik, min_value=min_value,
    )
    if outcome.status != "ok":
        log.debug("Filing %s rejected: %s", accession, outcome.reason)
    return outcome


def parse_form4(
        entry: RawFiling,
        user_agent: str,
        min_value: float = DEFAULT_MIN_VALUE,
        timeout: float = 15,
) -> InsiderTransaction | None:
    """Return the qualifying transaction for one feed entry, or None."""
    outcome = parse_form4_detailed(entry, user_agent, min_value=min_value, timeout=timeout)
    return outcome.transaction if outcome.status == "ok" else None
