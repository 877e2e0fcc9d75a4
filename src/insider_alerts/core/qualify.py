"""Qualification and shaping of parsed transactions. Pure functions, no I/O."""

from __future__ import annotations

import re
from dataclasses import replace

from insider_alerts.core.models import (
    InsiderTransaction,
    ParsedAlert,
    VerificationResult,
    round_currency,
)

_AMOUNT_RE = re.compile(r"\$?\s*(\d+(?:,\d{3})*(?:\.\d+)?)\s*([MBK])?", re.IGNORECASE)
_MULTIPLIERS = {"K": 1_000.0, "M": 1_000_000.0, "B": 1_000_000_000.0}


def meets_threshold(value: float, min_value: float) -> bool:
    """Significance filter: a value exactly at the threshold qualifies."""
    return value >= min_value


def qualify_transactions(
        transactions: list[InsiderTransaction],
        min_value: float,
) -> list[InsiderTransaction]:
    """Drop SEC transactions below ``min_value``.

    Reddit-sourced rows are reported sightings rather than qualification
    decisions and always pass.
    """
    return [
        t for t in transactions
        if t.source == "reddit" or meets_threshold(t.total_value, min_value)
    ]


def parse_amount(text: str | None) -> float | None:
    """Parse an amount string into a number.

    Examples:
        "$1.9M"            → 1900000.0
        "$250K"            → 250000.0
        "total of $45,000" → 45000.0
        ""                 → None
    """
    if not text:
        return None
    m = _AMOUNT_RE.search(text)
    if not m:
        return None
    try:
        value = float(m.group(1).replace(",", ""))
    except ValueError:
        return None
    suffix = (m.group(2) or "").upper()
    return value * _MULTIPLIERS.get(suffix, 1.0)


def with_verification(txn: InsiderTransaction, result: VerificationResult) -> InsiderTransaction:
    """Copy of ``txn`` carrying the verifier's outcome and the matched filing's URL."""
    matched = result.matched_filing
    return replace(
        txn,
        verification_status=result.status,
        verification_message=result.message,
        cik=result.cik or txn.cik,
        company_name=result.company_name or txn.company_name,
        sec_filing_url=matched.url if matched else txn.sec_filing_url,
    )


def alert_to_transaction(
        alert: ParsedAlert,
        verification: VerificationResult | None = None,
) -> InsiderTransaction:
    """Shape a Reddit alert into a storable InsiderTransaction.

    Without a verification result the row starts ``unverified``.
    """
    shares = float(alert.shares) if alert.shares is not None else 0.0
    price = alert.price_per_share if alert.price_per_share is not None else 0.0
    total = round_currency(shares * price)
    if not total:
        total = parse_amount(alert.amount) or 0.0

    txn = InsiderTransaction(
        filing_id=alert.reddit_id,
        ticker=alert.ticker,
        transaction_type=alert.transaction_type,
        company_name=alert.company_name or "",
        insider_name=alert.insider_name or "",
        insider_title="Insider",
        shares=shares,
        price_per_share=price,
        total_value=total,
        report_date=alert.trade_date or alert.filing_date,
        filing_date=alert.filing_date,
        source="reddit",
        source_url=alert.reddit_url,
        verification_status="unverified",
        amount=alert.amount,
        reddit_score=alert.reddit_score,
        posted_at=alert.posted_at,
        raw_text=alert.raw_text,
    )
    if verification is not None:
        txn = with_verification(txn, verification)
    return txn
