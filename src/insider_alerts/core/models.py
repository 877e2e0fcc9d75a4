"""Data models for raw feed documents, insider transactions and verification."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal

TransactionType = Literal["BUY", "SELL"]
VerificationStatus = Literal["verified", "partial", "unverified"]
Verified = Literal[True, False, "partial"]


def round_currency(value: float) -> float:
    """Round to the nearest whole currency unit, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class RawFiling:
    """One ``<entry>`` of the SEC current-filings Atom feed."""

    title: str
    link: str
    updated: str = ""
    summary: str = ""


@dataclass
class RawPost:
    """One post from a subreddit's JSON listing."""

    id: str
    title: str = ""
    body: str = ""
    created_utc: float = 0.0
    permalink: str = ""
    author: str = ""
    score: int = 0

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}"

    @property
    def url(self) -> str:
        return f"https://reddit.com{self.permalink}"

    @property
    def posted_at(self) -> str:
        return datetime.fromtimestamp(self.created_utc, tz=timezone.utc).isoformat()

    @classmethod
    def from_listing_child(cls, child: dict) -> "RawPost":
        d = child.get("data", child)
        return cls(
            id=str(d.get("id", "")),
            title=d.get("title") or "",
            body=d.get("selftext") or "",
            created_utc=float(d.get("created_utc") or 0),
            permalink=d.get("permalink") or "",
            author=d.get("author") or "",
            score=int(d.get("score") or 0),
        )


@dataclass
class InsiderTransaction:
    """Normalized insider transaction, one per SEC filing or Reddit post.

    ``filing_id`` is the accession number for SEC rows and the Reddit post
    id for Reddit rows. It is the dedup key in the store.
    """

    filing_id: str
    ticker: str
    transaction_type: TransactionType
    company_name: str = ""
    cik: str | None = None
    insider_name: str = ""
    insider_title: str = "Insider"

    shares: float = 0.0
    price_per_share: float = 0.0
    total_value: float = 0.0

    report_date: str | None = None
    filing_date: str | None = None

    source: Literal["sec", "reddit"] = "sec"
    source_url: str = ""
    verification_status: VerificationStatus = "unverified"
    verification_message: str | None = None
    sec_filing_url: str | None = None

    # Reddit-only context
    amount: str | None = None
    reddit_score: int | None = None
    posted_at: str | None = None
    raw_text: str | None = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "InsiderTransaction":
        known = {f for f in cls.__dataclass_fields__}
        data = {k: v for k, v in row.items() if k in known}
        for key in ("shares", "price_per_share", "total_value"):
            if data.get(key) is None:
                data[key] = 0.0
            else:
                data[key] = float(data[key])
        return cls(**data)


@dataclass
class ParsedAlert:
    """Fields pulled out of a Reddit post; every optional field may be None."""

    reddit_id: str
    ticker: str
    transaction_type: TransactionType
    amount: str | None = None
    shares: int | None = None
    price_per_share: float | None = None
    trade_date: str | None = None
    filing_date: str | None = None
    insider_name: str | None = None
    company_name: str | None = None
    reddit_url: str = ""
    reddit_score: int = 0
    posted_at: str = ""
    raw_text: str = ""


@dataclass
class Form4Fields:
    """Fields extracted from one Form 4 XML body, before qualification."""

    ticker: str | None = None
    insider_name: str = ""
    insider_title: str = "Insider"
    transaction_type: TransactionType | None = None
    shares: float = 0.0
    price_sum: float = 0.0
    price_count: int = 0
    report_date: str | None = None

    @property
    def mean_price(self) -> float:
        if self.price_count == 0:
            return 0.0
        return self.price_sum / self.price_count

    @property
    def total_value(self) -> float:
        return round_currency(self.shares * self.mean_price)


@dataclass
class FilingRef:
    accession_number: str
    date: str
    url: str
    report_date: str | None = None


@dataclass
class VerificationResult:
    """Outcome of checking a claimed trade against SEC Form 4 history.

    ``verified`` is a three-state ladder: True (a filing matched the trade
    date), "partial" (Form 4 filings exist but none matched) or False.
    """

    verified: Verified
    message: str
    ticker: str = ""
    company_name: str | None = None
    cik: str | None = None
    matched_filing: FilingRef | None = None
    recent_filings: list[FilingRef] = field(default_factory=list)
    found: bool = True  # False only when the ticker has no CIK

    @property
    def status(self) -> VerificationStatus:
        if self.verified is True:
            return "verified"
        if self.verified == "partial":
            return "partial"
        return "unverified"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SyncResult:
    """Per-stage counts for one sync run."""

    fetched: int = 0
    parsed: int = 0
    qualified: int = 0
    stored: int = 0
    skipped: int = 0
    verified: int = 0
    partial: int = 0
    errors: list[str] = field(default_factory=list)
    timed_out: bool = False
    stored_ids: list[str] = field(default_factory=list)

    def merge(self, other: "SyncResult") -> "SyncResult":
        return SyncResult(
            fetched=self.fetched + other.fetched,
            parsed=self.parsed + other.parsed,
            qualified=self.qualified + other.qualified,
            stored=self.stored + other.stored,
            skipped=self.skipped + other.skipped,
            verified=self.verified + other.verified,
            partial=self.partial + other.partial,
            errors=self.errors + other.errors,
            timed_out=self.timed_out or other.timed_out,
            stored_ids=self.stored_ids + other.stored_ids,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
