"""Tests for qualification and Reddit alert shaping."""

from __future__ import annotations

import pytest

from insider_alerts.core.models import FilingRef, InsiderTransaction, ParsedAlert, VerificationResult
from insider_alerts.core.qualify import (
    alert_to_transaction,
    meets_threshold,
    parse_amount,
    qualify_transactions,
    with_verification,
)


def _txn(filing_id: str, value: float, source: str = "sec") -> InsiderTransaction:
    return InsiderTransaction(
        filing_id=filing_id, ticker="ABC", transaction_type="BUY", total_value=value, source=source,
    )


def _alert(**overrides) -> ParsedAlert:
    base = dict(
        reddit_id="abc001",
        ticker="ALKS",
        transaction_type="BUY",
        amount="$1.9M",
        shares=61200,
        price_per_share=31.64,
        trade_date="2026-02-02",
        filing_date="2026-02-05",
        reddit_url="https://reddit.com/r/InsiderData/comments/abc001/",
        reddit_score=42,
        posted_at="2026-02-05T14:00:00+00:00",
        raw_text="MAJOR INSIDER BUY ALERT",
    )
    base.update(overrides)
    return ParsedAlert(**base)


class TestThreshold:
    def test_equal_qualifies(self):
        assert meets_threshold(100_000, 100_000)

    def test_below(self):
        assert not meets_threshold(99_999.99, 100_000)

    def test_zero_value(self):
        assert not meets_threshold(0, 100_000)

    def test_qualify_filters_sec_only(self):
        txns = [_txn("a", 50_000), _txn("b", 100_000), _txn("c", 10, source="reddit")]
        kept = qualify_transactions(txns, 100_000)
        assert [t.filing_id for t in kept] == ["b", "c"]


class TestParseAmount:
    @pytest.mark.parametrize("text,expected", [
        ("$1.9M", 1_900_000.0),
        ("$250K", 250_000.0),
        ("$3B", 3_000_000_000.0),
        ("total of $45,000", 45_000.0),
        ("$1.5 m", 1_500_000.0),
    ])
    def test_values(self, text, expected):
        assert parse_amount(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "no numbers"])
    def test_nothing(self, text):
        assert parse_amount(text) is None


class TestAlertToTransaction:
    def test_value_from_shares_and_price(self):
        txn = alert_to_transaction(_alert())
        assert txn.total_value == round(61200 * 31.64)
        assert txn.filing_id == "abc001"
        assert txn.source == "reddit"
        assert txn.source_url.endswith("/abc001/")
        assert txn.report_date == "2026-02-02"
        assert txn.verification_status == "unverified"
        assert txn.amount == "$1.9M"
        assert txn.reddit_score == 42

    def test_value_falls_back_to_amount(self):
        txn = alert_to_transaction(_alert(shares=None, price_per_share=None))
        assert txn.total_value == 1_900_000.0
        assert txn.shares == 0

    def test_report_date_falls_back_to_filing_date(self):
        txn = alert_to_transaction(_alert(trade_date=None))
        assert txn.report_date == "2026-02-05"

    def test_with_verification(self):
        vr = VerificationResult(
            verified=True, message="Verified", ticker="ALKS",
            company_name="Alkermes plc", cik="0001520262",
        )
        txn = alert_to_transaction(_alert(), vr)
        assert txn.verification_status == "verified"
        assert txn.verification_message == "Verified"
        assert txn.cik == "0001520262"
        assert txn.company_name == "Alkermes plc"

    def test_with_verification_records_filing_url(self):
        matched = FilingRef(
            "0001520262-26-000012", date="2026-02-05",
            url="https://www.sec.gov/Archives/edgar/data/1520262/000152026226000012/wf-form4.xml",
            report_date="2026-02-02",
        )
        txn = with_verification(
            alert_to_transaction(_alert()),
            VerificationResult(verified=True, message="Verified", matched_filing=matched),
        )
        assert txn.sec_filing_url == matched.url
        assert txn.to_row()["sec_filing_url"] == matched.url
        assert txn.source_url.endswith("/abc001/")

    def test_partial_has_no_filing_url(self):
        txn = with_verification(
            alert_to_transaction(_alert()), VerificationResult(verified="partial", message="Partial"),
        )
        assert txn.sec_filing_url is None

    def test_value_half_rounds_up(self):
        txn = alert_to_transaction(_alert(shares=1, price_per_share=500.5))
        assert txn.total_value == 501.0

    def test_with_verification_keeps_original(self):
        txn = alert_to_transaction(_alert(company_name="Alkermes"))
        updated = with_verification(txn, VerificationResult(verified="partial", message="Partial"))
        assert updated.verification_status == "partial"
        assert updated.company_name == "Alkermes"
        assert txn.verification_status == "unverified"

    def test_failed_verification(self):
        txn = alert_to_transaction(
            _alert(), VerificationResult(verified=False, message="not found", found=False),
        )
        assert txn.verification_status == "unverified"
        assert txn.verification_message == "not found"
