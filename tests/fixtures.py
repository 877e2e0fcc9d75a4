"""Shared test fixtures: sample SEC and Reddit payloads."""

from __future__ import annotations

UA = "Insider Alerts Tests tests@example.com"

# -----------------------------------------------------------------------
# SEC current-filings Atom feed (type=4, owner=only)
# -----------------------------------------------------------------------

ACC_ALKS = "0001520262-26-000012"
ACC_ACME = "0000320193-26-000045"

ATOM_FEED = """<?xml version="1.0" encoding="ISO-8859-1" ?>
<feed xmlns="http://www.w3.org/2005/Atom">
<title>Latest Filings - Tue, 05 Feb 2026 17:02:11 EST</title>
<link rel="alternate" href="/cgi-bin/browse-edgar?action=getcurrent"/>
<updated>2026-02-05T17:02:11-05:00</updated>
<entry>
<title>4 - Alkermes plc (0001520262) (Reporting)</title>
<link rel="alternate" type="text/html" href="https://www.sec.gov/Archives/edgar/data/1520262/000152026226000012/0001520262-26-000012-index.htm"/>
<summary type="html"> &lt;b&gt;Filed:&lt;/b&gt; 2026-02-05 &lt;b&gt;AccNo:&lt;/b&gt; 0001520262-26-000012 &lt;b&gt;Size:&lt;/b&gt; 6 KB</summary>
<updated>2026-02-05T16:58:40-05:00</updated>
<category scheme="https://www.sec.gov/" label="form type" term="4"/>
<id>urn:tag:sec.gov,2008:accession-number=0001520262-26-000012</id>
</entry>
<entry>
<title>4 - Acme Tools &amp; Dies Inc (320193) (Reporting)</title>
<link rel="alternate" type="text/html" href="https://www.sec.gov/Archives/edgar/data/320193/000032019326000045/0000320193-26-000045-index.htm"/>
<summary type="html"> &lt;b&gt;Filed:&lt;/b&gt; 2026-02-04 &lt;b&gt;AccNo:&lt;/b&gt; 0000320193-26-000045</summary>
<updated>2026-02-04T09:12:00-05:00</updated>
</entry>
<entry>
<title></title>
<link rel="alternate" type="text/html" href="https://www.sec.gov/Archives/edgar/data/1/000000000126000001/0000000001-26-000001-index.htm"/>
</entry>
</feed>
"""

FILING_INDEX_JSON = {
    "directory": {
        "name": "/Archives/edgar/data/1520262/000152026226000012",
        "item": [
            {"name": "0001520262-26-000012-index.htm", "type": "text.gif"},
            {"name": "primary_doc.xml", "type": "text.gif"},
            {"name": "wf-form4_170000000.xml", "type": "text.gif"},
        ],
    },
}

# Two line items: acquisition first, then a disposition.
FORM4_XML = """<?xml version="1.0"?>
<ownershipDocument>
    <issuer>
        <issuerCik>0001520262</issuerCik>
        <issuerName>Alkermes plc</issuerName>
        <issuerTradingSymbol>alks</issuerTradingSymbol>
    </issuer>
    <reportingOwner>
        <reportingOwnerId>
            <rptOwnerCik>0001234567</rptOwnerCik>
            <rptOwnerName>Frates James</rptOwnerName>
        </reportingOwnerId>
        <reportingOwnerRelationship>
            <isDirector>0</isDirector>
            <isOfficer>1</isOfficer>
            <officerTitle>Chief Financial Officer</officerTitle>
        </reportingOwnerRelationship>
    </reportingOwner>
    <nonDerivativeTable>
        <nonDerivativeTransaction>
            <securityTitle><value>Ordinary Shares</value></securityTitle>
            <transactionDate><value>2026-02-02</value></transactionDate>
            <transactionAmounts>
                <transactionShares><value>1000</value></transactionShares>
                <transactionPricePerShare><value>150.00</value></transactionPricePerShare>
                <transactionAcquiredDisposedCode><value>A</value></transactionAcquiredDisposedCode>
            </transactionAmounts>
        </nonDerivativeTransaction>
        <nonDerivativeTransaction>
            <securityTitle><value>Ordinary Shares</value></securityTitle>
            <transactionDate><value>2026-02-03</value></transactionDate>
            <transactionAmounts>
                <transactionShares><value>500</value></transactionShares>
                <transactionPricePerShare><value>160.00</value></transactionPricePerShare>
                <transactionAcquiredDisposedCode><value>D</value></transactionAcquiredDisposedCode>
            </transactionAmounts>
        </nonDerivativeTransaction>
    </nonDerivativeTable>
</ownershipDocument>
"""

# Gift: shares but no price on any line item.
FORM4_XML_NO_PRICE = """<?xml version="1.0"?>
<ownershipDocument>
    <issuer><issuerTradingSymbol>ACME</issuerTradingSymbol></issuer>
    <reportingOwner>
        <reportingOwnerId><rptOwnerName>Doe Jane</rptOwnerName></reportingOwnerId>
        <reportingOwnerRelationship><isDirector>1</isDirector></reportingOwnerRelationship>
    </reportingOwner>
    <nonDerivativeTable>
        <nonDerivativeTransaction>
            <transactionDate><value>2026-01-15</value></transactionDate>
            <transactionAmounts>
                <transactionShares><value>20,000</value></transactionShares>
                <transactionPricePerShare><footnoteId id="F1"/></transactionPricePerShare>
                <transactionAcquiredDisposedCode><value>D</value></transactionAcquiredDisposedCode>
            </transactionAmounts>
        </nonDerivativeTransaction>
    </nonDerivativeTable>
</ownershipDocument>
"""

FORM4_XML_NO_TICKER = """<?xml version="1.0"?>
<ownershipDocument>
    <issuer><issuerName>Private Holdings LLC</issuerName></issuer>
    <nonDerivativeTable>
        <nonDerivativeTransaction>
            <transactionAmounts>
                <transactionShares><value>100</value></transactionShares>
                <transactionAcquiredDisposedCode><value>A</value></transactionAcquiredDisposedCode>
            </transactionAmounts>
        </nonDerivativeTransaction>
    </nonDerivativeTable>
</ownershipDocument>
"""

# -----------------------------------------------------------------------
# SEC company lookups
# -----------------------------------------------------------------------

COMPANY_TICKERS = {
    "0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."},
    "1": {"cik_str": 1520262, "ticker": "ALKS", "title": "Alkermes plc"},
    "2": {"cik_str": 1318605, "ticker": "TSLA", "title": "Tesla, Inc."},
    "3": {"cik_str": 9999999, "ticker": "ALKS", "title": "Duplicate Listing"},
    "4": {"cik_str": 1067983, "ticker": "BRK-B", "title": "Berkshire Hathaway Inc"},
}

SUBMISSIONS_ALKS = {
    "cik": "1520262",
    "name": "Alkermes plc",
    "filings": {
        "recent": {
            "accessionNumber": [
                "0001520262-26-000012",
                "0001520262-26-000011",
                "0001520262-26-000010",
                "0001520262-26-000009",
                "0001520262-26-000008",
                "0001520262-26-000007",
                "0001520262-26-000006",
                "0001520262-26-000005",
            ],
            "filingDate": [
                "2026-02-05",
                "2026-02-04",
                "2026-01-30",
                "2026-01-20",
                "2026-01-15",
                "2026-01-10",
                "2025-12-20",
                "2025-12-01",
            ],
            "reportDate": [
                "2026-02-02",
                "",
                "2026-01-28",
                "2026-01-16",
                "2026-01-13",
                "2026-01-08",
                "2025-12-18",
                "2025-11-28",
            ],
            "form": ["4", "8-K", "4", "4/A", "4", "4", "4", "4"],
            "primaryDocument": [
                "xslF345X05/wf-form4.xml",
                "alks-8k.htm",
                "xslF345X05/wf-form4.xml",
                "xslF345X05/wf-form4a.xml",
                "",
                "xslF345X05/wf-form4.xml",
                "xslF345X05/wf-form4.xml",
                "xslF345X05/wf-form4.xml",
            ],
        },
    },
}

SUBMISSIONS_NO_FORM4 = {
    "cik": "320193",
    "name": "Apple Inc.",
    "filings": {
        "recent": {
            "accessionNumber": ["0000320193-26-000001"],
            "filingDate": ["2026-01-30"],
            "reportDate": ["2025-12-27"],
            "form": ["10-Q"],
            "primaryDocument": ["aapl-20251227.htm"],
        },
    },
}

# -----------------------------------------------------------------------
# Reddit listing
# -----------------------------------------------------------------------

ALKS_POST_TITLE = "MAJOR INSIDER BUY ALERT - $1.9M"
ALKS_POST_BODY = (
    "in $ALKS. Chief Financial Officer "
    "purchased 61,200 shares at $31.64 per share. "
    "Trade Date: 2026-02-02 Filing Date: 2026-02-05"
)
ALKS_POST_TEXT = f"{ALKS_POST_TITLE} {ALKS_POST_BODY}"


def reddit_child(post_id: str, title: str, selftext: str = "", score: int = 10) -> dict:
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "title": title,
            "selftext": selftext,
            "created_utc": 1770300000.0,
            "permalink": f"/r/InsiderData/comments/{post_id}/slug/",
            "author": "insider_bot",
            "score": score,
        },
    }


REDDIT_LISTING = {
    "kind": "Listing",
    "data": {
        "after": "t3_abc003",
        "children": [
            reddit_child("abc001", ALKS_POST_TITLE, ALKS_POST_BODY, score=42),
            reddit_child("abc002", "What do you think about $TSLA earnings?", "Just curious.", score=3),
            reddit_child(
                "abc003",
                "Insider selling at $ACME",
                "Director Jane Doe sold 12,000 shares at $45.10 per share. Filing Date: 2026-02-04",
            ),
        ],
    },
}
