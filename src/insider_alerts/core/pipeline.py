"""Sync orchestration: fetch → parse → qualify → dedup → (verify) → persist.

Each source contributes independently. A fetch failure in one source is
recorded and does not stop the other; only configuration errors (before
anything starts) and a total failure of the primary source are raised.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import requests

from insider_alerts.core.edgar import fetch_recent_form4_entries
from insider_alerts.core.form4 import parse_form4_detailed
from insider_alerts.core.models import InsiderTransaction, ParsedAlert, SyncResult
from insider_alerts.core.qualify import alert_to_transaction, qualify_transactions, with_verification
from insider_alerts.core.reddit import fetch_subreddit_posts, parse_posts
from insider_alerts.core.store import DEFAULT_ORDER, RowStore, filter_new, persist, update_verification
from insider_alerts.core.verifier import Verifier
from insider_alerts.utils.config import Settings
from insider_alerts.utils.errors import ConfigError, StoreError, SyncError
from insider_alerts.utils.logging import get_logger

log = get_logger("pipeline")

SOURCES = ("sec", "reddit")
MIN_REQUEST_TIMEOUT = 1.0


class Deadline:
    """Wall-clock budget for one run, measured on the monotonic clock."""

    def __init__(self, seconds: float | None):
        self._end = time.monotonic() + seconds if seconds else None

    def expired(self) -> bool:
        return self._end is not None and time.monotonic() >= self._end

    def remaining(self) -> float | None:
        if self._end is None:
            return None
        return max(0.0, self._end - time.monotonic())

    def cap(self, timeout: float) -> float:
        """``timeout`` shortened to what is left of the budget, never below one second."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return max(min(timeout, remaining), MIN_REQUEST_TIMEOUT)


def _store_new(
        candidates: list[InsiderTransaction],
        store: RowStore,
        result: SyncResult,
        fresh: list[InsiderTransaction] | None = None,
) -> None:
    if fresh is None:
        fresh = filter_new(candidates, store)
    stored, errors = persist(fresh, store)
    result.stored = len(stored)
    result.stored_ids = [t.filing_id for t in stored]
    # already-stored rows, whether caught by the pre-check or by the insert
    result.skipped = len(candidates) - len(stored) - len(errors)
    result.errors.extend(errors)


# -------------------------------------------------------------------
# SEC
# -------------------------------------------------------------------

def run_sec_sync(
        store: RowStore,
        settings: Settings,
        deadline: Deadline | None = None,
) -> SyncResult:
    """Pull the latest Form 4 filings into the store.

    Filing documents are fetched one at a time with ``request_delay``
    between filings. When the deadline passes no further filings are
    requested and whatever was parsed so far is still stored.

    Raises
    ------
    ConfigError
        No SEC User-Agent configured.
    requests.RequestException
        The feed itself could not be fetched.
    """
    user_agent = settings.require_sec()
    if deadline is None:
        deadline = Deadline(settings.run_timeout)
    result = SyncResult()

    entries = fetch_recent_form4_entries(
        user_agent, count=settings.feed_count, timeout=settings.http_timeout,
    )
    entries = entries[:settings.max_filings]
    result.fetched = len(entries)

    parsed: list[InsiderTransaction] = []
    for i, entry in enumerate(entries):
        if deadline.expired():
            log.warning("Run budget spent after %d of %d filings", i, len(entries))
            result.timed_out = True
            break
        if i and settings.request_delay:
            time.sleep(settings.request_delay)
        try:
            outcome = parse_form4_detailed(
                entry, user_agent,
                min_value=settings.min_transaction_value,
                timeout=deadline.cap(settings.http_timeout),
            )
        except requests.RequestException as exc:
            log.warning("Filing fetch failed for %s: %s", entry.link, exc)
            result.errors.append(f"SEC filing {entry.link}: {exc}")
            continue
        if outcome.transaction is not None:
            parsed.append(outcome.transaction)

    result.parsed = len(parsed)
    qualified = qualify_transactions(parsed, settings.min_transaction_value)
    result.qualified = len(qualified)
    _store_new(qualified, store, result)

    log.info(
        "SEC sync: %d fetched, %d parsed, %d qualified, %d stored",
        result.fetched, result.parsed, result.qualified, result.stored,
    )
    return result


# -------------------------------------------------------------------
# Reddit
# -------------------------------------------------------------------

def _verify_alerts(
        txns: list[InsiderTransaction],
        alerts: dict[str, ParsedAlert],
        verifier: Verifier,
        settings: Settings,
        deadline: Deadline,
        result: SyncResult,
) -> list[InsiderTransaction]:
    out: list[InsiderTransaction] = []
    for i, txn in enumerate(txns):
        if deadline.expired():
            log.warning("Run budget spent; %d alerts stored unverified", len(txns) - i)
            result.timed_out = True
            out.extend(txns[i:])
            break
        if i and settings.request_delay:
            time.sleep(settings.request_delay)

        alert = alerts[txn.filing_id]
        try:
            vr = verifier.verify(
                alert.ticker, alert.trade_date, alert.amount, alert.insider_name,
                timeout=deadline.cap(settings.http_timeout),
            )
        except requests.RequestException as exc:
            log.warning("Verification failed for %s: %s", txn.ticker, exc)
            result.errors.append(f"Verification error for {txn.ticker} ({txn.filing_id}): {exc}")
            out.append(replace(txn, verification_message=f"Verification failed: {exc}"))
            continue

        if vr.status == "verified":
            result.verified += 1
        elif vr.status == "partial":
            result.partial += 1
        out.append(with_verification(txn, vr))
    return out


def run_reddit_sync(
        store: RowStore,
        settings: Settings,
        deadline: Deadline | None = None,
        verify_alerts: bool = True,
        verifier: Verifier | None = None,
) -> SyncResult:
    """Pull insider-alert posts from the configured subreddit into the store.

    New alerts are checked against SEC Form 4 history before they are
    stored, unless ``verify_alerts`` is False.

    Raises
    ------
    ConfigError
        Verification requested but no SEC User-Agent configured.
    requests.RequestException
        The subreddit listing could not be fetched.
    """
    if verify_alerts and verifier is None:
        verifier = Verifier(settings.require_sec(), timeout=settings.http_timeout)
    if deadline is None:
        deadline = Deadline(settings.run_timeout)
    result = SyncResult()

    posts = fetch_subreddit_posts(
        settings.subreddit,
        limit=settings.reddit_limit,
        user_agent=settings.reddit_user_agent,
        timeout=settings.http_timeout,
    )
    result.fetched = len(posts)

    alerts = parse_posts(posts)
    result.parsed = len(alerts)

    candidates = qualify_transactions(
        [alert_to_transaction(a) for a in alerts], settings.min_transaction_value,
    )
    result.qualified = len(candidates)

    fresh = filter_new(candidates, store)
    if verify_alerts and fresh and verifier is not None:
        by_id = {a.reddit_id: a for a in alerts}
        fresh = _verify_alerts(fresh, by_id, verifier, settings, deadline, result)

    _store_new(candidates, store, result, fresh=fresh)

    log.info(
        "Reddit sync: %d posts, %d alerts, %d stored (%d verified, %d partial)",
        result.fetched, result.parsed, result.stored, result.verified, result.partial,
    )
    return result


# -------------------------------------------------------------------
# Combined run
# -------------------------------------------------------------------

def run_sync(
        store: RowStore,
        settings: Settings,
        sources: tuple[str, ...] = SOURCES,
        verify_alerts: bool = True,
) -> SyncResult:
    """Run the requested sources concurrently and merge their counts.

    Parameters
    ----------
    store : RowStore
        Destination for new rows.
    settings : Settings
        Loaded configuration.
    sources : tuple of str
        Any of "sec", "reddit". The first one is the primary source.
    verify_alerts : bool
        Verify new Reddit alerts against SEC before storing.

    Returns
    -------
    SyncResult
        Counts from every source that ran, plus collected errors.

    Raises
    ------
    ConfigError
        A setting needed by the requested sources is missing. Raised
        before any request is made.
    SyncError
        The primary source could not be fetched at all. ``exc.result``
        holds what the other source contributed.
    """
    if not sources:
        raise ValueError("At least one source is required")
    unknown = [s for s in sources if s not in SOURCES]
    if unknown:
        raise ValueError(f"Unknown source(s): {', '.join(unknown)}")

    if "sec" in sources or (verify_alerts and "reddit" in sources):
        settings.require_sec()

    deadline = Deadline(settings.run_timeout)
    runners = {
        "sec": lambda: run_sec_sync(store, settings, deadline),
        "reddit": lambda: run_reddit_sync(store, settings, deadline, verify_alerts=verify_alerts),
    }

    result = SyncResult()
    failed: list[str] = []
    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [(name, pool.submit(runners[name])) for name in dict.fromkeys(sources)]
        for name, future in futures:
            try:
                part = future.result()
            except ConfigError:
                raise
            except (requests.RequestException, StoreError) as exc:
                log.warning("%s source failed: %s", name.upper(), exc)
                result.errors.append(f"{name.upper()} fetch failed: {exc}")
                failed.append(name)
                continue
            result = result.merge(part)

    if sources[0] in failed:
        raise SyncError(f"Primary source {sources[0]!r} failed", result=result)
    return result


# -------------------------------------------------------------------
# Re-verification
# -------------------------------------------------------------------

def reverify_unverified(
        store: RowStore,
        settings: Settings,
        limit: int = 50,
        verifier: Verifier | None = None,
) -> SyncResult:
    """Re-run the verifier over stored Reddit rows that are still unverified.

    ``fetched`` counts the rows examined; every row gets its status and
    message rewritten, even when it stays unverified.
    """
    if verifier is None:
        verifier = Verifier(settings.require_sec(), timeout=settings.http_timeout)
    result = SyncResult()

    rows, _ = store.query(
        eq={"source": "reddit", "verification_status": "unverified"},
        order=DEFAULT_ORDER,
        limit=limit,
    )
    result.fetched = len(rows)

    for i, row in enumerate(rows):
        txn = InsiderTransaction.from_row(row)
        if i and settings.request_delay:
            time.sleep(settings.request_delay)
        try:
            vr = verifier.verify(txn.ticker, txn.report_date, txn.amount, txn.insider_name)
            update_verification(store, txn.filing_id, vr)
        except (requests.RequestException, StoreError) as exc:
            log.warning("Re-verification failed for %s: %s", txn.filing_id, exc)
            result.errors.append(f"Re-verification error for {txn.ticker} ({txn.filing_id}): {exc}")
            continue
        if vr.status == "verified":
            result.verified += 1
        elif vr.status == "partial":
            result.partial += 1

    log.info(
        "Re-verified %d rows: %d verified, %d partial",
        result.fetched, result.verified, result.partial,
    )
    return result
