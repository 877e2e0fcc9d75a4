"""CLI entry point for headless syncing, querying and verification."""

from __future__ import annotations

import argparse
import json
import sys

import requests

from insider_alerts.utils.config import ensure_dirs, load_settings
from insider_alerts.utils.errors import ConfigError, StoreError, SyncError
from insider_alerts.utils.logging import get_logger, setup_logging

log = get_logger("cli")


def _print_result(result) -> None:
    print(
        f"\nfetched={result.fetched}  parsed={result.parsed}  qualified={result.qualified}  "
        f"stored={result.stored}  skipped={result.skipped}"
    )
    if result.verified or result.partial:
        print(f"verified={result.verified}  partial={result.partial}")
    if result.timed_out:
        print("Run budget exhausted; results are partial.")
    for err in result.errors:
        print(f"  ! {err}")


def cmd_sync(args: argparse.Namespace) -> int:
    """Run one sync over the requested sources."""
    from insider_alerts.core.pipeline import SOURCES, run_sync
    from insider_alerts.core.store import create_store

    settings = load_settings(args.config)
    store = create_store(settings, allow_memory=args.memory)
    sources = (args.source,) if args.source else SOURCES

    try:
        result = run_sync(store, settings, sources=sources, verify_alerts=not args.no_verify)
    except SyncError as exc:
        print(f"Sync failed: {exc}", file=sys.stderr)
        if exc.result is not None:
            _print_result(exc.result)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)

    if args.save:
        from insider_alerts.core.export import save_alerts
        from insider_alerts.core.models import InsiderTransaction

        # only the rows this run inserted
        rows = store.select_in("filing_id", result.stored_ids) if result.stored_ids else []
        out = save_alerts([InsiderTransaction.from_row(r) for r in rows], label="sync")
        print(f"\nResults saved to: {out}")
    return 0


def cmd_alerts(args: argparse.Namespace) -> int:
    """List stored alerts, newest trade first."""
    from insider_alerts.core.store import create_store, list_alerts

    settings = load_settings(args.config)
    store = create_store(settings)
    page = list_alerts(
        store,
        transaction_type=args.type,
        status=args.status,
        verified_only=args.verified_only,
        ticker=args.ticker,
        offset=args.offset,
        limit=args.limit,
    )

    if args.json:
        print(json.dumps([a.to_row() for a in page.alerts], indent=2))
        return 0

    shown_to = page.offset + len(page.alerts)
    print(f"\nAlerts {page.offset + 1 if page.alerts else 0}-{shown_to} of {page.total}")
    for a in page.alerts:
        print(
            f"  {a.report_date or '?':>10}  {a.ticker:<6}  {a.transaction_type:<4}  "
            f"{a.insider_name[:25]:<25}  ${a.total_value:>12,.0f}  "
            f"{a.source:<6}  {a.verification_status}"
        )

    if args.save:
        from insider_alerts.core.export import save_alerts

        out = save_alerts(page.alerts, label="alerts")
        print(f"\nResults saved to: {out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Check a claimed trade against SEC Form 4 history."""
    from insider_alerts.core.verifier import Verifier

    settings = load_settings(args.config)
    verifier = Verifier(settings.require_sec(), timeout=settings.http_timeout)
    result = verifier.verify(args.ticker, args.trade_date, args.amount, args.insider)
    # unknown ticker: nothing was checked
    code = 0 if result.found else 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return code

    print(f"\n{result.ticker}: {result.status.upper()}")
    print(f"  {result.message}")
    if result.cik:
        print(f"  {result.company_name or ''} (CIK {result.cik})")
    if result.matched_filing:
        print(f"  Matched: {result.matched_filing.url}")
    for f in result.recent_filings:
        print(f"  {f.date}  {f.report_date or '':>10}  {f.url}")
    return code


def cmd_resolve_cik(args: argparse.Namespace) -> int:
    """Resolve a ticker to SEC CIK."""
    from insider_alerts.core.verifier import get_ticker_map

    settings = load_settings(args.config)
    ticker = args.ticker.upper()
    cik, company = get_ticker_map(settings.require_sec()).lookup(ticker)

    if cik:
        print(f"{ticker} → CIK {cik} ({company})")
    else:
        print(f"Could not resolve CIK for {ticker}")
    return 0


def cmd_reverify(args: argparse.Namespace) -> int:
    """Re-run verification over stored unverified Reddit alerts."""
    from insider_alerts.core.pipeline import reverify_unverified
    from insider_alerts.core.store import create_store

    settings = load_settings(args.config)
    store = create_store(settings)
    result = reverify_unverified(store, settings, limit=args.limit)

    print(
        f"\nRe-verified {result.fetched} alerts: "
        f"{result.verified} verified, {result.partial} partial"
    )
    for err in result.errors:
        print(f"  ! {err}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insider-alerts",
        description="Collect insider-trading alerts from SEC EDGAR Form 4 filings and Reddit.",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # sync
    p_sync = sub.add_parser("sync", help="Fetch, qualify and store new alerts")
    p_sync.add_argument("--source", choices=["sec", "reddit"], default=None,
                        help="Run a single source (default: both)")
    p_sync.add_argument("--no-verify", action="store_true", help="Store Reddit alerts unverified")
    p_sync.add_argument("--memory", action="store_true",
                        help="Use an in-memory store when no Supabase store is configured")
    p_sync.add_argument("--json", action="store_true", help="Print the result as JSON")
    p_sync.add_argument("--save", action="store_true", help="Save the alerts this run stored to outputs/")
    p_sync.set_defaults(func=cmd_sync)

    # alerts
    p_alerts = sub.add_parser("alerts", help="List stored alerts")
    p_alerts.add_argument("--type", choices=["BUY", "SELL"], default=None)
    p_alerts.add_argument("--status", choices=["verified", "partial", "unverified"], default=None)
    p_alerts.add_argument("--verified-only", action="store_true",
                          help="Only verified and partial alerts")
    p_alerts.add_argument("--ticker", default=None)
    p_alerts.add_argument("--limit", type=int, default=20)
    p_alerts.add_argument("--offset", type=int, default=0)
    p_alerts.add_argument("--json", action="store_true")
    p_alerts.add_argument("--save", action="store_true")
    p_alerts.set_defaults(func=cmd_alerts)

    # verify
    p_verify = sub.add_parser("verify", help="Verify a claimed trade against SEC filings")
    p_verify.add_argument("ticker", help="Stock ticker symbol")
    p_verify.add_argument("--trade-date", default=None, help="Claimed trade date")
    p_verify.add_argument("--amount", default=None, help='Claimed amount, e.g. "$1.9M"')
    p_verify.add_argument("--insider", default=None, help="Claimed insider name")
    p_verify.add_argument("--json", action="store_true")
    p_verify.set_defaults(func=cmd_verify)

    # cik
    p_cik = sub.add_parser("cik", help="Resolve ticker to SEC CIK number")
    p_cik.add_argument("ticker", help="Stock ticker symbol")
    p_cik.set_defaults(func=cmd_resolve_cik)

    # reverify
    p_rev = sub.add_parser("reverify", help="Re-check stored unverified Reddit alerts")
    p_rev.add_argument("--limit", type=int, default=50)
    p_rev.set_defaults(func=cmd_reverify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)
    ensure_dirs()
    try:
        return args.func(args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except requests.RequestException as exc:
        log.error("Request failed: %s", exc)
        return 1
    except StoreError as exc:
        log.error("Store request failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
