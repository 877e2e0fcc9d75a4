"""Dedup and persistence of insider transactions against a row store.

The store contract is deliberately small (select-where-in, insert, update,
filtered query). Uniqueness of ``filing_id`` is enforced by the store
itself; an insert that hits the constraint is reported as "already
exists" rather than as an error, which makes overlapping runs safe even
though the pre-insert check is not transactional.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from insider_alerts.core.models import InsiderTransaction, VerificationResult
from insider_alerts.utils.config import Settings
from insider_alerts.utils.errors import ConfigError, DuplicateRowError, StoreError
from insider_alerts.utils.logging import get_logger

log = get_logger("store")

# (column, descending); nulls always sort last
Order = list[tuple[str, bool]]

DEFAULT_ORDER: Order = [("report_date", True), ("posted_at", True)]


class RowStore(Protocol):
    def select_in(self, column: str, values: list[str]) -> list[dict[str, Any]]: ...

    def insert(self, row: dict[str, Any]) -> None: ...

    def update(self, filing_id: str, fields: dict[str, Any]) -> None: ...

    def query(
            self,
            *,
            eq: dict[str, Any] | None = None,
            in_: dict[str, list[Any]] | None = None,
            order: Order | None = None,
            offset: int = 0,
            limit: int = 20,
    ) -> tuple[list[dict[str, Any]], int]: ...


# -------------------------------------------------------------------
# In-process store
# -------------------------------------------------------------------

def _sort_nulls_last(rows: list[dict], column: str, desc: bool) -> list[dict]:
    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    present.sort(key=lambda r: r[column], reverse=desc)
    return present + missing


class MemoryStore:
    """Row store held in a list, with a unique constraint on ``filing_id``.

    Used for dry runs and tests.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self._rows: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        for row in rows or []:
            self.insert(row)

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._rows]

    def select_in(self, column: str, values: list[str]) -> list[dict[str, Any]]:
        wanted = set(values)
        return [dict(r) for r in self._rows if r.get(column) in wanted]

    def insert(self, row: dict[str, Any]) -> None:
        with self._lock:
            fid = row.get("filing_id")
            if any(r.get("filing_id") == fid for r in self._rows):
                raise DuplicateRowError(str(fid))
            self._rows.append(dict(row))

    def update(self, filing_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            for r in self._rows:
                if r.get("filing_id") == filing_id:
                    r.update(fields)
                    return
        raise StoreError(f"No row with filing_id {filing_id!r}")

    def query(
            self,
            *,
            eq: dict[str, Any] | None = None,
            in_: dict[str, list[Any]] | None = None,
            order: Order | None = None,
            offset: int = 0,
            limit: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        result = self.rows
        for col, val in (eq or {}).items():
            result = [r for r in result if r.get(col) == val]
        for col, vals in (in_ or {}).items():
            result = [r for r in result if r.get(col) in vals]
        for col, desc in reversed(order or []):
            result = _sort_nulls_last(result, col, desc)
        return result[offset:offset + limit], len(result)


# -------------------------------------------------------------------
# Supabase (PostgREST) store
# -------------------------------------------------------------------

def _in_list(values: list[Any]) -> str:
    quoted = ",".join('"{}"'.format(str(v).replace('"', '\\"')) for v in values)
    return f"in.({quoted})"


class SupabaseStore:
    """Row store backed by a Supabase table through its PostgREST endpoint.

    The table needs a unique constraint on ``filing_id``; a violation comes
    back as HTTP 409 (Postgres code 23505) and is raised as
    :class:`DuplicateRowError`.
    """

    def __init__(self, url: str, key: str, table: str = "insider_alerts", timeout: float = 15):
        self.base_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, *, params=None, json=None, headers=None) -> requests.Response:
        try:
            resp = self.session.request(
                method, self.base_url,
                params=params, json=json, headers=headers, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreError(f"{method} {self.base_url} failed: {exc}") from exc
        if resp.status_code >= 400:
            if resp.status_code == 409 or '"23505"' in resp.text:
                raise DuplicateRowError(str((json or {}).get("filing_id")))
            raise StoreError(f"{method} {self.base_url} -> {resp.status_code}: {resp.text[:200]}")
        return resp

    def select_in(self, column: str, values: list[str]) -> list[dict[str, Any]]:
        if not values:
            return []
        resp = self._request("GET", params={"select": column, column: _in_list(values)})
        return resp.json()

    def insert(self, row: dict[str, Any]) -> None:
        self._request("POST", json=row, headers={"Prefer": "return=minimal"})

    def update(self, filing_id: str, fields: dict[str, Any]) -> None:
        self._request(
            "PATCH",
            params={"filing_id": f"eq.{filing_id}"},
            json=fields,
            headers={"Prefer": "return=minimal"},
        )

    def query(
            self,
            *,
            eq: dict[str, Any] | None = None,
            in_: dict[str, list[Any]] | None = None,
            order: Order | None = None,
            offset: int = 0,
            limit: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        params: dict[str, str] = {"select": "*"}
        for col, val in (eq or {}).items():
            params[col] = f"eq.{val}"
        for col, vals in (in_ or {}).items():
            params[col] = _in_list(vals)
        if order:
            params["order"] = ",".join(
                f"{col}.{'desc' if desc else 'asc'}.nullslast" for col, desc in order
            )
        headers = {
            "Range-Unit": "items",
            "Range": f"{offset}-{offset + limit - 1}",
            "Prefer": "count=exact",
        }
        resp = self._request("GET", params=params, headers=headers)
        rows = resp.json()
        # Content-Range: 0-19/123
        content_range = resp.headers.get("Content-Range", "")
        total = len(rows)
        if "/" in content_range:
            tail = content_range.rsplit("/", 1)[1]
            if tail.isdigit():
                total = int(tail)
        return rows, total


def create_store(settings: Settings, allow_memory: bool = False) -> RowStore:
    """Supabase store from settings, or a MemoryStore when allowed.

    Raises
    ------
    ConfigError
        Store credentials are missing and ``allow_memory`` is False.
    """
    if settings.has_store:
        url, key = settings.require_store()
        return SupabaseStore(url, key, table=settings.table, timeout=settings.http_timeout)
    if allow_memory:
        log.warning("No store configured; using an in-memory store (nothing is persisted)")
        return MemoryStore()
    raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_KEY must both be set.")


# -------------------------------------------------------------------
# Pipeline operations
# -------------------------------------------------------------------

def filter_new(candidates: list[InsiderTransaction], store: RowStore) -> list[InsiderTransaction]:
    """Return the candidates whose ``filing_id`` is not in the store yet."""
    if not candidates:
        return []
    ids = list(dict.fromkeys(c.filing_id for c in candidates))
    existing = {r.get("filing_id") for r in store.select_in("filing_id", ids)}

    seen: set[str] = set()
    fresh = []
    for c in candidates:
        if c.filing_id in existing or c.filing_id in seen:
            continue
        seen.add(c.filing_id)
        fresh.append(c)
    log.info("Dedup: %d candidates, %d new", len(candidates), len(fresh))
    return fresh


def persist(
        records: list[InsiderTransaction],
        store: RowStore,
) -> tuple[list[InsiderTransaction], list[str]]:
    """Insert each record; keep going past individual failures.

    Returns
    -------
    (stored, errors)
        The records actually inserted, and one message per failed insert.
        A duplicate-key insert is neither stored nor an error.
    """
    stored: list[InsiderTransaction] = []
    errors: list[str] = []
    for rec in records:
        try:
            store.insert(rec.to_row())
        except DuplicateRowError:
            log.info("Filing %s already stored", rec.filing_id)
            continue
        except StoreError as exc:
            log.warning("Insert failed for %s: %s", rec.filing_id, exc)
            errors.append(f"Insert error for {rec.ticker} ({rec.filing_id}): {exc}")
            continue
        stored.append(rec)
    return stored, errors


def update_verification(store: RowStore, filing_id: str, result: VerificationResult) -> None:
    """Record a later verification outcome on an already stored row."""
    fields: dict[str, Any] = {
        "verification_status": result.status,
        "verification_message": result.message,
    }
    if result.cik:
        fields["cik"] = result.cik
    if result.company_name:
        fields["company_name"] = result.company_name
    if result.matched_filing:
        fields["sec_filing_url"] = result.matched_filing.url
    store.update(filing_id, fields)


@dataclass
class AlertPage:
    alerts: list[InsiderTransaction] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 20


def list_alerts(
        store: RowStore,
        *,
        transaction_type: str | None = None,
        status: str | None = None,
        verified_only: bool = False,
        ticker: str | None = None,
        offset: int = 0,
        limit: int = 20,
) -> AlertPage:
    """Query stored alerts, newest trade first.

    ``verified_only`` keeps verified and partial rows; ``status`` selects a
    single status and takes precedence.
    """
    eq: dict[str, Any] = {}
    in_: dict[str, list[Any]] = {}
    if transaction_type:
        tt = transaction_type.upper()
        if tt not in ("BUY", "SELL"):
            raise ValueError(f"transaction_type must be BUY or SELL, got {transaction_type!r}")
        eq["transaction_type"] = tt
    if ticker:
        eq["ticker"] = ticker.upper().strip()
    if status:
        eq["verification_status"] = status
    elif verified_only:
        in_["verification_status"] = ["verified", "partial"]

    rows, total = store.query(
        eq=eq, in_=in_, order=DEFAULT_ORDER, offset=max(offset, 0), limit=max(limit, 1),
    )
    return AlertPage(
        alerts=[InsiderTransaction.from_row(r) for r in rows],
        total=total,
        offset=offset,
        limit=limit,
    )
