"""Application-wide paths, SEC compliance constants and run settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from insider_alerts.utils.errors import ConfigError


def _find_project_root() -> Path:
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


PROJECT_ROOT: Path = _find_project_root()

OUTPUTS_DIR: Path = PROJECT_ROOT / "outputs"
ALERT_OUTPUTS_DIR: Path = OUTPUTS_DIR / "alerts"
DEFAULT_CONFIG_FILE: Path = PROJECT_ROOT / "config.yaml"

# SEC EDGAR compliance: https://www.sec.gov/os/accessing-edgar-data
SEC_MAX_REQUESTS_PER_SECOND: int = 10
SEC_WWW_BASE = "https://www.sec.gov"
SEC_DATA_BASE = "https://data.sec.gov"
REDDIT_BASE = "https://www.reddit.com"

DEFAULT_REDDIT_USER_AGENT = "python:insider-alerts:v0.1 (insider monitor)"

# Ticker -> CIK map changes rarely
TICKER_MAP_TTL: int = 86400


@dataclass(frozen=True)
class Settings:
    # Required for any SEC request; there is deliberately no default
    sec_user_agent: str | None = None
    reddit_user_agent: str = DEFAULT_REDDIT_USER_AGENT
    subreddit: str = "InsiderData"

    min_transaction_value: float = 100_000.0
    feed_count: int = 100
    max_filings: int = 40
    reddit_limit: int = 50
    request_delay: float = 0.12  # seconds between filing fetches
    run_timeout: float = 60.0  # wall-clock budget per sync run
    http_timeout: float = 15.0

    supabase_url: str | None = None
    supabase_key: str | None = None
    table: str = "insider_alerts"

    def require_sec(self) -> str:
        """Return the SEC User-Agent or raise ConfigError."""
        agent = (self.sec_user_agent or "").strip()
        if not agent:
            raise ConfigError(
                "SEC_USER_AGENT is not set. SEC requires a User-Agent naming "
                "the requester and a contact email, e.g. 'Acme Research ops@acme.com'."
            )
        return agent

    def require_store(self) -> tuple[str, str]:
        """Return (supabase_url, supabase_key) or raise ConfigError."""
        if not self.supabase_url or not self.supabase_key:
            raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_KEY must both be set.")
        return self.supabase_url.rstrip("/"), self.supabase_key

    @property
    def has_store(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


# env var -> Settings field
_ENV_OVERRIDES: dict[str, str] = {
    "SEC_USER_AGENT": "sec_user_agent",
    "REDDIT_USER_AGENT": "reddit_user_agent",
    "INSIDER_SUBREDDIT": "subreddit",
    "INSIDER_MIN_VALUE": "min_transaction_value",
    "INSIDER_MAX_FILINGS": "max_filings",
    "INSIDER_REQUEST_DELAY": "request_delay",
    "INSIDER_RUN_TIMEOUT": "run_timeout",
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_SERVICE_KEY": "supabase_key",
    "INSIDER_TABLE": "table",
}


def _as_float(x: Any, default: float) -> float:
    if x is None or str(x).strip() == "":
        return default
    try:
        return float(x)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected a number, got {x!r}")


def _as_int(x: Any, default: int) -> int:
    return int(_as_float(x, default))


def _as_str(x: Any, default: str | None) -> str | None:
    if x is None:
        return default
    s = str(x).strip()
    return s or default


def _coerce(value: Any, current: Any) -> Any:
    if isinstance(current, float):
        return _as_float(value, current)
    if isinstance(current, int):
        return _as_int(value, current)
    return _as_str(value, current)


def load_settings(path: str | Path | None = None, env: dict[str, str] | None = None) -> Settings:
    """Build Settings from defaults, then a YAML file, then environment variables.

    The YAML layout mirrors the field names, grouped loosely::

        sec:
          user_agent: "Acme Research ops@acme.com"
          min_transaction_value: 250000
        reddit:
          subreddit: InsiderData
        store:
          url: https://xyz.supabase.co
          key: ...
    """
    settings = Settings()
    environ = os.environ if env is None else env

    p = Path(path) if path else DEFAULT_CONFIG_FILE
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        sec_raw = data.get("sec", {}) or {}
        reddit_raw = data.get("reddit", {}) or {}
        store_raw = data.get("store", {}) or {}
        run_raw = data.get("run", {}) or {}

        raw: dict[str, Any] = {
            "sec_user_agent": sec_raw.get("user_agent"),
            "min_transaction_value": sec_raw.get("min_transaction_value"),
            "feed_count": sec_raw.get("feed_count"),
            "max_filings": sec_raw.get("max_filings"),
            "request_delay": sec_raw.get("request_delay"),
            "reddit_user_agent": reddit_raw.get("user_agent"),
            "subreddit": reddit_raw.get("subreddit"),
            "reddit_limit": reddit_raw.get("limit"),
            "supabase_url": store_raw.get("url"),
            "supabase_key": store_raw.get("key"),
            "table": store_raw.get("table"),
            "run_timeout": run_raw.get("timeout_s"),
            "http_timeout": run_raw.get("http_timeout_s"),
        }
        updates = {
            k: _coerce(v, getattr(settings, k)) for k, v in raw.items() if v is not None
        }
        settings = replace(settings, **updates)

    env_updates: dict[str, Any] = {}
    for var, field in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is not None and value.strip():
            env_updates[field] = _coerce(value, getattr(settings, field))
    if env_updates:
        settings = replace(settings, **env_updates)

    return settings


def ensure_dirs() -> None:
    """Create all required runtime directories."""
    for d in (OUTPUTS_DIR, ALERT_OUTPUTS_DIR):
        d.mkdir(parents=True, exist_ok=True)
