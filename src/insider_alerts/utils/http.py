"""Rate-limited HTTP client with SEC EDGAR compliance."""

from __future__ import annotations

import threading
import time
from typing import Any

import requests

from insider_alerts.utils.config import SEC_MAX_REQUESTS_PER_SECOND
from insider_alerts.utils.errors import ConfigError
from insider_alerts.utils.logging import get_logger

log = get_logger("http")

# Module-level rate limiter, shared by every SEC request in the process
_last_request_time: float = 0.0
_min_interval: float = 1.0 / SEC_MAX_REQUESTS_PER_SECOND
_rate_lock = threading.Lock()


def _rate_limit() -> None:
    """Block until enough time has passed since the last SEC request."""
    global _last_request_time
    with _rate_lock:
        now = time.time()
        elapsed = now - _last_request_time
        if elapsed < _min_interval:
            time.sleep(_min_interval - elapsed)
        _last_request_time = time.time()


def _get(
        url: str,
        *,
        user_agent: str | None,
        headers: dict | None,
        params: dict | None,
        timeout: float,
        sec: bool,
) -> requests.Response:
    if sec and not (user_agent or "").strip():
        raise ConfigError("SEC requests need a User-Agent with a contact email")

    req_headers = dict(headers or {})
    if user_agent:
        req_headers["User-Agent"] = user_agent
    if sec:
        req_headers.setdefault("Accept-Encoding", "gzip, deflate")
        _rate_limit()

    log.debug("Fetching %s", url)
    resp = requests.get(url, headers=req_headers, params=params, timeout=timeout)
    resp.raise_for_status()
    return resp


def fetch_url(
        url: str,
        *,
        user_agent: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        timeout: float = 15,
        sec: bool = False,
) -> str:
    """Fetch a URL and return the body text.

    Parameters
    ----------
    url : str
        URL to fetch.
    user_agent : str or None
        User-Agent header. Mandatory when ``sec`` is True.
    headers : dict or None
        Additional HTTP headers.
    params : dict or None
        Query string parameters.
    timeout : float
        Request timeout in seconds.
    sec : bool
        If True, enforce the SEC User-Agent requirement and rate limit.

    Returns
    -------
    str
        Response body text.

    Raises
    ------
    ConfigError
        ``sec`` is set but no User-Agent was given.
    requests.HTTPError
        On non-2xx responses.
    """
    return _get(
        url, user_agent=user_agent, headers=headers, params=params, timeout=timeout, sec=sec,
    ).text


def fetch_json(
        url: str,
        *,
        user_agent: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        timeout: float = 15,
        sec: bool = False,
) -> Any:
    """Like :func:`fetch_url` but decodes the body as JSON."""
    return _get(
        url, user_agent=user_agent, headers=headers, params=params, timeout=timeout, sec=sec,
    ).json()
