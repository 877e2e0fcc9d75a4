"""Tests for the HTTP helpers and SEC rate limiter."""

from __future__ import annotations

import time
from unittest.mock import patch

import pytest
import requests
import responses

from insider_alerts.utils import http
from insider_alerts.utils.errors import ConfigError
from insider_alerts.utils.http import fetch_json, fetch_url

URL = "https://www.sec.gov/files/test.json"


class TestFetch:
    @responses.activate
    def test_sec_headers(self):
        responses.add(responses.GET, URL, body="ok", status=200)
        assert fetch_url(URL, user_agent="Acme ops@acme.com", sec=True) == "ok"
        headers = responses.calls[0].request.headers
        assert headers["User-Agent"] == "Acme ops@acme.com"
        assert "gzip" in headers["Accept-Encoding"]

    def test_sec_without_agent(self):
        with pytest.raises(ConfigError):
            fetch_url(URL, sec=True)

    @responses.activate
    def test_non_sec_without_agent(self):
        responses.add(responses.GET, "https://www.reddit.com/r/x/new.json", json={"data": {}}, status=200)
        assert fetch_json("https://www.reddit.com/r/x/new.json") == {"data": {}}

    @responses.activate
    def test_extra_headers_and_params(self):
        responses.add(responses.GET, URL, json={"a": 1}, status=200)
        fetch_json(URL, user_agent="ua", headers={"Accept": "application/json"}, params={"q": "x"})
        req = responses.calls[0].request
        assert req.headers["Accept"] == "application/json"
        assert "q=x" in req.url

    @responses.activate
    def test_http_error(self):
        responses.add(responses.GET, URL, status=404)
        with pytest.raises(requests.HTTPError):
            fetch_url(URL, user_agent="ua")


class TestRateLimit:
    def test_sleeps_when_too_fast(self):
        with patch("insider_alerts.utils.http.time.sleep") as mock_sleep:
            http._last_request_time = time.time()
            http._rate_limit()
        mock_sleep.assert_called_once()
        assert 0 < mock_sleep.call_args[0][0] <= http._min_interval

    def test_no_sleep_after_interval(self):
        with patch("insider_alerts.utils.http.time.sleep") as mock_sleep:
            http._last_request_time = time.time() - 10
            http._rate_limit()
        mock_sleep.assert_not_called()
