"""Unit tests for CORS headers on error responses."""

import pytest
from starlette.requests import Request

from src import main


def _request(origin=None) -> Request:
    headers = [(b"origin", origin.encode())] if origin else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


@pytest.fixture
def explicit_origins(monkeypatch):
    monkeypatch.setattr(main.settings, "cors_origins", ["http://app.example.com"])


def test_wildcard_origin():
    headers = main._cors_headers(_request("http://anywhere.example.com"))
    assert headers["Access-Control-Allow-Origin"] == "*"


def test_allowed_origin_is_echoed(explicit_origins):
    headers = main._cors_headers(_request("http://app.example.com"))
    assert headers["Access-Control-Allow-Origin"] == "http://app.example.com"
    assert headers["Vary"] == "Origin"


def test_disallowed_origin_gets_no_cors_headers(explicit_origins):
    assert main._cors_headers(_request("http://evil.example.com")) == {}


def test_missing_origin_gets_no_cors_headers(explicit_origins):
    assert main._cors_headers(_request()) == {}
