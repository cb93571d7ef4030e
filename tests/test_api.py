"""Tests for the quote endpoint client – all HTTP is faked via monkeypatch."""

import pytest
import requests

from metaldeck.services import FeedUnavailable, Quote, fetch_quote
from metaldeck.services import api


class FakeResponse:
    def __init__(self, payload=None, status=200, body_error=None):
        self.payload = payload
        self.status = status
        self.body_error = body_error

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.body_error is not None:
            raise self.body_error
        return self.payload


@pytest.fixture
def respond(monkeypatch):
    """Make ``requests.get`` return (or raise) whatever the test sets up."""
    calls = []

    def install(response=None, exc=None):
        def fake_get(url, headers=None, timeout=None):
            calls.append((url, timeout))
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(api.requests, "get", fake_get)
        return calls

    return install


@pytest.mark.parametrize(
    "payload, price, change",
    [
        ({"price": 2301.4, "change": -3.2}, 2301.4, -3.2),
        ({"last": "2301.4"}, 2301.4, 0.0),
        ({"data": {"price": 245.1, "change": 0.4}}, 245.1, 0.4),
        ({"price": 10, "change": "n/a"}, 10.0, 0.0),
    ],
)
def test_supported_payload_shapes(respond, payload, price, change):
    respond(FakeResponse(payload))
    quote = fetch_quote("https://quotes.example/xau", timeout=1.5)
    assert isinstance(quote, Quote)
    assert quote.price == price
    assert quote.change == change


def test_timeout_is_passed_through(respond):
    calls = respond(FakeResponse({"price": 1}))
    fetch_quote("https://quotes.example/xau", timeout=0.25)
    assert calls == [("https://quotes.example/xau", 0.25)]


def test_no_url_skips_the_request(respond):
    calls = respond(FakeResponse({"price": 1}))
    result = fetch_quote("")
    assert isinstance(result, FeedUnavailable)
    assert result.reason == "no endpoint configured"
    assert calls == []


def test_transport_error(respond):
    respond(exc=requests.ConnectionError("refused"))
    result = fetch_quote("https://quotes.example/xau")
    assert result == FeedUnavailable(reason="request failed: ConnectionError")


def test_http_error_status(respond):
    respond(FakeResponse({"price": 1}, status=503))
    result = fetch_quote("https://quotes.example/xau")
    assert result == FeedUnavailable(reason="request failed: HTTPError")


def test_body_not_json(respond):
    respond(FakeResponse(body_error=ValueError("Expecting value")))
    result = fetch_quote("https://quotes.example/xau")
    assert result == FeedUnavailable(reason="response is not JSON")


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"status": "ok"},
        {"price": 0},
        {"price": -5},
        {"price": "abc"},
        {"price": True},
        {"last": float("nan")},
    ],
)
def test_unusable_payloads(respond, payload):
    respond(FakeResponse(payload))
    result = fetch_quote("https://quotes.example/xau")
    assert result == FeedUnavailable(reason="payload has no usable price")
